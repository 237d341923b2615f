"""
Utility modules for the Meeting Manager
"""

from .logger import MeetingManagerLogger
from .validators import RequestValidator, DataSanitizer
from .meeting_logger import MeetingLogger

__all__ = ['MeetingManagerLogger', 'RequestValidator', 'DataSanitizer', 'MeetingLogger']
