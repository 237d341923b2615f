"""
Meeting Manager - calendar meetings with conflict detection and an AI agent

This project provides a meeting management service that:
- Stores meetings and flags overlapping ones
- Lets users manage the calendar in natural language through an LLM agent
- Keeps short conversation histories per session
- Offers mediation advice for workplace conflicts
"""

__version__ = "2.0.0"
__author__ = "Meeting Manager Team"
