"""
Logging utilities for the Meeting Manager
"""
import logging
import sys
from datetime import datetime
import json


class MeetingManagerLogger:
    """Logging setup for the Meeting Manager"""

    NOISY_LOGGERS = ('urllib3', 'httpx', 'httpcore', 'openai', 'sqlalchemy.engine', 'werkzeug')

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None):
        """Setup logging configuration"""

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Setup root logger
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Clear existing handlers
        root_logger.handlers.clear()

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # File handler (if specified)
        if log_file:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Suppress some noisy loggers
        for name in MeetingManagerLogger.NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_agent_exchange(session_id: str, query: str, response_data: dict,
                           processing_time: float):
        """Log one agent request/response pair for debugging"""
        logger = logging.getLogger(__name__)

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "session_id": session_id,
            "processing_time_seconds": round(processing_time, 3),
            "query": query[:200],
            "response_summary": {
                "action": response_data.get("action"),
                "requires_confirmation": bool(
                    (response_data.get("result") or {}).get("requiresConfirmation")
                ),
                "success": response_data.get("success"),
            }
        }

        logger.debug(f"Agent exchange: {json.dumps(log_entry, indent=2)}")
