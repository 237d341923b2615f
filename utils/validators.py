"""
Validation utilities for the Meeting Manager
"""
import re
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from config.settings import Config
from meeting_manager.errors import ValidationError, InvalidInterval

# camelCase request field -> internal field
FIELD_MAP = {
    "title": "title",
    "description": "description",
    "startTime": "start_time",
    "endTime": "end_time",
    "organizer": "organizer",
    "attendees": "attendees",
    "location": "location",
    "status": "status",
}


class RequestValidator:
    """Validator for incoming meeting payloads"""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format"""
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(email_pattern, email))

    @staticmethod
    def parse_datetime(value: Any, field: str = "datetime") -> datetime:
        """Parse an ISO 8601 value into an aware UTC datetime.

        Naive values are taken as UTC; offsets are normalised to UTC.
        """
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str) and value.strip():
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                raise ValidationError(f"Invalid date format for {field}: {value}")
        else:
            raise ValidationError(f"Invalid date format for {field}: {value!r}")

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    @staticmethod
    def validate_interval(start_time: datetime, end_time: datetime) -> None:
        """Reject intervals where end is not strictly after start"""
        if end_time <= start_time:
            raise InvalidInterval()

    @staticmethod
    def missing_fields(data: Dict[str, Any], required: List[str]) -> List[str]:
        """Return required camelCase fields that are absent or empty"""
        return [field for field in required if not data.get(field)]

    @staticmethod
    def validate_meeting_fields(data: Dict[str, Any], partial: bool = False,
                                require_organizer: bool = False) -> Dict[str, Any]:
        """Validate a camelCase meeting payload and return internal fields.

        With ``partial`` only the keys present in ``data`` are returned, which
        is how updates express "change just these attributes".
        """
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        if not partial:
            required = ["title", "startTime", "endTime"]
            if require_organizer:
                required.append("organizer")
            missing = RequestValidator.missing_fields(data, required)
            if missing:
                raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        cleaned: Dict[str, Any] = {}
        for source, target in FIELD_MAP.items():
            if source in data:
                cleaned[target] = data[source]

        if "title" in cleaned:
            title = DataSanitizer.sanitize_text(cleaned["title"] or "")
            if not title:
                raise ValidationError("title must not be empty")
            cleaned["title"] = title

        for field in ("description", "location", "organizer"):
            if field in cleaned and cleaned[field] is not None:
                cleaned[field] = DataSanitizer.sanitize_text(str(cleaned[field])) or None

        if "attendees" in cleaned:
            attendees = cleaned["attendees"]
            if attendees is None:
                attendees = []
            if not isinstance(attendees, list) or not all(isinstance(a, str) for a in attendees):
                raise ValidationError("attendees must be a list of strings")
            cleaned["attendees"] = [DataSanitizer.sanitize_email(a) for a in attendees if a.strip()]

        if "status" in cleaned:
            if cleaned["status"] not in Config.MEETING_STATUSES:
                raise ValidationError(
                    f"status must be one of: {', '.join(Config.MEETING_STATUSES)}"
                )

        for field in ("start_time", "end_time"):
            if field in cleaned:
                if cleaned[field] is None:
                    raise ValidationError(f"{field} must not be null")
                cleaned[field] = RequestValidator.parse_datetime(cleaned[field], field)

        if "start_time" in cleaned and "end_time" in cleaned:
            RequestValidator.validate_interval(cleaned["start_time"], cleaned["end_time"])

        return cleaned

    @staticmethod
    def validate_limit(value: Any, default: int) -> int:
        """Parse a positive integer limit"""
        if value is None or value == "":
            return default
        try:
            limit = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"limit must be an integer: {value!r}")
        if limit <= 0:
            raise ValidationError("limit must be positive")
        return limit

    @staticmethod
    def validate_flag(value: Any, field_name: str = "force") -> bool:
        """Parse a boolean flag; JSON booleans and true/false style strings only"""
        if value is None or isinstance(value, bool):
            return bool(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("true", "1", "yes"):
                return True
            if text in ("false", "0", "no", ""):
                return False
        raise ValidationError(f"{field_name} must be a boolean: {value!r}")


class DataSanitizer:
    """Sanitize and clean input data"""

    @staticmethod
    def sanitize_email(email: str) -> str:
        """Sanitize an attendee or organizer identifier"""
        return email.strip()

    @staticmethod
    def sanitize_text(text: str) -> str:
        """Collapse whitespace in free text"""
        return re.sub(r'\s+', ' ', str(text).strip())

    @staticmethod
    def optional_datetime(value: Optional[str], field: str) -> Optional[datetime]:
        """Parse a filter datetime if one was supplied"""
        if value in (None, ""):
            return None
        return RequestValidator.parse_datetime(value, field)
