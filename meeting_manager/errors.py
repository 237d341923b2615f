"""
Error taxonomy for the Meeting Manager

Every error carries the HTTP status the API layer answers with. Messages of
500-class errors are replaced by a generic one before reaching the client.
"""


class MeetingManagerError(Exception):
    """Base class for all handled Meeting Manager errors"""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str = None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(MeetingManagerError):
    status_code = 400
    error = "Validation Error"


class InvalidInterval(ValidationError):
    """Raised when an interval does not satisfy end > start"""

    def __init__(self, message: str = "endTime must be after startTime"):
        super().__init__(message)


class MeetingNotFound(MeetingManagerError):
    status_code = 404
    error = "Not Found"

    def __init__(self, meeting_id: str = None):
        super().__init__("Meeting not found")
        self.meeting_id = meeting_id


class StoreUnavailable(MeetingManagerError, ConnectionError):
    """The persistence backend could not be reached"""

    error = "Store Unavailable"


class ExternalServiceError(MeetingManagerError):
    """The language-model service failed or returned something unusable"""

    error = "External Service Error"


class UnknownOperation(MeetingManagerError):
    """The intent service picked an operation outside the fixed schema"""

    error = "Unknown Operation"

    def __init__(self, name: str):
        super().__init__(f"Unknown function: {name}")
        self.name = name
