"""
Calendar operations the agent can perform

The language model picks one of four named operations; ``parse_operation``
turns its choice into one of the dataclasses below so the agent can dispatch
on type. Anything outside this closed set raises ``UnknownOperation``.
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from config.settings import Config
from meeting_manager.errors import UnknownOperation, ValidationError
from utils.validators import RequestValidator

MEETING_FIELDS = ("title", "description", "startTime", "endTime",
                  "organizer", "attendees", "location", "status")


@dataclass
class CreateMeeting:
    name: ClassVar[str] = "create_meeting"
    payload: Dict[str, Any] = field(default_factory=dict)
    force: bool = False


@dataclass
class GetMeetings:
    name: ClassVar[str] = "get_meetings"
    organizer: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    limit: Optional[int] = None


@dataclass
class UpdateMeeting:
    name: ClassVar[str] = "update_meeting"
    meeting_id: str = ""
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DeleteMeeting:
    name: ClassVar[str] = "delete_meeting"
    meeting_id: str = ""


@dataclass
class NoOperation:
    """The model answered in plain text"""
    name: ClassVar[str] = "none"
    reply: Optional[str] = None


Operation = Union[CreateMeeting, GetMeetings, UpdateMeeting, DeleteMeeting, NoOperation]


def _meeting_id(arguments: Dict[str, Any]) -> str:
    meeting_id = arguments.get("meetingId")
    if not meeting_id or not isinstance(meeting_id, str):
        raise ValidationError("meetingId is required")
    return meeting_id


def parse_operation(name: Optional[str], arguments: Dict[str, Any] = None) -> Operation:
    """Build the typed operation for a tool call"""
    if not name:
        return NoOperation()

    arguments = arguments or {}
    if not isinstance(arguments, dict):
        raise ValidationError("Tool arguments must be a JSON object")

    if name == CreateMeeting.name:
        payload = {k: arguments[k] for k in MEETING_FIELDS if k in arguments and k != "status"}
        force = RequestValidator.validate_flag(arguments.get("force"))
        return CreateMeeting(payload=payload, force=force)

    if name == GetMeetings.name:
        return GetMeetings(
            organizer=arguments.get("organizer"),
            status=arguments.get("status"),
            start_date=arguments.get("startDate"),
            end_date=arguments.get("endDate"),
            limit=arguments.get("limit"),
        )

    if name == UpdateMeeting.name:
        changes = {k: arguments[k] for k in MEETING_FIELDS
                   if k in arguments and k != "organizer"}
        return UpdateMeeting(meeting_id=_meeting_id(arguments), changes=changes)

    if name == DeleteMeeting.name:
        return DeleteMeeting(meeting_id=_meeting_id(arguments))

    raise UnknownOperation(name)


def _function(name: str, description: str, properties: Dict[str, Any],
              required: List[str] = None) -> Dict[str, Any]:
    parameters = {"type": "object", "properties": properties}
    if required:
        parameters["required"] = required
    return {
        "type": "function",
        "function": {"name": name, "description": description, "parameters": parameters},
    }


def build_tool_schemas(require_organizer: bool = None) -> List[Dict[str, Any]]:
    """Function-calling schemas for the four calendar operations"""
    if require_organizer is None:
        require_organizer = Config.REQUIRE_ORGANIZER

    statuses = list(Config.MEETING_STATUSES)
    create_required = ["title", "startTime", "endTime"]
    if require_organizer:
        create_required.append("organizer")

    return [
        _function(
            CreateMeeting.name,
            "Create a new meeting in the calendar. Automatically checks for conflicts "
            "with existing meetings.",
            {
                "title": {"type": "string", "description": "The title/name of the meeting"},
                "description": {"type": "string", "description": "Detailed description of the meeting"},
                "startTime": {"type": "string",
                              "description": "Start time in ISO 8601 format (e.g., 2025-12-05T10:00:00Z)"},
                "endTime": {"type": "string",
                            "description": "End time in ISO 8601 format (e.g., 2025-12-05T11:00:00Z)"},
                "organizer": {"type": "string", "description": "Email of the meeting organizer"},
                "attendees": {"type": "array", "items": {"type": "string"},
                              "description": "List of attendee emails"},
                "location": {"type": "string", "description": "Meeting location (physical or virtual)"},
                "force": {"type": "boolean",
                          "description": "Create even if the meeting conflicts with existing ones. "
                                         "Only set after the user explicitly confirmed."},
            },
            create_required,
        ),
        _function(
            GetMeetings.name,
            "Retrieve meetings from the calendar. Can filter by organizer, status, or date range.",
            {
                "organizer": {"type": "string", "description": "Filter by organizer email"},
                "status": {"type": "string", "enum": statuses, "description": "Filter by meeting status"},
                "startDate": {"type": "string",
                              "description": "Filter meetings starting from this date (ISO 8601)"},
                "endDate": {"type": "string", "description": "Filter meetings up to this date (ISO 8601)"},
                "limit": {"type": "number",
                          "description": f"Maximum number of meetings to return (default {Config.DEFAULT_QUERY_LIMIT})"},
            },
        ),
        _function(
            UpdateMeeting.name,
            "Update an existing meeting. Can modify title, times, attendees, location, or status.",
            {
                "meetingId": {"type": "string", "description": "The ID of the meeting to update"},
                "title": {"type": "string", "description": "New title for the meeting"},
                "description": {"type": "string", "description": "New description"},
                "startTime": {"type": "string", "description": "New start time in ISO 8601 format"},
                "endTime": {"type": "string", "description": "New end time in ISO 8601 format"},
                "attendees": {"type": "array", "items": {"type": "string"},
                              "description": "Updated list of attendee emails"},
                "location": {"type": "string", "description": "New location"},
                "status": {"type": "string", "enum": statuses, "description": "New status"},
            },
            ["meetingId"],
        ),
        _function(
            DeleteMeeting.name,
            "Delete a meeting from the calendar.",
            {"meetingId": {"type": "string", "description": "The ID of the meeting to delete"}},
            ["meetingId"],
        ),
    ]
