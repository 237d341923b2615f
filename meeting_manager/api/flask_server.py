"""
Flask API server for the Meeting Manager
"""
import logging
import signal
import sys
import time
from datetime import datetime, timezone

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config.settings import Config
from meeting_manager.ai_agent.calendar_agent import CalendarAgent, create_llm_client
from meeting_manager.ai_agent.session_store import SessionStore, create_session_store
from meeting_manager.calendar.database import Database
from meeting_manager.calendar.meeting_store import MeetingStore, SQLMeetingStore
from meeting_manager.calendar.mock_meeting_store import InMemoryMeetingStore
from meeting_manager.errors import MeetingManagerError, StoreUnavailable, ValidationError
from meeting_manager.mediator.conflict_resolver import (
    ConflictLog,
    ConflictResolver,
    InMemoryConflictLog,
    SQLConflictLog,
)
from meeting_manager.scheduler.meeting_scheduler import MeetingScheduler
from utils.validators import RequestValidator

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong while processing the request"


class MeetingManagerAPI:
    """
    Flask API server for meetings, the conversational agent and the conflict mediator
    """

    def __init__(self, store: MeetingStore = None, sessions: SessionStore = None,
                 llm_client=None, conflict_log: ConflictLog = None,
                 config: Config = None):
        self.config = config or Config()
        self.app = Flask(__name__)
        CORS(self.app)

        database = None
        if self.config.STORE_BACKEND == "sql" or self.config.SESSION_BACKEND == "sql":
            database = Database(self.config.DATABASE_URL)

        if store is None:
            if self.config.STORE_BACKEND == "sql":
                store = SQLMeetingStore(database)
            else:
                logger.info("🔄 Using in-memory meeting store")
                store = InMemoryMeetingStore()
        if conflict_log is None:
            conflict_log = SQLConflictLog(database) if self.config.STORE_BACKEND == "sql" \
                else InMemoryConflictLog()

        self.store = store
        self.sessions = sessions or create_session_store(self.config, database)
        self.llm_client = llm_client or create_llm_client(self.config)

        self.scheduler = MeetingScheduler(self.store, self.config)
        self.agent = CalendarAgent(self.scheduler, self.llm_client, self.sessions, self.config)
        self.resolver = ConflictResolver(self.llm_client, conflict_log, self.config)

        self._setup_routes()
        self._setup_error_handlers()

    @staticmethod
    def _json_body() -> dict:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _setup_routes(self):
        """Setup Flask routes"""

        @self.app.route('/', methods=['GET'])
        def index():
            return "Meeting Manager API is running!"

        @self.app.route('/api', methods=['GET'])
        def describe():
            """Service description"""
            return jsonify({
                "name": "Meeting Manager API",
                "version": self.config.API_VERSION,
                "description": "Natural language calendar management with AI agent",
                "endpoints": {
                    "agent": "POST /api/agent",
                    "clearHistory": "POST /api/agent/clear-history",
                    "meetings": "GET|POST /api/meetings",
                    "meeting": "GET|PUT|DELETE /api/meetings/<id>",
                    "resolve": "GET|POST /api/resolve",
                    "health": "GET /health",
                },
            })

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            timestamp = datetime.now(timezone.utc).isoformat()
            try:
                count = self.scheduler.count_meetings()
            except StoreUnavailable as e:
                logger.error(f"Health check failed: {e}")
                return jsonify({
                    "status": "unhealthy",
                    "database": "disconnected",
                    "timestamp": timestamp,
                }), 503
            return jsonify({
                "status": "healthy",
                "database": "connected",
                "meetings": count,
                "timestamp": timestamp,
            })

        @self.app.route('/api/agent', methods=['POST'])
        def agent_query():
            """Natural-language calendar request"""
            data = self._json_body()
            session_id = data.get('sessionId')
            logger.info(f"🚀 AGENT REQUEST [{session_id or self.config.DEFAULT_SESSION_ID}]: "
                        f"{str(data.get('query', ''))[:100]}")

            result = self.agent.handle(
                data.get('query'),
                session_id=str(session_id) if session_id else None,
                force=RequestValidator.validate_flag(data.get('force')),
            )
            return jsonify(result)

        @self.app.route('/api/agent/clear-history', methods=['POST'])
        def clear_history():
            data = self._json_body()
            session_id = data.get('sessionId')
            cleared = self.agent.clear_history(str(session_id) if session_id else None)
            return jsonify({
                "success": True,
                "message": "Conversation history cleared",
                "sessionId": cleared,
            })

        @self.app.route('/api/meetings', methods=['POST'])
        def create_meeting():
            outcome = self.scheduler.create_meeting(self._json_body())
            meeting = outcome.meeting
            body = {
                "success": True,
                "data": meeting.to_dict(),
                "hasConflict": outcome.has_conflict,
                "conflicts": outcome.conflict_list(),
            }
            if outcome.has_conflict:
                body["warning"] = meeting.conflict_details
            return jsonify(body), 201

        @self.app.route('/api/meetings', methods=['GET'])
        def list_meetings():
            meetings = self.scheduler.list_meetings(
                organizer=request.args.get('organizer'),
                status=request.args.get('status'),
                start_date=request.args.get('startDate'),
                end_date=request.args.get('endDate'),
                limit=request.args.get('limit'),
            )
            return jsonify({
                "success": True,
                "count": len(meetings),
                "data": [m.to_dict() for m in meetings],
            })

        @self.app.route('/api/meetings/<meeting_id>', methods=['GET'])
        def get_meeting(meeting_id):
            meeting = self.scheduler.get_meeting(meeting_id)
            return jsonify({"success": True, "data": meeting.to_dict()})

        @self.app.route('/api/meetings/<meeting_id>', methods=['PUT'])
        def update_meeting(meeting_id):
            outcome = self.scheduler.update_meeting(meeting_id, self._json_body())
            return jsonify({
                "success": True,
                "data": outcome.meeting.to_dict(),
                "hasConflict": outcome.meeting.has_conflict,
                "conflicts": outcome.conflict_list(),
            })

        @self.app.route('/api/meetings/<meeting_id>', methods=['DELETE'])
        def delete_meeting(meeting_id):
            meeting = self.scheduler.delete_meeting(meeting_id)
            return jsonify({
                "success": True,
                "message": "Meeting deleted successfully",
                "data": meeting.to_dict(),
            })

        @self.app.route('/api/resolve', methods=['POST'])
        def resolve_conflict():
            """Mediation advice for a conflict scenario"""
            record = self.resolver.resolve(self._json_body().get('message'))
            return jsonify({"success": True, "data": record.to_dict()})

        @self.app.route('/api/resolve', methods=['GET'])
        def conflict_history():
            limit = RequestValidator.validate_limit(request.args.get('limit'), 20)
            records = self.resolver.history(limit)
            return jsonify({
                "success": True,
                "count": len(records),
                "data": [r.to_dict() for r in records],
            })

    def _setup_error_handlers(self):

        @self.app.errorhandler(MeetingManagerError)
        def handle_meeting_manager_error(error):
            if error.status_code >= 500:
                logger.error(f"❌ {error.error}: {error.message}")
                return jsonify({"error": error.error, "message": GENERIC_ERROR_MESSAGE}), error.status_code
            logger.info(f"Rejected request: {error.message}")
            return jsonify(error.to_dict()), error.status_code

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Not Found", "message": "Endpoint not found"}), 404

        @self.app.errorhandler(HTTPException)
        def http_error(error):
            return jsonify({"error": error.name, "message": error.description}), error.code

        @self.app.errorhandler(Exception)
        def internal_error(error):
            logger.exception(f"Unexpected error: {error}")
            return jsonify({"error": "Internal Server Error", "message": GENERIC_ERROR_MESSAGE}), 500

    def _setup_signal_handlers(self):
        """Setup graceful shutdown handlers"""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self, host=None, port=None, debug=False):
        """Run the Flask server"""
        host = host or self.config.API_HOST
        port = port or self.config.API_PORT

        self.start_time = time.time()
        self._setup_signal_handlers()

        logger.info(f"Starting Meeting Manager API server on {host}:{port}")
        logger.info(f"Store: {type(self.store).__name__}, sessions: {type(self.sessions).__name__}, "
                    f"LLM: {type(self.llm_client).__name__}")

        self.app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,
            use_reloader=False
        )

    def shutdown(self):
        """Graceful shutdown"""
        logger.info("Shutting down Meeting Manager API server...")
        database = getattr(self.store, "database", None)
        if database is not None:
            database.dispose()


def create_app(**kwargs) -> Flask:
    """Factory function to create Flask app"""
    api = MeetingManagerAPI(**kwargs)
    return api.app
