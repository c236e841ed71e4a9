"""
Flask API server for the Smart Event Scheduler
"""
import logging
import signal
import sys
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from config.settings import Config
from src.ai_agent.llm_client import create_llm_client
from src.auth.identity import AuthErrorCode, AuthService, InMemoryIdentityProvider
from src.calendar.event_form import EditSheet, EventFormController
from src.calendar.event_store import EventStore
from src.calendar.mock_events import create_mock_events
from src.calendar.reminders import upcoming_reminders
from src.scheduler.errors import FormValidationError, SchemaViolationError, SuggestionPendingError
from src.scheduler.suggestion_service import SuggestionService
from src.scheduler.suggestion_task import SuggestionTask

logger = logging.getLogger(__name__)

SUGGESTION_FAILED_TITLE = "AI Suggestion Failed"
BAD_BODY_ERROR = {"error": "Request body must be a JSON object"}


def _json_body() -> Optional[Dict]:
    """Request JSON as a dict, {} when absent, None when not an object"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


class SmartCalendarAPI:
    """
    Flask API server for the calendar dashboard.

    The event store, LLM client and identity provider are injected so tests
    can pass their own; defaults are built from Config.
    """

    def __init__(self, store: Optional[EventStore] = None, llm_client=None,
                 identity_provider=None, model_name: str = None):
        self.config = Config()
        self.tz = self.config.get_timezone()
        self.app = Flask(__name__)
        CORS(self.app)  # Enable CORS for the dashboard frontend

        if store is None:
            seed = create_mock_events(datetime.now(self.tz)) if self.config.SEED_MOCK_EVENTS else []
            store = EventStore(seed)
        self.store = store

        self.llm_client = llm_client or create_llm_client(model_name)
        self.suggestion_service = SuggestionService(self.store, self.llm_client)
        self.controller = EventFormController(self.store)
        self.executor = ThreadPoolExecutor(max_workers=self.config.SUGGESTION_WORKERS,
                                           thread_name_prefix="suggestion")

        if identity_provider is None:
            identity_provider = InMemoryIdentityProvider()
            identity_provider.create_user(self.config.DEMO_USER_EMAIL, self.config.DEMO_USER_PASSWORD)
        self.auth = AuthService(identity_provider)

        self.sheets: Dict[str, EditSheet] = {}
        self._sheet_last_used: Dict[str, float] = {}
        self._sheets_lock = threading.Lock()
        self.start_time = time.time()

        self._setup_routes()
        logger.info(f"SmartCalendarAPI initialized with {len(self.store)} events")

    def _new_sheet(self) -> EditSheet:
        return EditSheet(
            self.controller,
            task_factory=lambda: SuggestionTask(self.executor, self.suggestion_service),
            tz=self.tz,
        )

    def _add_sheet(self, sheet: EditSheet) -> str:
        sheet_id = uuid.uuid4().hex
        with self._sheets_lock:
            expired = self._expire_sheets(time.monotonic(), reserve=1)
            self.sheets[sheet_id] = sheet
            self._sheet_last_used[sheet_id] = time.monotonic()
        self._close_sheets(expired)
        return sheet_id

    def _get_sheet(self, sheet_id: str) -> Optional[EditSheet]:
        with self._sheets_lock:
            expired = self._expire_sheets(time.monotonic())
            sheet = self.sheets.get(sheet_id)
            if sheet is not None:
                self._sheet_last_used[sheet_id] = time.monotonic()
        self._close_sheets(expired)
        return sheet

    def _drop_sheet(self, sheet_id: str):
        with self._sheets_lock:
            self.sheets.pop(sheet_id, None)
            self._sheet_last_used.pop(sheet_id, None)

    def _expire_sheets(self, now: float, reserve: int = 0) -> List[EditSheet]:
        """Forget idle sheets, then the least recently used over the cap; caller holds the lock"""
        stale = [sid for sid, used in self._sheet_last_used.items()
                 if now - used > self.config.SHEET_IDLE_TIMEOUT]
        by_age = sorted(self._sheet_last_used, key=self._sheet_last_used.get)
        overflow = len(by_age) - len(stale) - (self.config.MAX_OPEN_SHEETS - reserve)
        if overflow > 0:
            stale += [sid for sid in by_age if sid not in stale][:overflow]

        expired = []
        for sid in stale:
            expired.append(self.sheets.pop(sid))
            del self._sheet_last_used[sid]
            logger.info(f"🧹 Sheet {sid} expired")
        return expired

    @staticmethod
    def _close_sheets(sheets: List[EditSheet]):
        for sheet in sheets:
            sheet.cancel()

    def _sheet_payload(self, sheet_id: str, sheet: EditSheet) -> Dict:
        payload = {"sheet_id": sheet_id, **sheet.to_dict()}
        if payload["suggestion_error"]:
            payload["suggestion_error_title"] = SUGGESTION_FAILED_TITLE
        return payload

    def _setup_routes(self):
        """Setup Flask routes"""
        app = self.app

        @app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            return jsonify({
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
            })

        @app.route('/status', methods=['GET'])
        def get_status():
            """Get server status and statistics"""
            with self._sheets_lock:
                open_sheets = len(self.sheets)
            return jsonify({
                "status": "running",
                "events": len(self.store),
                "open_sheets": open_sheets,
                "uptime": time.time() - self.start_time,
            })

        # --- Authentication -------------------------------------------------

        @app.route('/auth/login', methods=['POST'])
        def login():
            data = _json_body()
            if data is None:
                return jsonify(BAD_BODY_ERROR), 400
            result = self.auth.login(data.get("email", ""), data.get("password", ""))
            if result.success:
                return jsonify(result.to_dict())
            return jsonify(result.to_dict()), 400 if result.field_errors else 401

        @app.route('/auth/signup', methods=['POST'])
        def signup():
            data = _json_body()
            if data is None:
                return jsonify(BAD_BODY_ERROR), 400
            result = self.auth.signup(data.get("email", ""), data.get("password", ""))
            if result.success:
                return jsonify(result.to_dict()), 201
            if result.error_code == AuthErrorCode.EMAIL_ALREADY_IN_USE.value:
                return jsonify(result.to_dict()), 409
            return jsonify(result.to_dict()), 400

        # --- Events ---------------------------------------------------------

        @app.route('/events', methods=['GET'])
        def list_events():
            day = request.args.get("day")
            if day:
                try:
                    selected = datetime.strptime(day, self.config.FORM_DATE_FORMAT).date()
                except ValueError:
                    return jsonify({"error": f"Invalid day: {day}. Expected: YYYY-MM-DD"}), 400
                events = self.store.events_on(selected, self.tz)
            else:
                events = self.store.list()
            return jsonify({"events": [e.to_dict() for e in events]})

        @app.route('/events/past', methods=['GET'])
        def past_events():
            events = self.store.past(datetime.now(self.tz))
            return jsonify({"events": [e.to_dict() for e in events]})

        @app.route('/events/future', methods=['GET'])
        def future_events():
            events = self.store.future(datetime.now(self.tz))
            return jsonify({"events": [e.to_dict() for e in events]})

        @app.route('/reminders', methods=['GET'])
        def reminders():
            items = upcoming_reminders(self.store.list(), datetime.now(self.tz))
            return jsonify({"reminders": [r.to_dict() for r in items]})

        # --- Edit sheet -----------------------------------------------------

        @app.route('/sheets', methods=['POST'])
        def open_sheet():
            data = _json_body()
            if data is None:
                return jsonify(BAD_BODY_ERROR), 400
            sheet = self._new_sheet()

            event_id = data.get("event_id")
            if event_id:
                event = self.store.get(event_id)
                if event is None:
                    return jsonify({"error": f"Event not found: {event_id}"}), 404
                sheet.open_edit(event)
            else:
                sheet.open_create()

            sheet_id = self._add_sheet(sheet)
            logger.info(f"📝 Sheet {sheet_id} opened ({sheet.state})")
            return jsonify(self._sheet_payload(sheet_id, sheet)), 201

        @app.route('/sheets/<sheet_id>', methods=['GET'])
        def get_sheet(sheet_id):
            sheet = self._get_sheet(sheet_id)
            if sheet is None:
                return jsonify({"error": "Sheet not found"}), 404
            return jsonify(self._sheet_payload(sheet_id, sheet))

        @app.route('/sheets/<sheet_id>', methods=['PATCH'])
        def update_sheet(sheet_id):
            sheet = self._get_sheet(sheet_id)
            if sheet is None:
                return jsonify({"error": "Sheet not found"}), 404
            data = _json_body()
            if data is None:
                return jsonify(BAD_BODY_ERROR), 400
            sheet.update_form(data)
            return jsonify(self._sheet_payload(sheet_id, sheet))

        @app.route('/sheets/<sheet_id>/suggest', methods=['POST'])
        def suggest_for_sheet(sheet_id):
            sheet = self._get_sheet(sheet_id)
            if sheet is None:
                return jsonify({"error": "Sheet not found"}), 404

            try:
                task = sheet.request_suggestion()
            except SuggestionPendingError as e:
                return jsonify({"error": str(e)}), 409

            if request.args.get("wait", "").lower() in ("1", "true", "yes"):
                task.wait()
                return jsonify(self._sheet_payload(sheet_id, sheet))
            return jsonify(self._sheet_payload(sheet_id, sheet)), 202

        @app.route('/sheets/<sheet_id>/apply', methods=['POST'])
        def apply_sheet_suggestion(sheet_id):
            sheet = self._get_sheet(sheet_id)
            if sheet is None:
                return jsonify({"error": "Sheet not found"}), 404

            try:
                sheet.apply_suggestion()
            except LookupError as e:
                return jsonify({"error": str(e)}), 409
            except SchemaViolationError as e:
                logger.error(f"Held suggestion could not be applied: {e}")
                return jsonify({"error": "Could not apply the suggestion."}), 422

            payload = self._sheet_payload(sheet_id, sheet)
            payload["message"] = "The suggested time has been set in the form."
            return jsonify(payload)

        @app.route('/sheets/<sheet_id>/submit', methods=['POST'])
        def submit_sheet(sheet_id):
            sheet = self._get_sheet(sheet_id)
            if sheet is None:
                return jsonify({"error": "Sheet not found"}), 404

            data = _json_body()
            if data is None:
                return jsonify(BAD_BODY_ERROR), 400
            if data:
                sheet.update_form(data)

            editing = sheet.state == EditSheet.EDITING
            try:
                event = sheet.submit()
            except FormValidationError as e:
                return jsonify({"error": "Invalid event form", "errors": e.field_errors,
                                **self._sheet_payload(sheet_id, sheet)}), 400

            self._drop_sheet(sheet_id)
            verb = "updated" if editing else "added"
            return jsonify({
                "event": event.to_dict(),
                "title": "Event Updated" if editing else "Event Created",
                "message": f'"{event.title}" has been {verb}.',
            }), 200 if editing else 201

        @app.route('/sheets/<sheet_id>', methods=['DELETE'])
        def cancel_sheet(sheet_id):
            sheet = self._get_sheet(sheet_id)
            if sheet is None:
                return jsonify({"error": "Sheet not found"}), 404
            sheet.cancel()
            self._drop_sheet(sheet_id)
            return jsonify({"sheet_id": sheet_id, "state": sheet.state})

        # --- One-shot suggestion ----------------------------------------------

        @app.route('/suggestions', methods=['POST'])
        def suggest():
            data = _json_body()
            if data is None:
                return jsonify(BAD_BODY_ERROR), 400
            response = self.suggestion_service.suggest(data)
            payload = response.to_dict()
            if not response.success:
                payload["title"] = SUGGESTION_FAILED_TITLE
            return jsonify(payload)

        @app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Endpoint not found"}), 404

        @app.errorhandler(405)
        def method_not_allowed(error):
            return jsonify({"error": "Method not allowed"}), 405

        @app.errorhandler(500)
        def internal_error(error):
            return jsonify({"error": "Internal server error"}), 500

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

        self._setup_signal_handlers()
        logger.info(f"Starting Smart Event Scheduler API on {host}:{port}")

        try:
            self.app.run(
                host=host,
                port=port,
                debug=debug,
                threaded=True,
                use_reloader=False
            )
        except Exception as e:
            logger.error(f"Failed to start server: {e}")
            raise

    def shutdown(self):
        """Graceful shutdown: close sheets and stop the suggestion workers"""
        logger.info("Shutting down Smart Event Scheduler API...")
        with self._sheets_lock:
            sheets, self.sheets = list(self.sheets.values()), {}
            self._sheet_last_used.clear()
        for sheet in sheets:
            sheet.cancel()
        self.executor.shutdown(wait=False, cancel_futures=True)


def create_app(store: Optional[EventStore] = None, llm_client=None,
               model_name: str = None) -> Flask:
    """Factory function to create Flask app"""
    api = SmartCalendarAPI(store=store, llm_client=llm_client, model_name=model_name)
    return api.app
