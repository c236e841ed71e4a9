#!/usr/bin/env python3
"""
Main entry point for the Smart Event Scheduler

Runs the API server, a one-shot suggestion from a JSON file, or the smoke
client against a running server.
"""

import json
import logging
from datetime import datetime

from config.settings import Config
from src.ai_agent.llm_client import create_llm_client
from src.api.flask_server import SmartCalendarAPI
from src.calendar.event_store import EventStore
from src.calendar.mock_events import create_mock_events
from src.scheduler.suggestion_service import SuggestionService
from utils.logger import SmartCalendarLogger


def suggest_event_time(request_data, store: EventStore = None, llm_client=None):
    """
    Run the suggestion pipeline once.

    Args:
        request_data (dict): {"duration": ..., "preferences": ...}
        store: existing schedule; the mock schedule when omitted
        llm_client: model backend; the configured one when omitted

    Returns:
        dict: {"success": True, "data": {...}} or {"success": False, "error": "..."}
    """
    if store is None:
        store = EventStore(create_mock_events(datetime.now(Config.get_timezone())))
    service = SuggestionService(store, llm_client or create_llm_client())
    return service.suggest(request_data).to_dict()


def run_server(host=None, port=None, model=None):
    """Run the Flask API server"""
    SmartCalendarLogger.setup_logging(log_level=Config.LOG_LEVEL)
    logger = logging.getLogger(__name__)

    logger.info("Starting Smart Event Scheduler...")

    try:
        api = SmartCalendarAPI(model_name=model)
        api.run(host=host, port=port)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise


def run_smoke(api_url="http://localhost:5000"):
    """Run the smoke client against a running server"""
    from scripts.smoke_client import SmartCalendarSmokeClient

    SmartCalendarLogger.setup_logging(log_level="INFO")
    logger = logging.getLogger(__name__)

    logger.info(f"Running smoke checks against {api_url}")

    client = SmartCalendarSmokeClient(api_url)
    results = client.run_smoke_suite()

    summary = results["summary"]
    print(f"\nSmoke Results:")
    print(f"  Total: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")

    return results


def main():
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Smart Event Scheduler')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    server_parser = subparsers.add_parser('server', help='Run the API server')
    server_parser.add_argument('--host', default=None, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    server_parser.add_argument('--model', default=None, help='Model name override')

    smoke_parser = subparsers.add_parser('smoke', help='Run smoke checks against a server')
    smoke_parser.add_argument('--url', default='http://localhost:5000', help='API URL to check')

    suggest_parser = subparsers.add_parser('suggest', help='Suggest a time for one request')
    suggest_parser.add_argument('input_file', help='Input JSON file with duration/preferences')
    suggest_parser.add_argument('--output', help='Output JSON file')

    args = parser.parse_args()

    if args.command == 'server':
        run_server(host=args.host, port=args.port, model=args.model)

    elif args.command == 'smoke':
        run_smoke(api_url=args.url)

    elif args.command == 'suggest':
        SmartCalendarLogger.setup_logging(log_level=Config.LOG_LEVEL)
        with open(args.input_file, 'r') as f:
            request_data = json.load(f)

        result = suggest_event_time(request_data)

        if args.output:
            with open(args.output, 'w') as f:
                json.dump(result, f, indent=2)
        else:
            print(json.dumps(result, indent=2))

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
