#!/usr/bin/env python3
"""
Main entry point for the Meeting Manager

Runs the API server, answers a single natural-language query from the
command line, or runs the smoke tests against a running server.
"""

import sys
import json
import logging
from pathlib import Path

# Add the project directory to the Python path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import Config
from meeting_manager.api.flask_server import MeetingManagerAPI
from meeting_manager.errors import MeetingManagerError
from utils.logger import MeetingManagerLogger


def _setup_logging():
    MeetingManagerLogger.setup_logging(log_level=Config.LOG_LEVEL, log_file=Config.LOG_FILE)
    return logging.getLogger(__name__)


def _report_config_problems(logger):
    for problem in Config.validate():
        logger.warning(f"⚠️  Configuration: {problem}")


def run_server(host=None, port=None, debug=False):
    """Run the Flask API server"""
    logger = _setup_logging()
    logger.info("Starting Meeting Manager...")
    _report_config_problems(logger)

    try:
        api = MeetingManagerAPI()
        api.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise


def ask(query, session_id=None, force=False):
    """Send one query to the agent and return its response"""
    logger = _setup_logging()
    _report_config_problems(logger)

    api = MeetingManagerAPI()
    try:
        return api.agent.handle(query, session_id=session_id, force=force)
    except MeetingManagerError as e:
        logger.error(f"Query failed: {e.message}")
        return {"success": False, **e.to_dict()}


def run_tests(api_url="http://localhost:3000"):
    """Run smoke tests against a running server"""
    from tests.test_client import MeetingManagerSmokeClient

    logger = _setup_logging()
    logger.info(f"Running tests against {api_url}")

    client = MeetingManagerSmokeClient(api_url)
    results = client.run_test_suite()

    summary = results["summary"]
    print(f"\nTest Results:")
    print(f"  Total: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")
    print(f"  Success rate: {(summary['passed']/summary['total']*100) if summary['total'] > 0 else 0:.1f}%")
    print(f"  Avg response time: {summary['avg_response_time']:.2f}s")

    return results


def main():
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Meeting Manager')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    server_parser = subparsers.add_parser('server', help='Run API server')
    server_parser.add_argument('--host', default=Config.API_HOST, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=Config.API_PORT, help='Port to bind to')
    server_parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    ask_parser = subparsers.add_parser('ask', help='Send one natural-language query to the agent')
    ask_parser.add_argument('query', help='What to do, e.g. "show my meetings tomorrow"')
    ask_parser.add_argument('--session', default=Config.DEFAULT_SESSION_ID, help='Conversation session id')
    ask_parser.add_argument('--force', action='store_true', help='Create even if the meeting conflicts')

    test_parser = subparsers.add_parser('test', help='Run smoke tests against a running server')
    test_parser.add_argument('--url', default=f'http://localhost:{Config.API_PORT}', help='API URL to test')

    args = parser.parse_args()

    if args.command == 'server':
        run_server(host=args.host, port=args.port, debug=args.debug)

    elif args.command == 'ask':
        result = ask(args.query, session_id=args.session, force=args.force)
        print(json.dumps(result, indent=2, default=str))
        if not result.get("success"):
            sys.exit(1)

    elif args.command == 'test':
        results = run_tests(api_url=args.url)
        if results["summary"]["failed"]:
            sys.exit(1)

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
