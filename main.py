"""
probe-control - command line entry point

Commands:
    serve   Start the local control API (FastAPI via uvicorn)
    run     Run a test group (or 'all') in the foreground, printing events
    paths   Show the configured paths
"""

import argparse
import asyncio
import json
import os
import signal
import sys

from dotenv import load_dotenv

from src.infra import settings
from src.infra.logging_config import setup_logging


load_dotenv()

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logger = setup_logging(log_level, log_dir=str(settings.get_logs_dir()))


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="probe-control: test group runner and autorun reminder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 8000
  python main.py run all
  python main.py run websites --input-file urls.txt
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Start the local control API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    run = subparsers.add_parser("run", help="Run a test group in the foreground")
    run.add_argument("target", help="Test group id or 'all'")
    run.add_argument("--input-file", default=None, help="URL list for the websites group")

    subparsers.add_parser("paths", help="Show configured paths")

    return parser.parse_args(argv)


async def run_foreground(target: str, input_file=None) -> int:
    """
    Run a target through the control channel and print events as JSON lines.

    SIGINT/SIGTERM request a stop: the current group is terminated and the
    remaining groups are skipped.

    Returns:
        Process exit code (1 if any group failed or the run was rejected)
    """
    from src.channel import ControlChannel

    settings.ensure_data_directories()
    channel = ControlChannel.create()
    queue = channel.subscribe()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(
                signum, lambda: asyncio.ensure_future(channel.send("stop"))
            )
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    if not await channel.send("run", {"target": target, "inputFile": input_file}):
        logger.error(f"Run of '{target}' rejected")
        return 1

    failed = False
    while True:
        event = await queue.get()
        print(json.dumps(event.to_dict()), flush=True)
        if event.name == "error":
            failed = True
        if event.name == "completed":
            break

    await channel.shutdown()
    return 1 if failed else 0


def main(argv=None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    if args.command == "serve":
        import uvicorn
        logger.info(f"Starting control API on {args.host}:{args.port}")
        uvicorn.run("src.api.main:app", host=args.host, port=args.port)

    elif args.command == "run":
        sys.exit(asyncio.run(run_foreground(args.target, args.input_file)))

    elif args.command == "paths":
        for name, value in settings.get_all_paths().items():
            print(f"{name}: {value}")


if __name__ == "__main__":
    main()
