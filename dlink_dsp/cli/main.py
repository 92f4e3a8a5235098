"""
Main CLI Orchestration Module

This module provides the entry point of the D-Link DSP CLI. It logs in,
runs one command and prints the result as JSON.
"""

import logging
import sys
import time
from datetime import datetime
from typing import Any

from dlink_dsp import HNAPClient, __version__

from .args import parse_args
from .formatters import (
    format_json_output,
    print_error_suggestions,
    print_json_output,
    print_summary_to_stderr,
)
from .logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run_command(client: HNAPClient, command: str) -> dict[str, Any]:
    """
    Execute one CLI command against a logged-in client.

    Returns:
        Result dictionary with a ``success`` flag
    """
    result: dict[str, Any] = {"command": command}

    if command == "status":
        result["consumption"] = client.get_power_consumption()
        result["total_consumption"] = client.get_total_power_consumption()
        result["temperature"] = client.get_temperature()
        result["is_on"] = client.get_state()
        result["success"] = result["is_on"] is not None
    elif command in ("on", "off"):
        confirmed = client.turn_on() if command == "on" else client.turn_off()
        result["success"] = confirmed
        if confirmed:
            result["is_on"] = command == "on"
    elif command == "toggle":
        is_on = client.get_state()
        if is_on is None:
            result["success"] = False
        else:
            confirmed = client.turn_off() if is_on else client.turn_on()
            result["success"] = confirmed
            result["is_on"] = (not is_on) if confirmed else is_on
    elif command == "state":
        result["is_on"] = client.get_state()
        result["success"] = result["is_on"] is not None
    elif command == "power":
        result["consumption"] = client.get_power_consumption()
        result["success"] = result["consumption"] is not None
    elif command == "total-power":
        result["total_consumption"] = client.get_total_power_consumption()
        result["success"] = result["total_consumption"] is not None
    elif command == "temperature":
        result["temperature"] = client.get_temperature()
        result["success"] = result["temperature"] is not None
    elif command == "ready":
        result["result"] = client.is_device_ready()
        result["success"] = result["result"] == "OK"
    elif command == "reboot":
        result["result"] = client.reboot()
        result["success"] = result["result"] is not None
    else:
        raise ValueError(f"Unknown command: {command}")

    return result


def main(argv=None) -> None:
    """Main entry point for the CLI application."""
    start_time = time.time()
    args = None

    try:
        args = parse_args(argv)

        setup_logging(debug=args.debug, quiet=args.quiet)

        if not args.quiet:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            print(f"D-Link DSP Client v{__version__} - {timestamp}", file=sys.stderr)
            print(f"Connecting to {args.host}:{args.port} as {args.username}", file=sys.stderr)

        client = HNAPClient(
            args.host,
            args.password,
            username=args.username,
            port=args.port,
            use_https=args.https,
            read_only=args.read_only,
            timeout=(args.connect_timeout, args.read_timeout),
            verify_ssl=args.verify_ssl,
        )

        with client:
            if not client.login():
                elapsed = time.time() - start_time
                print(f"❌ Login to {args.host} failed after {elapsed:.2f}s", file=sys.stderr)
                print_error_suggestions(debug=False)
                sys.exit(1)

            result = run_command(client, args.command)
            metrics = None
            if args.metrics:
                metrics = {
                    "performance": client.get_performance_metrics(),
                    "errors": client.get_error_analysis(),
                }

        elapsed = time.time() - start_time

        if not args.quiet:
            print_summary_to_stderr(result)

        print_json_output(format_json_output(result, args, elapsed, metrics))

        if not result["success"]:
            logger.error(f"Command {args.command} failed after {elapsed:.2f}s")
            sys.exit(1)

        logger.info(f"Command {args.command} completed in {elapsed:.2f}s")

    except KeyboardInterrupt:
        elapsed = time.time() - start_time
        print(f"Operation cancelled by user after {elapsed:.2f}s", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        elapsed = time.time() - start_time
        logger.error(f"Command failed after {elapsed:.2f}s: {e}")
        print(f"Error after {elapsed:.2f}s: {e}", file=sys.stderr)
        print_error_suggestions(debug=bool(args and args.debug))
        sys.exit(1)


if __name__ == "__main__":
    main()
