"""
Output Formatting Module

This module provides functions for formatting command results as JSON and
as a human-readable summary.
"""

import json
import logging
import sys
from datetime import datetime

from dlink_dsp import __version__

logger = logging.getLogger(__name__)


def format_value(value, unit: str = "") -> str:
    """Render a reading for the summary; None becomes "Unavailable"."""
    if value is None:
        return "Unavailable"
    if isinstance(value, bool):
        return "On" if value else "Off"
    return f"{value}{unit}"


def print_summary_to_stderr(result: dict) -> None:
    """
    Print a human-readable summary to stderr (so JSON output to stdout is clean).

    Args:
        result: Command result dictionary
    """
    logger.debug("Printing command summary to stderr")

    print("=" * 60, file=sys.stderr)
    print("D-LINK DSP SOCKET", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(f"Command: {result.get('command')}", file=sys.stderr)

    if "is_on" in result:
        print(f"Relay: {format_value(result['is_on'])}", file=sys.stderr)
    if "consumption" in result:
        print(f"Power: {format_value(result['consumption'], ' W')}", file=sys.stderr)
    if "total_consumption" in result:
        print(f"Total Consumption: {format_value(result['total_consumption'], ' kWh')}", file=sys.stderr)
    if "temperature" in result:
        print(f"Temperature: {format_value(result['temperature'], ' °C')}", file=sys.stderr)
    if "result" in result:
        print(f"Result: {format_value(result['result'])}", file=sys.stderr)

    print(f"Success: {result.get('success', False)}", file=sys.stderr)
    print("=" * 60, file=sys.stderr)


def format_json_output(result: dict, args, elapsed_time: float, metrics: dict = None) -> dict:
    """
    Add query metadata to a command result.

    Args:
        result: Command result dictionary
        args: Parsed command line arguments
        elapsed_time: Total elapsed time for the operation
        metrics: Optional performance and error analysis

    Returns:
        Complete JSON output dictionary
    """
    json_output = dict(result)
    json_output["query_timestamp"] = datetime.now().isoformat()
    json_output["query_host"] = args.host
    json_output["client_version"] = __version__
    json_output["elapsed_time"] = elapsed_time
    json_output["configuration"] = {
        "port": args.port,
        "https": args.https,
        "read_only": args.read_only,
        "timeout": [args.connect_timeout, args.read_timeout],
    }
    if metrics:
        json_output["metrics"] = metrics

    return json_output


def print_json_output(json_data: dict) -> None:
    """Print JSON output to stdout."""
    logger.debug("Outputting JSON to stdout")
    print(json.dumps(json_data, indent=2))


def print_error_suggestions(debug: bool = False) -> None:
    """
    Print helpful error suggestions.

    Args:
        debug: Whether debug mode is enabled
    """
    if debug:
        import traceback

        traceback.print_exc(file=sys.stderr)
    else:
        print("\nTroubleshooting suggestions:", file=sys.stderr)
        print("1. Verify the PIN printed on the socket label", file=sys.stderr)
        print("2. Check that the socket IP address is reachable", file=sys.stderr)
        print("3. Try --https if the firmware only accepts HTTPS", file=sys.stderr)
        print("4. Try with --debug for more detailed error information", file=sys.stderr)
