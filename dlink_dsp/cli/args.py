"""
Command Line Argument Parsing Module

This module handles argument parsing and validation for the D-Link DSP CLI.
"""

import argparse
import logging

logger = logging.getLogger(__name__)

COMMANDS = ("status", "on", "off", "toggle", "state", "power", "total-power", "temperature", "ready", "reboot")


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Control a D-Link DSP smart socket and output JSON data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --host 192.168.0.60 --password 123456
  %(prog)s --host 192.168.0.60 --password 123456 on
  %(prog)s --host 192.168.0.60 --password 123456 power --quiet

Commands:
  status       Power, total consumption, temperature and relay state (default)
  on / off     Switch the relay
  toggle       Switch the relay to the opposite of its current state
  state        Relay state only
  power        Current consumption in watts
  total-power  Accumulated consumption in kWh
  temperature  Internal temperature in degrees Celsius
  ready        Ask whether the device is ready
  reboot       Restart the socket

Output:
  JSON result on stdout, summary on stderr. Exit code 1 on failure.
  Use --quiet for pure JSON on stdout.
        """,
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="status",
        choices=COMMANDS,
        help="Operation to run (default: %(default)s)",
    )

    # Connection settings
    parser.add_argument("--host", required=True, help="Socket hostname or IP address (required)")
    parser.add_argument(
        "--port",
        default=80,
        type=int,
        help="Web service port (default: %(default)s)",
    )
    parser.add_argument(
        "--username",
        default="admin",
        help="Login username (default: %(default)s)",
    )
    parser.add_argument("--password", required=True, help="Device PIN printed on the label (required)")
    parser.add_argument("--https", action="store_true", help="Talk HTTPS instead of HTTP")
    parser.add_argument(
        "--verify-ssl",
        action="store_true",
        help="Verify the device certificate when using HTTPS",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Refuse state-changing commands",
    )

    # Output options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging output to stderr",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress summary output to stderr (JSON only to stdout)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Include request timings and captured errors in the JSON output",
    )

    # Timeouts
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=3,
        help="Connection timeout in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=12,
        help="Read timeout in seconds (default: %(default)s)",
    )

    return parser


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logger.debug(f"Parsed arguments: {args}")

    validate_args(args)

    return args


def validate_args(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Raises:
        ValueError: If arguments are invalid
    """
    if not args.host:
        raise ValueError("Host must not be empty")

    if args.connect_timeout <= 0 or args.read_timeout <= 0:
        raise ValueError("Timeouts must be greater than 0")

    if args.port < 1 or args.port > 65535:
        raise ValueError("Port must be between 1 and 65535")

    logger.debug("Arguments validated successfully")
