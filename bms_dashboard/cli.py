# bms_dashboard/cli.py
import argparse

def build_parser():
    parser = argparse.ArgumentParser(
        prog="bms-dashboard",
        description="Battery management controller dashboard"
    )

    parser.add_argument(
        "--config",
        default="bms_dashboard.conf",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--address",
        help="Controller address (host or host:port); overrides [controller] address"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress log output"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text"
    )

    parser.add_argument(
        "--raw",
        action="store_true",
        help="Disable outlier sanitization and show raw controller values"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # One poll cycle
    sub.add_parser("snapshot", help="Fetch and print one snapshot")

    # Continuous polling
    cmd_watch = sub.add_parser(
        "watch",
        help="Poll the controller at the configured rate until interrupted",
    )
    cmd_watch.add_argument(
        "--count",
        type=int,
        default=None,
        help="Stop after this many completed poll cycles",
    )

    return parser
