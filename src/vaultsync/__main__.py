# Main Entry Point - Command Line Utilities
#
# The stateless helpers are useful without a backend:
#
#   vaultsync generate --length 24 --no-symbols
#   vaultsync strength 'correct horse battery staple'

import argparse
import sys

from . import __version__
from .core import EventSeverity, EventType, VaultSyncError, get_audit_logger
from .vault.generator import DEFAULT_LENGTH, PasswordOptions, generate_password
from .vault.strength import assess


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultsync",
        description="vaultsync - client-side password vault utilities",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vaultsync v{__version__}"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a random password")
    gen.add_argument(
        "--length", "-l",
        type=int,
        default=DEFAULT_LENGTH,
        help=f"Password length (default: {DEFAULT_LENGTH})"
    )
    gen.add_argument("--no-uppercase", action="store_true", help="Exclude A-Z")
    gen.add_argument("--no-lowercase", action="store_true", help="Exclude a-z")
    gen.add_argument("--no-numbers", action="store_true", help="Exclude 0-9")
    gen.add_argument("--no-symbols", action="store_true", help="Exclude symbols")
    gen.add_argument(
        "--count", "-n",
        type=int,
        default=1,
        help="How many passwords to print (default: 1)"
    )

    score = sub.add_parser("strength", help="Score a password (0-100)")
    score.add_argument("password", help="Password to score")

    return parser


def main(argv=None) -> int:
    """
    Main entry point for the vaultsync console script.

    Returns a process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        if args.command == "generate":
            options = PasswordOptions(
                length=args.length,
                include_uppercase=not args.no_uppercase,
                include_lowercase=not args.no_lowercase,
                include_numbers=not args.no_numbers,
                include_symbols=not args.no_symbols,
            )
            for _ in range(max(args.count, 1)):
                print(generate_password(options))
            return 0

        if args.command == "strength":
            report = assess(args.password)
            print(f"{report.score}/100 {report.label}")
            return 0

    except VaultSyncError as exc:
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_ERROR,
            severity=EventSeverity.WARNING,
            message=f"CLI {args.command} failed: {exc.message}",
        )
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2

    return 1


if __name__ == "__main__":
    sys.exit(main())
