#!/usr/bin/env python3
"""
SiteAudit CLI

Command-line runner for saved audit sessions.

Usage:
    siteaudit score --session session.json
    siteaudit report --session session.json --out reports/
    siteaudit publish --session session.json --url https://example/hook

Exit Codes:
    0   OK              - Command completed
    10  INPUT_INVALID   - Session or config file invalid
    11  REPORT_FAILED   - Document could not be generated
    12  PUBLISH_FAILED  - Webhook did not accept the metrics
    20  INTERNAL_ERROR  - Unexpected internal error
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .exceptions import (
    InputInvalidError,
    ReportGenerationError,
    SchemaInvalidError,
    wrap_internal_exception,
)
from .loader import load_scoring_config, load_session
from .pipeline import compile_report, report_filename
from .publish import publish_metrics
from .scoring import evaluate_alerts, score


class ExitCode:
    """Deterministic exit codes for pipeline integration."""
    OK = 0
    INPUT_INVALID = 10
    REPORT_FAILED = 11
    PUBLISH_FAILED = 12
    INTERNAL_ERROR = 20


class Colors:
    """ANSI color codes for terminal output."""
    BOLD = '\033[1m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        cls.BOLD = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.END = ''


def print_header(text: str):
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.END}")


def print_success(text: str):
    print(f"{Colors.GREEN}[OK] {text}{Colors.END}")


def print_error(text: str):
    print(f"{Colors.RED}[ERROR] {text}{Colors.END}", file=sys.stderr)


def print_warning(text: str):
    print(f"{Colors.YELLOW}[WARN] {text}{Colors.END}")


def print_kv(key: str, value: str, indent: int = 0):
    spaces = "  " * indent
    print(f"{spaces}{Colors.BOLD}{key}:{Colors.END} {value}")


# ============================================================================
# COMMANDS
# ============================================================================

def _load(args):
    session = load_session(args.session)
    if args.config:
        session = session.with_config(load_scoring_config(args.config, session.config))
    return session


def cmd_score(args):
    """Print the compliance snapshot for a session."""
    session = _load(args)
    snapshot = score(session)
    alerts = evaluate_alerts(snapshot, session.config)

    if args.json:
        print(json.dumps({"snapshot": snapshot.to_dict(), "alerts": alerts.to_dict()}, indent=2))
        return ExitCode.OK

    print_header(f"SiteAudit - {session.site_name or 'Unnamed site'}")
    print_kv("Total Assets Checked", str(snapshot.total_assets_checked))
    print_kv("Maintenance Defects", str(snapshot.defect_total))
    print_kv("Site Issue Score", snapshot.site_issue_score)
    print_kv("Compliance", f"{snapshot.compliance_percentage}%")
    if alerts.sis_high:
        print_warning(f"Site issue score above threshold {session.config.sis_threshold}")
    if alerts.compliance_low:
        print_warning(f"Compliance below threshold {session.config.compliance_threshold:g}%")
    return ExitCode.OK


def cmd_report(args):
    """Write the .docx report for a session."""
    session = _load(args)
    report = compile_report(session, max_workers=args.workers)

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / report_filename(session.site_name)
    path.write_bytes(report.content)

    print_success(f"Report written: {path}")
    print_kv("Images embedded", str(report.tree.image_count))
    return ExitCode.OK


def cmd_publish(args):
    """Send the session's metrics to the webhook."""
    session = _load(args)
    result = publish_metrics(session, args.url, timeout=args.timeout)
    if result.success:
        print_success(result.message)
        return ExitCode.OK
    print_error(result.message)
    return ExitCode.PUBLISH_FAILED


# ============================================================================
# MAIN
# ============================================================================

def main(argv=None):
    """Main entry point."""
    if not sys.stdout.isatty():
        Colors.disable()

    parser = argparse.ArgumentParser(
        prog="siteaudit",
        description="SiteAudit CLI - score and report saved audit sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0   OK              Command completed
  10  INPUT_INVALID   Invalid session or config file
  11  REPORT_FAILED   Report generation failed
  12  PUBLISH_FAILED  Webhook did not accept the metrics
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_session_args(p):
        p.add_argument("--session", "-s", required=True, help="Session JSON file")
        p.add_argument("--config", "-c", help="Scoring config YAML overriding the session's")

    score_parser = subparsers.add_parser("score", help="Print the compliance snapshot")
    add_session_args(score_parser)
    score_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    score_parser.set_defaults(func=cmd_score)

    report_parser = subparsers.add_parser("report", help="Write the .docx report")
    add_session_args(report_parser)
    report_parser.add_argument("--out", "-o", default="./reports", help="Output directory")
    report_parser.add_argument("--workers", "-w", type=int,
                               default=int(os.getenv("SA_IMAGE_WORKERS", "4")),
                               help="Threads used to decode photos")
    report_parser.set_defaults(func=cmd_report)

    publish_parser = subparsers.add_parser("publish", help="Send metrics to a webhook")
    add_session_args(publish_parser)
    publish_parser.add_argument("--url", "-u", default=os.getenv("SA_PUBLISH_WEBHOOK_URL", ""),
                                help="Webhook URL (default: $SA_PUBLISH_WEBHOOK_URL)")
    publish_parser.add_argument("--timeout", type=float, default=10.0, help="Request timeout in seconds")
    publish_parser.set_defaults(func=cmd_publish)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (SchemaInvalidError, InputInvalidError) as e:
        print_error(str(e))
        return ExitCode.INPUT_INVALID
    except ReportGenerationError as e:
        print_error(str(e))
        return ExitCode.REPORT_FAILED
    except Exception as e:
        error = wrap_internal_exception(e, f"Unexpected error: {e}")
        print_error(str(error))
        if isinstance(error, (SchemaInvalidError, InputInvalidError)):
            return ExitCode.INPUT_INVALID
        return ExitCode.INTERNAL_ERROR


if __name__ == "__main__":
    sys.exit(main())
