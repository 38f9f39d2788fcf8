"""
Disabled-Licensed Users Report — Main Orchestrator

Usage:
    python -m disabled_license_report --config report.json
    python -m disabled_license_report --tenant-id ... --client-id ... \\
        --cert-path ./base64.txt --sender reports@contoso.com --recipient itops@contoso.com
    python -m disabled_license_report --config report.json --no-send

Intended to be triggered once per run by an external scheduler
(cron, Task Scheduler). Exit code 0 means the report was written and sent.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from . import __version__
from .config import ReportConfig, ConfigError
from .safety.guardian import SafetyGuardian, SafetyViolation
from .auth.authenticator import Authenticator, AuthenticationError
from .graph.client import GraphClient, GraphAPIError
from .collectors import DirectoryCollector
from .reconciliation import reconcile, Report
from .reporting import (
    export_csv,
    render_email_body,
    build_subject,
    ReportWriteError,
)
from .notify import GraphMailer

logger = logging.getLogger("disabled_license_report")

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

RUN_FAILURES = (AuthenticationError, GraphAPIError, ReportWriteError, SafetyViolation)


@dataclass
class RunResult:
    report: Report
    csv_path: Path
    sent: bool


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="disabled_license_report",
        description="Report disabled users that still hold licenses and email the result",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to JSON configuration file")
    parser.add_argument("--tenant-id", help="Entra tenant ID (overrides config)")
    parser.add_argument("--client-id", help="App registration client ID (overrides config)")
    parser.add_argument("--cert-path", help="Path to base64-encoded PFX certificate")
    parser.add_argument("--thumbprint", help="Expected certificate thumbprint")
    parser.add_argument("--sender", help="Mailbox the report is sent from")
    parser.add_argument("--recipient", help="Address the report is sent to")
    parser.add_argument("--output-dir", "-o", type=Path, help="Directory for the CSV report")
    parser.add_argument("--tenant-name", help="Display name for the tenant in the email")
    parser.add_argument("--log-file", type=Path, help="Append-only run log (default: <output-dir>/disabled_license_report.log)")
    parser.add_argument("--no-send", action="store_true", help="Write the CSV but do not send the email")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ReportConfig:
    """Build the run configuration from a config file and CLI overrides."""
    config = ReportConfig.from_file(args.config) if args.config else ReportConfig()

    overrides = [
        (config.auth, "tenant_id", args.tenant_id),
        (config.auth, "client_id", args.client_id),
        (config.auth, "certificate_path", args.cert_path),
        (config.auth, "thumbprint", args.thumbprint),
        (config.mail, "sender", args.sender),
        (config.mail, "recipient", args.recipient),
    ]
    for target, attr, value in overrides:
        if value:
            setattr(target, attr, value)

    if args.output_dir:
        config.output.base_dir = str(args.output_dir)
    if args.log_file:
        config.output.log_file = str(args.log_file)
    if args.tenant_name:
        config.tenant_name = args.tenant_name
    if args.no_send:
        config.mail.send = False
    if args.verbose:
        config.verbose = True

    config.validate()
    return config


def configure_logging(log_path: Optional[Path], verbose: bool = False) -> None:
    """Console output plus an append-mode run log."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_path is None:
        return
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning(f"Run log {log_path} unavailable, logging to console only: {e}")
        return
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

def _default_client(token: str, guardian: SafetyGuardian) -> GraphClient:
    return GraphClient(access_token=token, guardian=guardian)


async def run_report(
    config: ReportConfig,
    authenticator_factory: Callable = Authenticator,
    client_factory: Callable[[str, SafetyGuardian], GraphClient] = _default_client,
    now: Optional[datetime] = None,
) -> RunResult:
    """
    Authenticate, collect, reconcile, write and send.
    The Graph session is closed on every exit path.
    """
    run_id = config.output.timestamp
    generated_at = now or datetime.now(timezone.utc)

    print("\n🔐 Authenticating...")
    authenticator = authenticator_factory(config.auth)
    token = await authenticator.acquire_token()

    guardian = SafetyGuardian()
    async with client_factory(token, guardian) as client:
        print("📥 Collecting licenses and disabled users...")
        collector = DirectoryCollector(client)
        skus = await collector.list_license_skus()
        disabled_users = await collector.list_disabled_users()

        report = reconcile(skus, disabled_users, generated_at=generated_at)
        logger.info(
            f"Disabled users: {report.total_disabled_users}; "
            f"with licenses: {report.disabled_with_licenses}"
        )

        csv_path = export_csv(report, config.output.report_dir, run_id)
        print(f"  📊 CSV:        {csv_path}")

        sent = False
        if config.mail.send:
            try:
                attachment = csv_path.read_bytes()
            except OSError as e:
                raise ReportWriteError(csv_path, e) from e

            mailer = GraphMailer(client, config.mail.sender)
            await mailer.send(
                subject=build_subject(report),
                html_body=render_email_body(report, config.tenant_name, csv_path.name),
                attachment_bytes=attachment,
                attachment_filename=csv_path.name,
                recipient=config.mail.recipient,
            )
            sent = True
            print(f"  ✉  Sent to:    {config.mail.recipient}")
        else:
            logger.info("Email delivery disabled (--no-send); report written only.")

        logger.debug(f"Graph stats: {client.get_stats()}")

    logger.debug(f"Safety audit: {guardian.get_audit_record()}")
    return RunResult(report=report, csv_path=csv_path, sent=sent)


def main(argv: Optional[list[str]] = None) -> int:
    """Run once and return the process exit code."""
    args = parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as e:
        configure_logging(None)
        logger.error(str(e))
        return EXIT_CONFIG

    configure_logging(config.output.log_path, config.verbose)

    print("=" * 70)
    print(f" Disabled-Licensed Users Report v{__version__}")
    print("=" * 70)
    logger.info(f"Run {config.output.timestamp} started; output: {config.output.report_dir.resolve()}")

    try:
        result = asyncio.run(run_report(config))
    except RUN_FAILURES as e:
        logger.exception(f"Run failed: {type(e).__name__}: {e}")
        print(f"\n❌ Run failed: {e}")
        return EXIT_FAILED
    except Exception as e:
        logger.exception(f"Run failed with unexpected error: {type(e).__name__}: {e}")
        print(f"\n❌ Run failed: {type(e).__name__}: {e}")
        return EXIT_FAILED

    logger.info(
        f"Run {config.output.timestamp} complete: {result.report.disabled_with_licenses} "
        f"of {result.report.total_disabled_users} disabled users hold licenses; "
        f"sent={result.sent}"
    )
    print("\n" + "=" * 70)
    print(" RUN COMPLETE")
    print("=" * 70)
    return EXIT_OK


def cli():
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
