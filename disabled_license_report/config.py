"""
Configuration module for the Disabled-Licensed Users Report.
Defines tenant credentials, mail routing, output locations and Graph settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """Raised when required configuration values are missing or invalid."""
    pass


# ─── Tenant Authentication ───────────────────────────────────────────────────

@dataclass
class CertificateAuth:
    """Certificate-based app-only authentication configuration."""
    tenant_id: str = ""
    client_id: str = ""
    certificate_path: str = ""     # Path to base64-encoded PFX
    certificate_password: str = "" # Falls back to env var, then prompt
    thumbprint: str = ""           # Expected SHA-1 thumbprint (optional check)


# ─── Graph API Settings ─────────────────────────────────────────────────────

GRAPH_BASE_URL = "https://graph.microsoft.com"
GRAPH_API_VERSION = "v1.0"

REQUEST_TIMEOUT_SECONDS = 60.0
CONNECT_TIMEOUT_SECONDS = 30.0

# Pagination
DEFAULT_PAGE_SIZE = 999           # Maximum items per page ($top)
MAX_PAGES_PER_ENDPOINT = 10000   # Safety cap on pagination loops

CERT_PASSWORD_ENV = "LICENSE_REPORT_CERT_PASSWORD"


# ─── Mail Settings ──────────────────────────────────────────────────────────

@dataclass
class MailConfig:
    """Who sends the report and who receives it."""
    sender: str = ""       # Mailbox the app sends as (UPN or object id)
    recipient: str = ""
    send: bool = True      # False writes the CSV without mailing it


# ─── Output Configuration ───────────────────────────────────────────────────

@dataclass
class OutputConfig:
    """Output directory and run log settings."""
    base_dir: str = ""
    timestamp: str = ""
    log_file: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        if not self.base_dir:
            self.base_dir = os.path.join(os.getcwd(), "license_reports")

    @property
    def report_dir(self) -> Path:
        return Path(self.base_dir)

    @property
    def log_path(self) -> Path:
        if self.log_file:
            return Path(self.log_file)
        return self.report_dir / "disabled_license_report.log"


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class ReportConfig:
    """Top-level configuration for a report run."""
    auth: CertificateAuth = field(default_factory=CertificateAuth)
    mail: MailConfig = field(default_factory=MailConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    tenant_name: str = ""
    verbose: bool = False

    @classmethod
    def from_file(cls, path) -> "ReportConfig":
        """Load configuration from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        config = cls()
        for section, target in (
            ("auth", config.auth),
            ("mail", config.mail),
            ("output", config.output),
        ):
            values = data.get(section) or {}
            if not isinstance(values, dict):
                raise ConfigError(f"Config section '{section}' in {path} must be an object")
            for k, v in values.items():
                if hasattr(target, k):
                    setattr(target, k, v)
        config.tenant_name = data.get("tenant_name") or ""
        config.verbose = bool(data.get("verbose", False))
        return config

    def validate(self) -> None:
        """Raise ConfigError listing every missing required value."""
        required = {
            "tenant id": self.auth.tenant_id,
            "client id": self.auth.client_id,
            "certificate path": self.auth.certificate_path,
        }
        if self.mail.send:
            required["sender address"] = self.mail.sender
            required["recipient address"] = self.mail.recipient

        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigError("Missing required configuration: " + ", ".join(missing))


# ─── Required Graph API Permissions (application) ───────────────────────────

REQUIRED_PERMISSIONS = {
    "User.Read.All": "Read disabled users and their assigned licenses",
    "Organization.Read.All": "Read subscribed SKUs (license part numbers)",
    "Mail.Send": "Send the report from the configured sender mailbox",
}


def env_cert_password() -> Optional[str]:
    return os.environ.get(CERT_PASSWORD_ENV) or None
