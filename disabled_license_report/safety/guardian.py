"""
Safety Guardian — Keeps the report job from modifying the tenant.
Reads are always allowed; the only permitted write is sending the report mail.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("disabled_license_report.safety")

# ─── Blocked HTTP Methods ────────────────────────────────────────────────────

READ_METHODS = {"GET", "HEAD", "OPTIONS"}
WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# The one write this job performs
SAFE_POST_ENDPOINTS = [
    re.compile(r"/users/[^/]+/sendMail$", re.IGNORECASE),
]


class SafetyViolation(Exception):
    """Raised when a request other than a read or the report mail is attempted."""
    pass


class SafetyGuardian:
    """
    Validates every outbound HTTP request before it leaves the process.
    Maintains an audit record of checks and violations.
    """

    def __init__(self):
        self.violations: list[dict] = []
        self.checks_performed: int = 0
        self.started_at: str = datetime.now(timezone.utc).isoformat()

    def validate_request(self, method: str, url: str, body: Optional[dict] = None) -> bool:
        """
        Validate a request.
        Returns True if allowed, raises SafetyViolation if not.
        """
        self.checks_performed += 1
        method_upper = method.upper()

        if method_upper in READ_METHODS:
            return True

        if method_upper == "POST":
            path = url.split("?", 1)[0]
            for pattern in SAFE_POST_ENDPOINTS:
                if pattern.search(path):
                    return True

        reason = (
            "Write HTTP method blocked" if method_upper in WRITE_METHODS
            else "Unknown HTTP method blocked"
        )
        self._record_violation(method_upper, url, reason)
        raise SafetyViolation(f"SAFETY VIOLATION: {reason}: {method_upper} {url}")

    def _record_violation(self, method: str, url: str, reason: str):
        violation = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": method,
            "url": url,
            "reason": reason,
        }
        self.violations.append(violation)
        logger.critical(f"SAFETY VIOLATION: {reason} — {method} {url}")

    def get_audit_record(self) -> dict:
        """Return the safety audit record for the run log."""
        return {
            "safety_guardian": {
                "started_at": self.started_at,
                "checks_performed": self.checks_performed,
                "violations_detected": len(self.violations),
                "violations": self.violations,
                "status": "CLEAN" if not self.violations else "VIOLATIONS_DETECTED",
            }
        }
