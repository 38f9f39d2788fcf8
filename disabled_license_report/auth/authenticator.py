"""
Authentication module — certificate-based app-only auth for Microsoft Graph.
Uses MSAL for token acquisition against Microsoft Identity Platform.
"""

from __future__ import annotations

import base64
import getpass
import logging
import sys
from typing import Optional

from cryptography.hazmat.primitives.serialization import pkcs12, Encoding, PrivateFormat, NoEncryption
from cryptography.hazmat.primitives.hashes import SHA1
import msal

from ..config import CertificateAuth, REQUIRED_PERMISSIONS, env_cert_password

logger = logging.getLogger("disabled_license_report.auth")

# Default scopes for app-only auth
APP_SCOPES = ["https://graph.microsoft.com/.default"]


class AuthenticationError(Exception):
    """Raised when authentication fails or Graph rejects the credentials."""
    pass


class Authenticator:
    """
    Handles MSAL client-credentials authentication with a PFX certificate.
    The certificate file holds the base64 text of the PFX bundle.
    """

    def __init__(self, config: CertificateAuth):
        self.config = config
        self._access_token: Optional[str] = None
        self.thumbprint: Optional[str] = None

    async def acquire_token(self) -> str:
        """Acquire an app-only access token."""
        return self._acquire_certificate_token()

    def _resolve_password(self) -> str:
        password = self.config.certificate_password or env_cert_password()
        if not password and sys.stdin is not None and sys.stdin.isatty():
            password = getpass.getpass("Enter the certificate password: ")
        return password or ""

    def load_certificate(self) -> tuple[str, str]:
        """Return (private_key_pem, thumbprint) from the configured PFX."""
        cert_path = self.config.certificate_path
        password = self._resolve_password()

        try:
            with open(cert_path, "r") as f:
                cert_base64 = f.read().strip()

            cert_bytes = base64.b64decode(cert_base64)
            password_bytes = password.encode("utf-8") if password else None

            private_key, certificate, _ = pkcs12.load_key_and_certificates(
                cert_bytes, password_bytes
            )
        except FileNotFoundError:
            raise AuthenticationError(f"Certificate file not found: {cert_path}")
        except Exception as e:
            raise AuthenticationError(f"Failed to load certificate: {e}")

        if private_key is None or certificate is None:
            raise AuthenticationError(
                f"Certificate bundle {cert_path} lacks a private key or certificate"
            )

        private_key_pem = private_key.private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        ).decode("utf-8")
        thumbprint = certificate.fingerprint(SHA1()).hex()

        expected = self.config.thumbprint.replace(":", "").replace(" ", "").lower()
        if expected and expected != thumbprint.lower():
            raise AuthenticationError(
                f"Certificate thumbprint {thumbprint} does not match configured "
                f"thumbprint {self.config.thumbprint}"
            )

        logger.info(f"Certificate loaded. Thumbprint: {thumbprint}")
        return private_key_pem, thumbprint

    def _acquire_certificate_token(self) -> str:
        """Acquire token using certificate-based client credentials."""
        logger.info("Authenticating with certificate-based app credentials...")
        private_key_pem, thumbprint = self.load_certificate()
        self.thumbprint = thumbprint

        try:
            app = msal.ConfidentialClientApplication(
                client_id=self.config.client_id,
                authority=f"https://login.microsoftonline.com/{self.config.tenant_id}",
                client_credential={
                    "thumbprint": thumbprint,
                    "private_key": private_key_pem,
                },
            )
            result = app.acquire_token_for_client(scopes=APP_SCOPES)
        except Exception as e:
            # authority discovery and the token call both go over the network
            raise AuthenticationError(f"Certificate auth failed: {type(e).__name__}: {e}") from e

        if "access_token" in result:
            self._access_token = result["access_token"]
            logger.info("Certificate authentication successful.")
            return self._access_token

        error = result.get("error_description", result.get("error", "Unknown"))
        raise AuthenticationError(f"Certificate auth failed: {error}")

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @staticmethod
    def list_required_permissions() -> dict[str, str]:
        """Return the map of required Graph API permissions."""
        return REQUIRED_PERMISSIONS
