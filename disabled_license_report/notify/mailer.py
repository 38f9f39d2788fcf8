"""
Graph mail dispatcher — sends the report through the sender mailbox's sendMail.
"""

from __future__ import annotations

import base64
import logging
from urllib.parse import quote

from ..graph.client import GraphClient

logger = logging.getLogger("disabled_license_report.notify")

CSV_CONTENT_TYPE = "text/csv"


class GraphMailer:
    """Sends one HTML message with a single file attachment. No retry."""

    def __init__(self, graph: GraphClient, sender: str):
        self.graph = graph
        self.sender = sender

    def build_message(
        self,
        subject: str,
        html_body: str,
        attachment_bytes: bytes,
        attachment_filename: str,
        recipient: str,
    ) -> dict:
        return {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html_body},
                "toRecipients": [
                    {"emailAddress": {"address": recipient}},
                ],
                "attachments": [
                    {
                        "@odata.type": "#microsoft.graph.fileAttachment",
                        "name": attachment_filename,
                        "contentType": CSV_CONTENT_TYPE,
                        "contentBytes": base64.b64encode(attachment_bytes).decode("ascii"),
                    }
                ],
            },
            "saveToSentItems": True,
        }

    async def send(
        self,
        subject: str,
        html_body: str,
        attachment_bytes: bytes,
        attachment_filename: str,
        recipient: str,
    ) -> None:
        """Send the message; Graph errors propagate to the caller."""
        payload = self.build_message(
            subject, html_body, attachment_bytes, attachment_filename, recipient
        )
        logger.info(
            f"Sending '{subject}' from {self.sender} to {recipient} "
            f"with {attachment_filename} ({len(attachment_bytes)} bytes)"
        )
        await self.graph.post(f"users/{quote(self.sender, safe='@')}/sendMail", json_body=payload)
        logger.info("Report email accepted by Graph.")
