"""Notification package — report delivery by email."""

from .mailer import GraphMailer

__all__ = ["GraphMailer"]
