"""Outbound notification email."""

from .email_service import EmailService, get_email_service, notify

__all__ = ["EmailService", "get_email_service", "notify"]
