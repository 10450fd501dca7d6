"""Clients for external services."""

from lawcrm.clients.mailbox import MailboxClient

__all__ = ["MailboxClient"]
