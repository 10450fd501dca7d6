"""Law office CRM lead service."""

__version__ = "0.1.0"
