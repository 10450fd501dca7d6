"""Data access repositories."""

from lawcrm.repositories.email_repo import EmailRepository
from lawcrm.repositories.lead_repo import DualQueryResult, DualSourceLeadRepository, LeadRepository
from lawcrm.repositories.payment_repo import PaymentRepository
from lawcrm.repositories.reference_repo import ReferenceRepository
from lawcrm.repositories.user_repo import UserRepository

__all__ = [
    "DualQueryResult",
    "DualSourceLeadRepository",
    "EmailRepository",
    "LeadRepository",
    "PaymentRepository",
    "ReferenceRepository",
    "UserRepository",
]
