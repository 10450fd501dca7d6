"""Database models."""

from lawcrm.models.base import Base
from lawcrm.models.taxonomy import Category, Currency, Language, LeadSource, LeadStage, MainCategory
from lawcrm.models.lead import LeadStageHistory, LegacyLead, NewLead
from lawcrm.models.employee import Department, Employee, User
from lawcrm.models.payment import PaymentPlan, PaymentPlanRow
from lawcrm.models.email import Email
from lawcrm.models.database import async_engine, async_session_maker, init_db, close_db

__all__ = [
    "Base",
    "Category",
    "Currency",
    "Language",
    "LeadSource",
    "LeadStage",
    "MainCategory",
    "NewLead",
    "LegacyLead",
    "LeadStageHistory",
    "Department",
    "Employee",
    "User",
    "PaymentPlan",
    "PaymentPlanRow",
    "Email",
    "async_engine",
    "async_session_maker",
    "init_db",
    "close_db",
]
