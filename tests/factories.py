"""Test data builders and ids shared by the test modules."""

import uuid
from datetime import datetime, timezone

from lawcrm.models.lead import LegacyLead, NewLead
from lawcrm.services.references import CategoryRef, LanguageRef, ReferenceMaps, StageBadge

GERMANY_ID = 1
AUSTRIA_ID = 2

CITIZENSHIP_DE = 10
WORK_VISA_AT = 11
UNPARENTED = 12

SOURCE_A = 3
SOURCE_B = 7
SOURCE_C = 9

HANDLER_ALICE = 5
SCHEDULER_BOB = 6

USER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
HANDLER_USER_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def build_refs() -> ReferenceMaps:
    """Reference maps matching the rows seeded in ``conftest``."""
    return ReferenceMaps(
        categories={
            CITIZENSHIP_DE: CategoryRef(CITIZENSHIP_DE, "Citizenship", GERMANY_ID, "Germany"),
            WORK_VISA_AT: CategoryRef(WORK_VISA_AT, "Work Visa", AUSTRIA_ID, "Austria"),
            UNPARENTED: CategoryRef(UNPARENTED, "Other"),
        },
        main_categories={GERMANY_ID: "Germany", AUSTRIA_ID: "Austria"},
        sources={SOURCE_A: "SourceA", SOURCE_B: "SourceB", SOURCE_C: "SourceC"},
        stages={
            10: StageBadge("Scheduler assigned", "#111111"),
            60: StageBadge("Client signed agreement", "#222222"),
            100: StageBadge("Success", "#333333"),
            110: StageBadge("Handler Started", "#444444"),
            150: StageBadge("Application submitted", "#555555"),
            200: StageBadge("Case Closed", "#666666"),
        },
        employees={HANDLER_ALICE: "Alice Handler", SCHEDULER_BOB: "Bob Scheduler"},
        languages=[
            LanguageRef(1, "English", "EN"),
            LanguageRef(2, "Hebrew", "HE"),
            LanguageRef(3, "German", "DE"),
        ],
    )


def new_lead(id: int, **fields) -> NewLead:
    defaults = {
        "lead_number": str(id),
        "name": f"New lead {id}",
        "stage": 10,
        "source_id": SOURCE_A,
        "created_at": utc(2024, 5, 1),
    }
    defaults.update(fields)
    return NewLead(id=id, **defaults)


def legacy_lead(id: int, **fields) -> LegacyLead:
    defaults = {
        "name": f"Legacy lead {id}",
        "stage": 10,
        "source_id": SOURCE_A,
        "cdate": utc(2024, 4, 1),
    }
    defaults.update(fields)
    return LegacyLead(id=id, **defaults)
