"""Project new and legacy leads onto one :class:`NormalizedLead` shape."""

import html
import json
import re
from decimal import Decimal
from typing import Any

import structlog

from lawcrm.models.lead import LEGACY_STATUS_INACTIVE, LegacyLead, NewLead
from lawcrm.models.taxonomy import Currency
from lawcrm.schemas.lead import NormalizedLead
from lawcrm.services.references import ReferenceMaps

logger = structlog.get_logger(__name__)

DEFAULT_CURRENCY = "NIS"
LEGACY_ID_PREFIX = "legacy_"

CURRENCY_BY_ID = {1: "NIS", 2: "USD", 3: "EUR", 4: "GBP"}

CURRENCY_BY_TEXT = {
    "₪": "NIS",
    "ILS": "NIS",
    "NIS": "NIS",
    "$": "USD",
    "USD": "USD",
    "€": "EUR",
    "EUR": "EUR",
    "£": "GBP",
    "GBP": "GBP",
}

CURRENCY_SYMBOLS = {"NIS": "₪", "USD": "$", "EUR": "€", "GBP": "£"}

TRUTHY_TEXT = {"true", "1", "yes", "t", "y"}

_TAG_RE = re.compile(r"<[^>]+>")
_BREAK_RE = re.compile(r"<\s*(br|/p|/div|/li)\s*/?\s*>", re.IGNORECASE)
_SPACE_RE = re.compile(r"[ \t\r\f\v\xa0]+")


def _currency_from_text(text: str | None) -> str | None:
    if not text:
        return None
    key = text.strip()
    return CURRENCY_BY_TEXT.get(key.upper(), CURRENCY_BY_TEXT.get(key))


def resolve_currency(value: Any, joined: Currency | None = None) -> str:
    """Currency code for a stored value.

    Tries the joined currency record, then symbol or code text, then the
    numeric id table. Anything else is NIS.
    """
    if joined is not None:
        for text in (joined.iso_code, joined.name):
            code = _currency_from_text(text)
            if code:
                return code
            if text and text.strip():
                return text.strip().upper()

    if isinstance(value, str):
        code = _currency_from_text(value)
        if code:
            return code
        if value.strip().isdigit():
            value = int(value.strip())

    if isinstance(value, int) and not isinstance(value, bool):
        return CURRENCY_BY_ID.get(value, DEFAULT_CURRENCY)

    return DEFAULT_CURRENCY


def currency_symbol(code: str | None) -> str:
    return CURRENCY_SYMBOLS.get((code or DEFAULT_CURRENCY).upper(), code or CURRENCY_SYMBOLS[DEFAULT_CURRENCY])


def strip_html(text: str) -> str:
    """Drop tags, decode entities, collapse whitespace on each line."""
    text = _BREAK_RE.sub("\n", text)
    text = html.unescape(_TAG_RE.sub("", text))
    lines = (_SPACE_RE.sub(" ", line).strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def _format_key(key: str) -> str:
    return key.replace("_", " ").strip().title()


def parse_structured_text(value: Any) -> str | None:
    """Readable text from a notes/facts column.

    Columns may hold a JSON object, a JSON string, HTML, or plain text.
    Never raises; unparseable input falls back to stripped text.
    """
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        parsed = value
    else:
        text = str(value)
        if not text.strip():
            return None
        try:
            parsed = json.loads(text)
        except ValueError:
            return strip_html(text) or None

    if isinstance(parsed, dict):
        lines = [
            f"{_format_key(str(key))}: {strip_html(str(item))}"
            for key, item in parsed.items()
            if item is not None and item != ""
        ]
        return "\n".join(lines) or None
    if isinstance(parsed, list):
        lines = [strip_html(str(item)) for item in parsed if item not in (None, "")]
        return "\n".join(line for line in lines if line) or None
    if isinstance(parsed, str):
        return strip_html(parsed) or None
    return str(parsed)


def legacy_eligible(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_TEXT


def _amount(value: Decimal | float | int | None) -> float | None:
    if value is None:
        return None
    return float(value)


def normalize_new_lead(lead: NewLead, refs: ReferenceMaps, display_number: str) -> NormalizedLead:
    """Normalize a row from ``leads``."""
    badge = refs.stage_badge(lead.stage)
    active = lead.unactivated_at is None
    handler_name = refs.employee_name(lead.case_handler_id) if lead.case_handler_id else None

    return NormalizedLead(
        id=lead.id,
        raw_id=lead.id,
        lead_type="new",
        lead_number=lead.lead_number,
        display_lead_number=display_number,
        master_id=lead.master_id,
        name=lead.name,
        email=lead.email,
        phone=lead.phone,
        topic=lead.topic,
        stage=lead.stage,
        stage_name=badge.name,
        stage_colour=badge.colour,
        category=refs.category_display(lead.category_id, lead.category),
        category_id=lead.category_id,
        main_category=refs.main_category_name(lead.category_id),
        source=refs.source_name(lead.source_id, lead.source),
        source_id=lead.source_id,
        language=refs.language_name(lead.language_id, lead.language),
        active=active,
        status="active" if active else "inactive",
        eligible=bool(lead.eligible),
        handler_id=lead.case_handler_id,
        handler_name=handler_name or (lead.handler or None),
        roles={
            "scheduler": refs.employee_name(lead.meeting_scheduler_id) or lead.scheduler,
            "manager": refs.employee_name(lead.meeting_manager_id) or lead.manager,
            "lawyer": refs.employee_name(lead.meeting_lawyer_id) or lead.lawyer,
            "expert": refs.employee_name(lead.expert_id) or lead.expert,
            "closer": refs.employee_name(lead.closer_id) or lead.closer,
        },
        balance=_amount(lead.balance),
        balance_currency=resolve_currency(lead.balance_currency),
        proposal_total=_amount(lead.proposal_total),
        proposal_currency=resolve_currency(lead.proposal_currency),
        meeting_total=_amount(lead.meeting_total),
        meeting_currency=resolve_currency(lead.meeting_total_currency),
        created_at=lead.created_at,
        unactivated_at=lead.unactivated_at,
        facts=parse_structured_text(lead.facts),
        special_notes=parse_structured_text(lead.special_notes),
        general_notes=parse_structured_text(lead.general_notes),
    )


def normalize_legacy_lead(lead: LegacyLead, refs: ReferenceMaps, display_number: str) -> NormalizedLead:
    """Normalize a row from ``leads_lead``."""
    badge = refs.stage_badge(lead.stage)
    active = lead.status != LEGACY_STATUS_INACTIVE
    currency = resolve_currency(lead.currency_id, lead.currency)

    return NormalizedLead(
        id=f"{LEGACY_ID_PREFIX}{lead.id}",
        raw_id=lead.id,
        lead_type="legacy",
        lead_number=lead.lead_number,
        display_lead_number=display_number,
        master_id=lead.master_id,
        name=lead.name,
        email=lead.email,
        phone=lead.phone or lead.mobile,
        topic=lead.topic,
        stage=lead.stage,
        stage_name=badge.name,
        stage_colour=badge.colour,
        category=refs.category_display(lead.category_id, lead.category),
        category_id=lead.category_id,
        main_category=refs.main_category_name(lead.category_id),
        source=refs.source_name(lead.source_id),
        source_id=lead.source_id,
        language=refs.language_name(lead.language_id),
        active=active,
        status="active" if active else "inactive",
        eligible=legacy_eligible(lead.eligibile),
        handler_id=lead.case_handler_id,
        handler_name=refs.employee_name(lead.case_handler_id),
        roles={
            "scheduler": refs.employee_name(lead.meeting_scheduler_id),
            "manager": refs.employee_name(lead.meeting_manager_id),
            "lawyer": refs.employee_name(lead.meeting_lawyer_id),
            "expert": refs.employee_name(lead.expert_id),
            "closer": refs.employee_name(lead.closer_id),
        },
        balance=_amount(lead.total if lead.total is not None else lead.total_base),
        balance_currency=currency,
        proposal_total=_amount(lead.proposal),
        proposal_currency=currency,
        meeting_total=_amount(lead.meeting_total),
        meeting_currency=resolve_currency(lead.meeting_total_currency_id),
        created_at=lead.cdate,
        unactivated_at=lead.unactivated_at,
        facts=parse_structured_text(lead.description),
        special_notes=parse_structured_text(lead.special_notes),
        general_notes=parse_structured_text(lead.notes),
    )


def normalize_lead(lead: NewLead | LegacyLead, refs: ReferenceMaps, display_number: str) -> NormalizedLead:
    """Dispatch on the lead's schema."""
    if isinstance(lead, NewLead):
        return normalize_new_lead(lead, refs, display_number)
    if isinstance(lead, LegacyLead):
        return normalize_legacy_lead(lead, refs, display_number)
    raise TypeError(f"Unsupported lead type: {type(lead).__name__}")
