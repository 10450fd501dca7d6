"""Tests for lead normalization."""

from decimal import Decimal

import pytest

from lawcrm.models.taxonomy import Currency
from lawcrm.services.normalizer import (
    currency_symbol,
    legacy_eligible,
    normalize_lead,
    normalize_legacy_lead,
    normalize_new_lead,
    parse_structured_text,
    resolve_currency,
)
from tests.factories import CITIZENSHIP_DE, HANDLER_ALICE, legacy_lead, new_lead, utc


def test_same_category_id_gives_same_display_in_both_schemas(refs):
    new = normalize_new_lead(new_lead(1, category_id=CITIZENSHIP_DE), refs, "1")
    legacy = normalize_legacy_lead(legacy_lead(1, category_id=CITIZENSHIP_DE), refs, "1")
    assert new.category == legacy.category == "Citizenship (Germany)"
    assert new.main_category == legacy.main_category == "Germany"


def test_legacy_currency_id_without_joined_record(refs):
    lead = normalize_legacy_lead(legacy_lead(1, currency_id=2, total=Decimal("100")), refs, "1")
    assert lead.balance_currency == "USD"
    assert resolve_currency(2) == "USD"


@pytest.mark.parametrize(
    "value, expected",
    [
        (1, "NIS"),
        (3, "EUR"),
        (4, "GBP"),
        (99, "NIS"),
        ("₪", "NIS"),
        ("ILS", "NIS"),
        ("$", "USD"),
        ("€", "EUR"),
        ("£", "GBP"),
        ("eur", "EUR"),
        ("2", "USD"),
        (None, "NIS"),
        ("", "NIS"),
    ],
)
def test_resolve_currency(value, expected):
    assert resolve_currency(value) == expected


def test_joined_currency_wins_over_id():
    assert resolve_currency(1, Currency(id=1, name="Euro", iso_code="EUR")) == "EUR"


def test_currency_symbol():
    assert currency_symbol("USD") == "$"
    assert currency_symbol(None) == "₪"


def test_structured_text_json_object():
    text = parse_structured_text('{"family_status": "married", "children": 2, "empty": ""}')
    assert text == "Family Status: married\nChildren: 2"


def test_structured_text_html_fallback():
    assert parse_structured_text("<p>Born in&nbsp;Berlin</p><br>Moved &amp; settled") == "Born in Berlin\nMoved & settled"


def test_structured_text_never_raises():
    assert parse_structured_text("{not json") == "{not json"
    assert parse_structured_text("") is None
    assert parse_structured_text(None) is None
    assert parse_structured_text('"<b>quoted</b>"') == "quoted"


def test_new_lead_normalization(refs):
    lead = new_lead(
        7,
        master_id=3,
        case_handler_id=HANDLER_ALICE,
        meeting_scheduler_id=6,
        balance=Decimal("1500.50"),
        balance_currency="€",
        unactivated_at=utc(2024, 6, 1),
    )
    normalized = normalize_new_lead(lead, refs, "3/2")
    assert normalized.id == 7
    assert normalized.lead_type == "new"
    assert normalized.display_lead_number == "3/2"
    assert normalized.handler_name == "Alice Handler"
    assert normalized.roles["scheduler"] == "Bob Scheduler"
    assert normalized.balance == 1500.5
    assert normalized.balance_currency == "EUR"
    assert normalized.active is False
    assert normalized.status == "inactive"


def test_new_lead_falls_back_to_handler_text(refs):
    normalized = normalize_new_lead(new_lead(8, handler="Text Only"), refs, "8")
    assert normalized.handler_id is None
    assert normalized.handler_name == "Text Only"


def test_legacy_lead_normalization(refs):
    lead = legacy_lead(9, status=None, eligibile="true", stage=None, description='{"note": "x"}')
    normalized = normalize_lead(lead, refs, "9")
    assert normalized.id == "legacy_9"
    assert normalized.raw_id == 9
    assert normalized.lead_type == "legacy"
    assert normalized.active is True
    assert normalized.eligible is True
    assert normalized.stage_name == "No Stage"
    assert normalized.facts == "Note: x"
    assert normalized.balance_currency == "NIS"


def test_legacy_eligibility_text():
    assert legacy_eligible("true")
    assert legacy_eligible("Yes")
    assert not legacy_eligible("false")
    assert not legacy_eligible(None)


def test_normalize_lead_rejects_other_types(refs):
    with pytest.raises(TypeError):
        normalize_lead(object(), refs, "1")
