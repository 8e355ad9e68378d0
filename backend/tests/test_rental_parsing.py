from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

import pytest

from wardrobe.core.errors import ValidationError
from wardrobe.services.rentals import (
    INVALID_ITEM_SELECTION,
    INVALID_PAYMENT_FIELDS,
    INVALID_RENTAL_DATES,
    MISSING_REQUIRED_FIELDS,
    parse_rental_request,
    parse_timestamp,
)


ITEM_A = str(uuid.uuid4())
ITEM_B = str(uuid.uuid4())


def _form(**overrides) -> dict[str, str | None]:
    form: dict[str, str | None] = {
        "customer_name": "  Jane Doe ",
        "clothes_ids": json.dumps([ITEM_A, ITEM_B]),
        "quantities": json.dumps([1, 2]),
        "rent_date": "2024-05-01",
        "return_date": "2024-05-04T12:00:00+02:00",
        "is_paid": "true",
        "total_amount_cents": None,
    }
    form.update(overrides)
    return form


def _error(**overrides) -> str:
    with pytest.raises(ValidationError) as exc:
        parse_rental_request(**_form(**overrides))
    return exc.value.message


def test_parse_rental_request_builds_lines_in_input_order() -> None:
    data = parse_rental_request(**_form())

    assert data.customer_name == "Jane Doe"
    assert [(str(line.clothing_item_id), line.quantity) for line in data.lines] == [(ITEM_A, 1), (ITEM_B, 2)]
    assert data.rent_date == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert data.return_date.utcoffset() is not None
    assert data.is_paid is True
    assert data.total_amount_cents is None


def test_parse_rental_request_accepts_string_quantities_and_quoted_total() -> None:
    data = parse_rental_request(**_form(quantities='["3", 1.0]', total_amount_cents="4500", is_paid=None))

    assert [line.quantity for line in data.lines] == [3, 1]
    assert data.total_amount_cents == 4500
    assert data.is_paid is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"customer_name": None},
        {"customer_name": "   "},
        {"clothes_ids": None},
        {"clothes_ids": "[]"},
        {"rent_date": ""},
        {"return_date": None},
    ],
)
def test_missing_required_fields(overrides: dict[str, str | None]) -> None:
    assert _error(**overrides) == MISSING_REQUIRED_FIELDS


@pytest.mark.parametrize(
    "overrides",
    [
        {"clothes_ids": "not json"},
        {"clothes_ids": json.dumps({"id": ITEM_A})},
        {"quantities": json.dumps([1])},
        {"quantities": None},
        {"quantities": json.dumps([1, 0])},
        {"quantities": json.dumps([1, -2])},
        {"quantities": json.dumps([1, True])},
        {"quantities": json.dumps([1, "two"])},
        {"clothes_ids": json.dumps([ITEM_A, "not-a-uuid"])},
        {"clothes_ids": json.dumps([ITEM_A, 42])},
        {"quantities": json.dumps([1, 10**20])},
        {"quantities": json.dumps([1, 1_001])},
    ],
)
def test_invalid_item_selection(overrides: dict[str, str | None]) -> None:
    assert _error(**overrides) == INVALID_ITEM_SELECTION


@pytest.mark.parametrize(
    "overrides",
    [
        {"rent_date": "yesterday"},
        {"return_date": "2024-13-01"},
        {"return_date": "2024-04-30"},
        {"return_date": "2024-05-01T00:00:00Z"},
    ],
)
def test_invalid_rental_dates(overrides: dict[str, str | None]) -> None:
    assert _error(**overrides) == INVALID_RENTAL_DATES


@pytest.mark.parametrize(
    "overrides",
    [
        {"is_paid": "maybe"},
        {"total_amount_cents": "-1"},
        {"total_amount_cents": "12.50"},
        {"total_amount_cents": "lots"},
        {"total_amount_cents": str(2**31)},
        {"total_amount_cents": str(10**20)},
    ],
)
def test_invalid_payment_fields(overrides: dict[str, str | None]) -> None:
    assert _error(**overrides) == INVALID_PAYMENT_FIELDS


def test_first_violation_wins() -> None:
    assert _error(customer_name="", quantities="[1]", rent_date="bad") == MISSING_REQUIRED_FIELDS
    assert _error(quantities="[1]", return_date="2020-01-01", is_paid="maybe") == INVALID_ITEM_SELECTION
    assert _error(return_date="2020-01-01", is_paid="maybe") == INVALID_RENTAL_DATES


def test_customer_name_too_long() -> None:
    assert _error(customer_name="x" * 201) == "customer name is too long"


def test_parse_timestamp_treats_naive_values_as_utc() -> None:
    assert parse_timestamp("2024-05-01T10:30:00") == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
    assert parse_timestamp("soon") is None
