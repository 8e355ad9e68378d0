from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone

from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wardrobe.core.enums import MediaCategory
from wardrobe.core.errors import NotFoundError, StorageError, ValidationError
from wardrobe.models.clothing_item import ClothingItem
from wardrobe.models.rental_order import RentalOrder, RentalOrderLine
from wardrobe.schemas.rentals import RentalOrderCreate, RentalOrderLineCreate
from wardrobe.services.audit import audit_log
from wardrobe.services.media import MediaStore
from wardrobe.services.money import MAX_QUANTITY, fits_amount_column, order_total_cents


logger = logging.getLogger(__name__)

MISSING_REQUIRED_FIELDS = "missing required fields"
INVALID_ITEM_SELECTION = "invalid item selection"
INVALID_RENTAL_DATES = "invalid rental dates"
INVALID_PAYMENT_FIELDS = "invalid payment fields"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _json_list(raw: str | None) -> list | None:
    """Decode a JSON array form field; absent/blank is an empty list, anything else malformed is None."""
    if _is_blank(raw):
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, list) else None


def _parse_uuid(value: object) -> uuid.UUID | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


def _parse_quantity(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_timestamp(raw: str) -> datetime | None:
    """ISO-8601 date or timestamp; date-only and naive values are taken as UTC."""
    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _parse_bool(raw: str | None) -> bool | None:
    if _is_blank(raw):
        return False
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def parse_rental_request(
    *,
    customer_name: str | None,
    clothes_ids: str | None,
    quantities: str | None,
    rent_date: str | None,
    return_date: str | None,
    is_paid: str | None = None,
    total_amount_cents: str | None = None,
) -> RentalOrderCreate:
    """
    Turn raw multipart form values into a RentalOrderCreate.

    Rules are checked in order and the first violation wins:
    required fields, item selection, dates, payment fields.
    """
    ids = _json_list(clothes_ids)
    if _is_blank(customer_name) or ids == [] or _is_blank(rent_date) or _is_blank(return_date):
        raise ValidationError(MISSING_REQUIRED_FIELDS)

    qtys = _json_list(quantities)
    if ids is None or qtys is None or len(ids) != len(qtys):
        raise ValidationError(INVALID_ITEM_SELECTION)
    lines: list[RentalOrderLineCreate] = []
    for raw_id, raw_qty in zip(ids, qtys, strict=True):
        item_id = _parse_uuid(raw_id)
        qty = _parse_quantity(raw_qty)
        if item_id is None or qty is None or not 1 <= qty <= MAX_QUANTITY:
            raise ValidationError(INVALID_ITEM_SELECTION)
        lines.append(RentalOrderLineCreate(clothing_item_id=item_id, quantity=qty))

    starts = parse_timestamp(rent_date)
    ends = parse_timestamp(return_date)
    if starts is None or ends is None or ends <= starts:
        raise ValidationError(INVALID_RENTAL_DATES)

    paid = _parse_bool(is_paid)
    quoted_total: int | None = None
    if not _is_blank(total_amount_cents):
        quoted_total = _parse_quantity(total_amount_cents)
        if quoted_total is None or not fits_amount_column(quoted_total):
            raise ValidationError(INVALID_PAYMENT_FIELDS)
    if paid is None:
        raise ValidationError(INVALID_PAYMENT_FIELDS)

    try:
        return RentalOrderCreate(
            customer_name=customer_name.strip(),
            lines=lines,
            rent_date=starts,
            return_date=ends,
            is_paid=paid,
            total_amount_cents=quoted_total,
        )
    except PydanticValidationError as e:
        # Only the customer name length limit is left unchecked at this point.
        raise ValidationError("customer name is too long") from e


async def _load_priced_items(session: AsyncSession, data: RentalOrderCreate) -> dict[uuid.UUID, ClothingItem]:
    wanted = {line.clothing_item_id for line in data.lines}
    rows = (await session.execute(select(ClothingItem).where(ClothingItem.id.in_(wanted)))).scalars().all()
    by_id = {row.id: row for row in rows}
    for line in data.lines:
        if line.clothing_item_id not in by_id:
            raise ValidationError(f"unknown clothing item: {line.clothing_item_id}")
    return by_id


async def create_rental_order(
    session: AsyncSession,
    media: MediaStore,
    *,
    actor: str,
    data: RentalOrderCreate,
    identity_card: UploadFile | None = None,
) -> RentalOrder:
    """
    Persist a rental order.

    Steps: price lookup and total reconciliation (no side effects), identity document upload,
    then a single DB transaction for the order, its lines and the audit row. If that transaction
    fails the uploaded document is deleted again; nothing is retried.
    """
    items = await _load_priced_items(session, data)
    total_cents = order_total_cents(
        (items[line.clothing_item_id].rental_price_cents, line.quantity) for line in data.lines
    )
    if not fits_amount_column(total_cents):
        raise ValidationError("total amount too large")
    if data.total_amount_cents is not None and data.total_amount_cents != total_cents:
        raise ValidationError(f"total amount mismatch: expected {total_cents}")

    identity_path = (
        await media.store(identity_card, category=MediaCategory.IDENTITY) if identity_card is not None else None
    )

    order = RentalOrder(
        customer_name=data.customer_name,
        identity_image_path=identity_path,
        rent_date=data.rent_date,
        return_date=data.return_date,
        is_paid=data.is_paid,
        total_amount_cents=total_cents,
        quoted_total_cents=data.total_amount_cents,
        lines=[
            RentalOrderLine(
                position=position,
                clothing_item_id=line.clothing_item_id,
                item_name=items[line.clothing_item_id].name,
                quantity=line.quantity,
                unit_price_cents=items[line.clothing_item_id].rental_price_cents,
            )
            for position, line in enumerate(data.lines)
        ],
    )

    with media.discard_on_error(identity_path):
        session.add(order)
        try:
            await session.flush()
            await audit_log(
                session,
                actor=actor,
                entity_type="rental_order",
                entity_id=order.id,
                action="create",
                after={
                    "customer_name": order.customer_name,
                    "items": [[line.clothing_item_id, line.quantity] for line in order.lines],
                    "total_amount_cents": order.total_amount_cents,
                    "is_paid": order.is_paid,
                },
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.exception("Could not insert rental order")
            raise StorageError("Could not save rental order") from e

    logger.info("Created rental order %s with %d line(s), total %d", order.id, len(order.lines), total_cents)
    return order


async def list_rental_orders(session: AsyncSession) -> list[RentalOrder]:
    rows = (
        await session.execute(
            select(RentalOrder)
            .order_by(RentalOrder.created_at.desc(), RentalOrder.id.desc())
            .options(selectinload(RentalOrder.lines))
        )
    ).scalars().all()
    return list(rows)


async def get_rental_order(session: AsyncSession, order_id: uuid.UUID) -> RentalOrder:
    order = (
        await session.execute(
            select(RentalOrder).where(RentalOrder.id == order_id).options(selectinload(RentalOrder.lines))
        )
    ).scalar_one_or_none()
    if order is None:
        raise NotFoundError("Rental order not found")
    return order
