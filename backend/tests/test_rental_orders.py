from __future__ import annotations

import json
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from wardrobe.core.errors import NotFoundError, StorageError, ValidationError
from wardrobe.models.audit_log import AuditLog
from wardrobe.models.rental_order import RentalOrder
from wardrobe.schemas.clothes import ClothingItemCreate
from wardrobe.services.clothes import create_clothing_item, delete_clothing_item
from wardrobe.services.money import MAX_CENTS
from wardrobe.services.rentals import (
    create_rental_order,
    get_rental_order,
    list_rental_orders,
    parse_rental_request,
)


async def _item(db_session, media_store, make_upload, *, name: str, price_cents: int):
    return await create_clothing_item(
        db_session,
        media_store,
        actor="tester",
        data=ClothingItemCreate(name=name, rental_price_cents=price_cents),
        image=make_upload(),
    )


def _request(items_and_qty, **overrides):
    form = {
        "customer_name": "Jane Doe",
        "clothes_ids": json.dumps([str(item_id) for item_id, _ in items_and_qty]),
        "quantities": json.dumps([qty for _, qty in items_and_qty]),
        "rent_date": "2024-05-01T10:00:00+00:00",
        "return_date": "2024-05-03T10:00:00+00:00",
        "is_paid": "false",
    }
    form.update(overrides)
    return parse_rental_request(**form)


@pytest.mark.asyncio
async def test_create_rental_order_computes_total_from_item_prices(
    db_session,
    media_store,
    make_upload,
) -> None:
    dress = await _item(db_session, media_store, make_upload, name="Dress", price_cents=10_000)
    scarf = await _item(db_session, media_store, make_upload, name="Scarf", price_cents=2_500)

    order = await create_rental_order(
        db_session,
        media_store,
        actor="tester",
        data=_request([(dress.id, 2), (scarf.id, 1), (dress.id, 1)]),
        identity_card=make_upload("id-card.png"),
    )

    assert order.total_amount_cents == 32_500
    assert order.quoted_total_cents is None
    assert [(line.clothing_item_id, line.quantity) for line in order.lines] == [
        (dress.id, 2),
        (scarf.id, 1),
        (dress.id, 1),
    ]
    assert [line.item_name for line in order.lines] == ["Dress", "Scarf", "Dress"]
    assert [line.line_total_cents for line in order.lines] == [20_000, 2_500, 10_000]
    assert order.identity_image_path.startswith("/uploads/identity/")
    assert media_store.exists(order.identity_image_path)

    audit = (
        await db_session.execute(select(AuditLog).where(AuditLog.entity_id == order.id))
    ).scalar_one()
    assert audit.action == "create"
    assert audit.after["total_amount_cents"] == 32_500


@pytest.mark.asyncio
async def test_create_rental_order_without_identity_document(db_session, media_store, make_upload) -> None:
    dress = await _item(db_session, media_store, make_upload, name="Dress", price_cents=10_000)

    order = await create_rental_order(
        db_session,
        media_store,
        actor="tester",
        data=_request([(dress.id, 1)], total_amount_cents="10000", is_paid="true"),
    )

    assert order.identity_image_path is None
    assert order.total_amount_cents == 10_000
    assert order.quoted_total_cents == 10_000
    assert order.is_paid is True


@pytest.mark.asyncio
async def test_total_mismatch_is_rejected_before_upload(
    db_session,
    media_store,
    make_upload,
    stored_files,
) -> None:
    dress = await _item(db_session, media_store, make_upload, name="Dress", price_cents=10_000)
    files_before = stored_files()

    with pytest.raises(ValidationError) as exc:
        await create_rental_order(
            db_session,
            media_store,
            actor="tester",
            data=_request([(dress.id, 2)], total_amount_cents="15000"),
            identity_card=make_upload(),
        )

    assert exc.value.message == "total amount mismatch: expected 20000"
    assert stored_files() == files_before
    assert await list_rental_orders(db_session) == []


@pytest.mark.asyncio
async def test_unknown_item_is_rejected_before_upload(
    db_session,
    media_store,
    make_upload,
    stored_files,
) -> None:
    missing = uuid.uuid4()

    with pytest.raises(ValidationError) as exc:
        await create_rental_order(
            db_session,
            media_store,
            actor="tester",
            data=_request([(missing, 1)]),
            identity_card=make_upload(),
        )

    assert exc.value.message == f"unknown clothing item: {missing}"
    assert stored_files() == []


@pytest.mark.asyncio
async def test_identity_document_is_removed_when_order_insert_fails(
    db_session,
    media_store,
    make_upload,
    stored_files,
    monkeypatch,
) -> None:
    dress = await _item(db_session, media_store, make_upload, name="Dress", price_cents=10_000)
    files_before = stored_files()

    async def failing_flush(*_args, **_kwargs) -> None:
        raise OperationalError("INSERT INTO rental_orders", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "flush", failing_flush)

    with pytest.raises(StorageError):
        await create_rental_order(
            db_session,
            media_store,
            actor="tester",
            data=_request([(dress.id, 1)]),
            identity_card=make_upload(),
        )

    assert stored_files() == files_before
    assert not any(p.parent.name == "identity" for p in stored_files())


@pytest.mark.asyncio
async def test_get_and_list_rental_orders(session_factory, db_session, media_store, make_upload) -> None:
    dress = await _item(db_session, media_store, make_upload, name="Dress", price_cents=10_000)
    order = await create_rental_order(
        db_session,
        media_store,
        actor="tester",
        data=_request([(dress.id, 3)]),
    )

    async with session_factory() as fresh:
        loaded = await get_rental_order(fresh, order.id)
        assert loaded.customer_name == "Jane Doe"
        assert [(line.position, line.quantity, line.unit_price_cents) for line in loaded.lines] == [(0, 3, 10_000)]
        assert [o.id for o in await list_rental_orders(fresh)] == [order.id]

        with pytest.raises(NotFoundError):
            await get_rental_order(fresh, uuid.uuid4())


@pytest.mark.asyncio
async def test_deleting_item_keeps_order_line_snapshot(session_factory, db_session, media_store, make_upload) -> None:
    dress = await _item(db_session, media_store, make_upload, name="Dress", price_cents=10_000)
    order = await create_rental_order(
        db_session,
        media_store,
        actor="tester",
        data=_request([(dress.id, 1)]),
    )

    await delete_clothing_item(db_session, actor="tester", item_id=dress.id)

    async with session_factory() as fresh:
        loaded = await get_rental_order(fresh, order.id)
        assert loaded.total_amount_cents == 10_000
        assert [(line.clothing_item_id, line.item_name) for line in loaded.lines] == [(None, "Dress")]
        assert (await fresh.execute(select(RentalOrder.id))).scalars().all() == [order.id]


@pytest.mark.asyncio
async def test_total_beyond_amount_column_is_rejected_before_upload(
    db_session,
    media_store,
    make_upload,
    stored_files,
) -> None:
    gown = await _item(db_session, media_store, make_upload, name="Gown", price_cents=MAX_CENTS)
    files_before = stored_files()

    with pytest.raises(ValidationError) as exc:
        await create_rental_order(
            db_session,
            media_store,
            actor="tester",
            data=_request([(gown.id, 2)]),
            identity_card=make_upload(),
        )

    assert exc.value.message == "total amount too large"
    assert stored_files() == files_before
    assert await list_rental_orders(db_session) == []
