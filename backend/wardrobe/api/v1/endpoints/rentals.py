from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from wardrobe.api.deps import get_actor, get_media_store, uploaded
from wardrobe.core.config import Settings, get_settings
from wardrobe.core.db import get_session
from wardrobe.models.rental_order import RentalOrder
from wardrobe.schemas.rentals import RentalOrderOut
from wardrobe.services.media import MediaStore
from wardrobe.services.rentals import (
    create_rental_order,
    get_rental_order,
    list_rental_orders,
    parse_rental_request,
)


router = APIRouter()


def _order_out(order: RentalOrder, settings: Settings) -> RentalOrderOut:
    out = RentalOrderOut.model_validate(order)
    out.identity_image_url = settings.public_url(order.identity_image_path)
    return out


@router.post("", response_model=RentalOrderOut, status_code=201)
async def create_rental_order_endpoint(
    customer_name: str | None = Form(None),
    clothes_ids: str | None = Form(None, description="JSON array of clothing item ids"),
    quantities: str | None = Form(None, description="JSON array of quantities, parallel to clothes_ids"),
    rent_date: str | None = Form(None),
    return_date: str | None = Form(None),
    is_paid: str | None = Form(None),
    total_amount_cents: str | None = Form(None, description="Total shown to the customer; checked server-side"),
    identity_card: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
    actor: str = Depends(get_actor),
) -> RentalOrderOut:
    data = parse_rental_request(
        customer_name=customer_name,
        clothes_ids=clothes_ids,
        quantities=quantities,
        rent_date=rent_date,
        return_date=return_date,
        is_paid=is_paid,
        total_amount_cents=total_amount_cents,
    )
    order = await create_rental_order(
        session,
        media,
        actor=actor,
        data=data,
        identity_card=uploaded(identity_card),
    )
    return _order_out(order, get_settings())


@router.get("", response_model=list[RentalOrderOut])
async def list_rental_orders_endpoint(session: AsyncSession = Depends(get_session)) -> list[RentalOrderOut]:
    settings = get_settings()
    return [_order_out(order, settings) for order in await list_rental_orders(session)]


@router.get("/{order_id}", response_model=RentalOrderOut)
async def get_rental_order_endpoint(
    order_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> RentalOrderOut:
    order = await get_rental_order(session, order_id)
    return _order_out(order, get_settings())
