from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from wardrobe.api.deps import get_actor, get_media_store, parse_form, uploaded
from wardrobe.core.config import Settings, get_settings
from wardrobe.core.db import get_session
from wardrobe.models.clothing_item import ClothingItem
from wardrobe.schemas.clothes import (
    ClothesQuery,
    ClothingItemCreate,
    ClothingItemDetailOut,
    ClothingItemOut,
    ClothingItemUpdate,
    MessageOut,
)
from wardrobe.services.clothes import (
    clothing_item_detail,
    create_clothing_item,
    delete_clothing_item,
    get_clothing_item,
    list_clothes,
    update_clothing_item,
)
from wardrobe.services.media import MediaStore


router = APIRouter()


def _item_out(item: ClothingItem, settings: Settings) -> ClothingItemOut:
    out = ClothingItemOut.model_validate(item)
    out.image_url = settings.public_url(item.image_path)
    return out


@router.get("", response_model=list[ClothingItemOut])
async def list_clothes_endpoint(
    status: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[ClothingItemOut]:
    query = parse_form(ClothesQuery, status=status)
    settings = get_settings()
    items = await list_clothes(session, status=query.status)
    return [_item_out(item, settings) for item in items]


@router.post("", response_model=ClothingItemOut, status_code=201)
async def create_clothing_item_endpoint(
    name: str | None = Form(None),
    owner_name: str | None = Form(None),
    rental_price_cents: str | None = Form(None),
    description: str | None = Form(None),
    status: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
    actor: str = Depends(get_actor),
) -> ClothingItemOut:
    data = parse_form(
        ClothingItemCreate,
        name=name,
        owner_name=owner_name,
        rental_price_cents=rental_price_cents,
        description=description,
        status=status,
    )
    item = await create_clothing_item(session, media, actor=actor, data=data, image=uploaded(image))
    return _item_out(item, get_settings())


@router.get("/{item_id}", response_model=ClothingItemDetailOut)
async def get_clothing_item_detail(
    item_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> ClothingItemDetailOut:
    item = await get_clothing_item(session, item_id)
    return clothing_item_detail(item, settings=get_settings())


@router.put("/{item_id}", response_model=ClothingItemOut)
async def update_clothing_item_endpoint(
    item_id: uuid.UUID,
    name: str | None = Form(None),
    owner_name: str | None = Form(None),
    rental_price_cents: str | None = Form(None),
    description: str | None = Form(None),
    status: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: AsyncSession = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
    actor: str = Depends(get_actor),
) -> ClothingItemOut:
    data = parse_form(
        ClothingItemUpdate,
        name=name,
        owner_name=owner_name,
        rental_price_cents=rental_price_cents,
        description=description,
        status=status,
    )
    item = await update_clothing_item(
        session,
        media,
        actor=actor,
        item_id=item_id,
        data=data,
        image=uploaded(image),
    )
    return _item_out(item, get_settings())


@router.delete("/{item_id}", response_model=MessageOut)
async def delete_clothing_item_endpoint(
    item_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(get_actor),
) -> MessageOut:
    await delete_clothing_item(session, actor=actor, item_id=item_id)
    return MessageOut(message="Deleted")
