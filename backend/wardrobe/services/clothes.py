from __future__ import annotations

import logging
import uuid

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wardrobe.core.config import Settings
from wardrobe.core.enums import ClothingStatus
from wardrobe.core.errors import NotFoundError, StorageError, ValidationError
from wardrobe.models.clothing_item import ClothingItem
from wardrobe.schemas.clothes import ClothingItemCreate, ClothingItemDetailOut, ClothingItemUpdate
from wardrobe.services.audit import audit_log, snapshot
from wardrobe.services.media import MediaStore


logger = logging.getLogger(__name__)

DISPLAY_SIZES = ("S", "M", "L")
NO_DESCRIPTION = "No description yet"

_AUDITED_FIELDS = ("name", "owner_name", "description", "rental_price_cents", "status", "image_path")
_REQUIRED_FIELDS = ("name", "rental_price_cents", "status")


async def list_clothes(session: AsyncSession, *, status: ClothingStatus | None = None) -> list[ClothingItem]:
    stmt = select(ClothingItem).order_by(ClothingItem.created_at.desc(), ClothingItem.id.desc())
    if status is not None:
        stmt = stmt.where(ClothingItem.status == status)
    return list((await session.execute(stmt)).scalars().all())


async def get_clothing_item(session: AsyncSession, item_id: uuid.UUID) -> ClothingItem:
    item = await session.get(ClothingItem, item_id)
    if item is None:
        raise NotFoundError("Clothing item not found")
    return item


def clothing_item_detail(item: ClothingItem, *, settings: Settings) -> ClothingItemDetailOut:
    image_url = settings.public_url(item.image_path)
    return ClothingItemDetailOut(
        id=item.id,
        name=item.name,
        price_cents=item.rental_price_cents,
        original_price_cents=item.original_price_cents,
        images=[image_url] if image_url else [],
        sizes=list(DISPLAY_SIZES),
        description=item.description or NO_DESCRIPTION,
        sku=item.sku,
    )


async def create_clothing_item(
    session: AsyncSession,
    media: MediaStore,
    *,
    actor: str,
    data: ClothingItemCreate,
    image: UploadFile | None,
) -> ClothingItem:
    if image is None:
        raise ValidationError("image file is required")

    image_path = await media.store(image)
    item = ClothingItem(
        name=data.name,
        owner_name=data.owner_name,
        description=data.description,
        rental_price_cents=data.rental_price_cents,
        status=data.status,
        image_path=image_path,
    )

    with media.discard_on_error(image_path):
        session.add(item)
        try:
            await session.flush()
            await audit_log(
                session,
                actor=actor,
                entity_type="clothing_item",
                entity_id=item.id,
                action="create",
                after=snapshot(item, _AUDITED_FIELDS),
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.exception("Could not insert clothing item")
            raise StorageError("Could not save clothing item") from e

    return item


async def update_clothing_item(
    session: AsyncSession,
    media: MediaStore,
    *,
    actor: str,
    item_id: uuid.UUID,
    data: ClothingItemUpdate,
    image: UploadFile | None = None,
) -> ClothingItem:
    item = await get_clothing_item(session, item_id)

    changes = data.model_dump(exclude_unset=True)
    # Omitted status means "keep"; null on a required column means the same.
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            changes.pop(field)

    new_image_path = await media.store(image) if image is not None else None
    old_image_path = item.image_path
    before = snapshot(item, _AUDITED_FIELDS)

    with media.discard_on_error(new_image_path):
        for k, v in changes.items():
            setattr(item, k, v)
        if new_image_path is not None:
            item.image_path = new_image_path
        try:
            await session.flush()
            after = snapshot(item, _AUDITED_FIELDS)
            if before != after:
                await audit_log(
                    session,
                    actor=actor,
                    entity_type="clothing_item",
                    entity_id=item.id,
                    action="update",
                    before=before,
                    after=after,
                )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.exception("Could not update clothing item %s", item_id)
            raise StorageError("Could not update clothing item") from e

    # Old file goes only once the new path is committed.
    if new_image_path is not None and old_image_path != new_image_path:
        media.delete(old_image_path)

    return item


async def delete_clothing_item(session: AsyncSession, *, actor: str, item_id: uuid.UUID) -> None:
    item = await get_clothing_item(session, item_id)
    before = snapshot(item, _AUDITED_FIELDS)

    await session.delete(item)
    await audit_log(
        session,
        actor=actor,
        entity_type="clothing_item",
        entity_id=item_id,
        action="delete",
        before=before,
    )
    await session.commit()

    # Photo is not removed with the record.
    logger.warning("Deleted clothing item %s; image %s left in storage", item_id, before["image_path"])
