from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from sqlalchemy import select

# Script entrypoint: ensure `backend/` is importable.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from wardrobe.core.db import create_engine  # noqa: E402
from wardrobe.models.clothing_item import ClothingItem  # noqa: E402
from wardrobe.models.rental_order import RentalOrder  # noqa: E402
from wardrobe.services.media import MediaStore  # noqa: E402


async def find_missing_files(database_url: str, media: MediaStore) -> list[str]:
    """Stored paths referenced by the database that have no file under the uploads root."""
    problems: list[str] = []
    engine = create_engine(database_url)
    try:
        async with engine.connect() as conn:
            clothes = (await conn.execute(select(ClothingItem.id, ClothingItem.image_path))).all()
            for item_id, image_path in clothes:
                if not media.exists(image_path):
                    problems.append(f"clothing item {item_id}: missing image {image_path}")

            orders = (
                await conn.execute(
                    select(RentalOrder.id, RentalOrder.identity_image_path).where(
                        RentalOrder.identity_image_path.is_not(None)
                    )
                )
            ).all()
            for order_id, identity_path in orders:
                if not media.exists(identity_path):
                    problems.append(f"rental order {order_id}: missing identity document {identity_path}")
    finally:
        await engine.dispose()
    return problems


async def _main() -> int:
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL is required.", file=sys.stderr)
        return 2

    storage_dir = Path(os.environ.get("APP_STORAGE_DIR", "/data"))
    media = MediaStore(storage_dir, max_upload_bytes=1)

    problems = await find_missing_files(url, media)
    if problems:
        print(f"{len(problems)} stored path(s) point to missing files:", file=sys.stderr)
        for p in problems:
            print(f"  {p}", file=sys.stderr)
        return 1

    print("Media invariants ok (every stored path has a file).")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_main()))
