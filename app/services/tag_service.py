"""
Tag service: the shared, de-duplicated tag vocabulary.

``upsert_tags`` never checks-then-inserts. It issues one
``INSERT ... ON CONFLICT (name) DO NOTHING`` for the whole set and then
re-reads, so two requests introducing the same new tag both end up with
the single row that won.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import insert_ignore
from app.models import Tag, utcnow


def normalize_tag_names(names) -> list[str]:
    """Drop blank names and duplicates, keeping first-seen order. Case is kept."""
    seen: dict[str, None] = {}
    for name in names:
        name = name.strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


class TagService:
    async def upsert_tags(self, db: AsyncSession, names) -> list[Tag]:
        names = normalize_tag_names(names)
        if not names:
            return []

        now = utcnow()
        stmt = insert_ignore(db, Tag.__table__, ["name"]).values(
            [{"name": name, "created_at": now, "updated_at": now} for name in names]
        )
        await db.execute(stmt)

        result = await db.execute(select(Tag).where(Tag.name.in_(names)))
        return list(result.scalars().all())

    async def list_tags(self, db: AsyncSession) -> list[str]:
        result = await db.execute(select(Tag.name).order_by(Tag.name))
        return list(result.scalars().all())
