"""
Article service: business logic for articles and their tag / favorite
relations.

Design notes
------------
- Slugs are derived from the title. An insert or update that hits the
  ``uq_articles_slug`` constraint is retried with a random suffix; each
  attempt runs inside a SAVEPOINT so a collision rolls back only that
  attempt. Any other integrity error propagates unchanged.
- Tags, favorites and follows are edges in join tables. Projections are
  assembled per page with one query per relation (authors, tag names,
  favorite counts, the viewer's favorites, the viewer's follows) instead
  of per article.
- The favorite count is always counted from ``article_favorites``; there
  is no denormalised counter.
- Service methods flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import logging
import uuid
from collections import defaultdict

from slugify import slugify as ascii_slug
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import insert_ignore
from app.errors import ForbiddenError, NotFoundError, is_unique_violation
from app.models import (
    Article,
    Comment,
    Tag,
    User,
    article_favorites,
    article_tags,
    isoformat,
    user_follows,
    utcnow,
)
from app.schemas import ArticleCreate, ArticleFilters, ArticleUpdate
from app.services.tag_service import TagService
from app.services.user_service import UserService, profile_to_dict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def random_key() -> str:
    return uuid.uuid4().hex[:8]


def slugify(text: str, random_suffix: bool = False) -> str:
    """
    Return a URL-safe, lowercase ASCII slug derived from *text*, optionally
    with a random 8-character suffix (``a-title-1f3a9c0b``).

    Accented and non-Latin letters are transliterated (``Café`` -> ``cafe``).
    """
    slug = ascii_slug(text)
    if not slug:
        return random_key()
    return f"{slug}-{random_key()}" if random_suffix else slug


def _is_slug_collision(exc: IntegrityError) -> bool:
    return is_unique_violation(exc, "uq_articles_slug", "articles.slug")


def _newest_first(q):
    return q.order_by(Article.created_at.desc(), Article.id.desc())


class ArticleService:
    def __init__(self, users: UserService, tags: TagService) -> None:
        self.users = users
        self.tags = tags

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    async def to_dicts(
        self, db: AsyncSession, articles: list[Article], viewer_id: int | None
    ) -> list[dict]:
        """
        Serialise *articles* as seen by *viewer_id*: sorted tag list, live
        favorite count, whether the viewer favorited each one, and the
        author's profile with the viewer's follow flag.
        """
        if not articles:
            return []

        ids = [a.id for a in articles]
        author_ids = {a.author_id for a in articles}

        authors_q = select(User).where(User.id.in_(author_ids))
        authors = {u.id: u for u in (await db.execute(authors_q)).scalars()}

        tags_q = (
            select(article_tags.c.article_id, Tag.name)
            .join(Tag, Tag.id == article_tags.c.tag_id)
            .where(article_tags.c.article_id.in_(ids))
        )
        tag_names: dict[int, list[str]] = defaultdict(list)
        for article_id, name in await db.execute(tags_q):
            tag_names[article_id].append(name)

        counts_q = (
            select(article_favorites.c.article_id, func.count())
            .where(article_favorites.c.article_id.in_(ids))
            .group_by(article_favorites.c.article_id)
        )
        counts = {article_id: count for article_id, count in await db.execute(counts_q)}

        favorited: set[int] = set()
        if viewer_id is not None:
            favorited_q = select(article_favorites.c.article_id).where(
                article_favorites.c.user_id == viewer_id,
                article_favorites.c.article_id.in_(ids),
            )
            favorited = set((await db.execute(favorited_q)).scalars().all())

        following = await self.users.following_among(db, viewer_id, author_ids)

        return [
            {
                "slug": a.slug,
                "title": a.title,
                "description": a.description,
                "body": a.body,
                "tagList": sorted(tag_names[a.id]),
                "createdAt": isoformat(a.created_at),
                "updatedAt": isoformat(a.updated_at),
                "favorited": a.id in favorited,
                "favoritesCount": counts.get(a.id, 0),
                "author": profile_to_dict(authors[a.author_id], a.author_id in following),
            }
            for a in articles
        ]

    async def _to_dict(self, db: AsyncSession, article: Article, viewer_id: int | None) -> dict:
        return (await self.to_dicts(db, [article], viewer_id))[0]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_by_slug(self, db: AsyncSession, slug: str) -> Article:
        result = await db.execute(select(Article).where(Article.slug == slug))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError("article not found")
        return article

    async def _get_own(self, db: AsyncSession, caller_id: int, slug: str) -> Article:
        article = await self.get_by_slug(db, slug)
        if article.author_id != caller_id:
            raise ForbiddenError("not the author of this article")
        return article

    async def get_article(self, db: AsyncSession, viewer_id: int | None, slug: str) -> dict:
        return await self._to_dict(db, await self.get_by_slug(db, slug), viewer_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_article(self, db: AsyncSession, author_id: int, data: ArticleCreate) -> dict:
        """
        Create an article with its tag links.

        The first attempt uses the bare slug; every retry after a slug
        collision uses a fresh random suffix.
        """
        author = await db.get(User, author_id)
        if author is None:
            raise NotFoundError("user not found")

        tags = await self.tags.upsert_tags(db, data.tag_list)

        random_suffix = False
        while True:
            slug = slugify(data.title, random_suffix)
            try:
                async with db.begin_nested():
                    now = utcnow()
                    article = Article(
                        slug=slug,
                        title=data.title,
                        description=data.description,
                        body=data.body,
                        author_id=author.id,
                        created_at=now,
                        updated_at=now,
                    )
                    db.add(article)
                    await db.flush()
                    if tags:
                        await db.execute(
                            insert(article_tags),
                            [{"article_id": article.id, "tag_id": t.id} for t in tags],
                        )
                break
            except IntegrityError as exc:
                if not _is_slug_collision(exc):
                    raise
                logger.info("Slug %r already taken, retrying with a random suffix", slug)
                random_suffix = True

        return await self._to_dict(db, article, author_id)

    async def update_article(
        self, db: AsyncSession, caller_id: int, slug: str, data: ArticleUpdate
    ) -> dict:
        """
        Partially update an article owned by *caller_id*.

        Only fields present (and not null) in the payload change. A new
        title re-derives the slug under the same collision retry as create;
        a ``tagList`` replaces the article's tag links.
        """
        article = await self._get_own(db, caller_id, slug)

        update_data = data.model_dump(exclude_none=True)
        tag_names: list[str] | None = update_data.pop("tag_list", None)

        random_suffix = False
        while True:
            changes = dict(update_data, updated_at=utcnow())
            if "title" in update_data:
                changes["slug"] = slugify(update_data["title"], random_suffix)
            try:
                async with db.begin_nested():
                    for field, value in changes.items():
                        setattr(article, field, value)
                    await db.flush()
                break
            except IntegrityError as exc:
                if not _is_slug_collision(exc):
                    raise
                logger.info("Slug %r already taken, retrying with a random suffix", changes["slug"])
                # The rolled-back SAVEPOINT expired the instance.
                await db.refresh(article)
                random_suffix = True

        if tag_names is not None:
            tags = await self.tags.upsert_tags(db, tag_names)
            await db.execute(delete(article_tags).where(article_tags.c.article_id == article.id))
            if tags:
                await db.execute(
                    insert(article_tags),
                    [{"article_id": article.id, "tag_id": t.id} for t in tags],
                )

        return await self._to_dict(db, article, caller_id)

    async def delete_article(self, db: AsyncSession, caller_id: int, slug: str) -> None:
        """
        Delete an article owned by *caller_id*.

        Rows referencing the article (tag links, favorites, comments) are
        removed first so the final delete satisfies the foreign keys; tags
        themselves stay in the vocabulary.
        """
        article = await self._get_own(db, caller_id, slug)

        await db.execute(delete(article_tags).where(article_tags.c.article_id == article.id))
        await db.execute(
            delete(article_favorites).where(article_favorites.c.article_id == article.id)
        )
        await db.execute(delete(Comment).where(Comment.article_id == article.id))
        await db.execute(delete(Article).where(Article.id == article.id))
        logger.info("Deleted article %r", slug)

    async def favorite(self, db: AsyncSession, user_id: int, slug: str) -> dict:
        article = await self.get_by_slug(db, slug)
        stmt = insert_ignore(db, article_favorites, ["user_id", "article_id"]).values(
            user_id=user_id, article_id=article.id
        )
        await db.execute(stmt)
        return await self._to_dict(db, article, user_id)

    async def unfavorite(self, db: AsyncSession, user_id: int, slug: str) -> dict:
        article = await self.get_by_slug(db, slug)
        await db.execute(
            delete(article_favorites).where(
                article_favorites.c.user_id == user_id,
                article_favorites.c.article_id == article.id,
            )
        )
        return await self._to_dict(db, article, user_id)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def _page(
        self,
        db: AsyncSession,
        clauses: list,
        viewer_id: int | None,
        offset: int,
        limit: int,
    ) -> dict:
        """Page of articles matching *clauses* plus the total count of all matches."""
        count_q = select(func.count()).select_from(Article).where(*clauses)
        total: int = (await db.execute(count_q)).scalar_one()

        articles_q = _newest_first(select(Article).where(*clauses)).offset(offset).limit(limit)
        articles = list((await db.execute(articles_q)).scalars().all())

        return {
            "articles": await self.to_dicts(db, articles, viewer_id),
            "articlesCount": total,
        }

    async def list_articles(
        self,
        db: AsyncSession,
        viewer_id: int | None,
        filters: ArticleFilters,
        offset: int = 0,
        limit: int = 20,
    ) -> dict:
        """
        List articles, newest first. ``tag``, ``author`` and ``favorited``
        are ANDed together; each matches exactly.
        """
        clauses = []
        if filters.tag:
            clauses.append(
                Article.id.in_(
                    select(article_tags.c.article_id)
                    .join(Tag, Tag.id == article_tags.c.tag_id)
                    .where(Tag.name == filters.tag)
                )
            )
        if filters.author:
            clauses.append(
                Article.author_id.in_(select(User.id).where(User.username == filters.author))
            )
        if filters.favorited:
            clauses.append(
                Article.id.in_(
                    select(article_favorites.c.article_id)
                    .join(User, User.id == article_favorites.c.user_id)
                    .where(User.username == filters.favorited)
                )
            )
        return await self._page(db, clauses, viewer_id, offset, limit)

    async def feed(self, db: AsyncSession, user_id: int, offset: int = 0, limit: int = 20) -> dict:
        """Articles written by anyone *user_id* follows, newest first."""
        followees = select(user_follows.c.followee_id).where(user_follows.c.follower_id == user_id)
        return await self._page(db, [Article.author_id.in_(followees)], user_id, offset, limit)
