"""
Comment service: comments attached to an article and an author.

Comments are listed oldest first. Only the author may delete a comment,
and the ownership check happens before anything is deleted.
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ForbiddenError, NotFoundError
from app.models import Comment, User, isoformat, utcnow
from app.services.article_service import ArticleService
from app.services.user_service import UserService, profile_to_dict


class CommentService:
    def __init__(self, users: UserService, articles: ArticleService) -> None:
        self.users = users
        self.articles = articles

    async def _to_dicts(
        self, db: AsyncSession, comments: list[Comment], viewer_id: int | None
    ) -> list[dict]:
        if not comments:
            return []
        author_ids = {c.author_id for c in comments}
        authors_q = select(User).where(User.id.in_(author_ids))
        authors = {u.id: u for u in (await db.execute(authors_q)).scalars()}
        following = await self.users.following_among(db, viewer_id, author_ids)
        return [
            {
                "id": c.id,
                "createdAt": isoformat(c.created_at),
                "updatedAt": isoformat(c.updated_at),
                "body": c.body,
                "author": profile_to_dict(authors[c.author_id], c.author_id in following),
            }
            for c in comments
        ]

    async def add_comment(self, db: AsyncSession, user_id: int, slug: str, body: str) -> dict:
        article = await self.articles.get_by_slug(db, slug)

        now = utcnow()
        comment = Comment(
            body=body,
            article_id=article.id,
            author_id=user_id,
            created_at=now,
            updated_at=now,
        )
        db.add(comment)
        await db.flush()

        return (await self._to_dicts(db, [comment], user_id))[0]

    async def list_comments(self, db: AsyncSession, viewer_id: int | None, slug: str) -> list[dict]:
        article = await self.articles.get_by_slug(db, slug)
        q = (
            select(Comment)
            .where(Comment.article_id == article.id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        comments = list((await db.execute(q)).scalars().all())
        return await self._to_dicts(db, comments, viewer_id)

    async def delete_comment(self, db: AsyncSession, user_id: int, slug: str, comment_id: int) -> None:
        """
        Delete comment *comment_id* under article *slug*.

        A comment that does not exist, or belongs to another article, is
        reported as not found.
        """
        article = await self.articles.get_by_slug(db, slug)
        comment = await db.get(Comment, comment_id)
        if comment is None or comment.article_id != article.id:
            raise NotFoundError("comment not found")
        if comment.author_id != user_id:
            raise ForbiddenError("you can only delete your own comments")

        await db.execute(delete(Comment).where(Comment.id == comment_id))
