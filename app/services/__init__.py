# Services package.
#
# Each module holds one service class for a single domain aggregate:
#
#   user_service     - registration, login, current user, profiles, follows
#   tag_service      - shared tag vocabulary (insert-ignore upsert)
#   article_service  - articles, slug retry, favorites, listings, feed
#   comment_service  - comments on an article
#
# Every service method accepts an AsyncSession as its first argument so
# that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
#
# ``build_services`` wires the objects together once at startup; the app
# keeps the result on ``app.state.services``.
from dataclasses import dataclass

from app.config import Settings
from app.security import PasswordHasher, TokenManager
from app.services.article_service import ArticleService
from app.services.comment_service import CommentService
from app.services.tag_service import TagService
from app.services.user_service import UserService


@dataclass(frozen=True)
class Services:
    tokens: TokenManager
    users: UserService
    tags: TagService
    articles: ArticleService
    comments: CommentService


def build_services(settings: Settings) -> Services:
    tokens = TokenManager(
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expire_days=settings.JWT_EXPIRE_DAYS,
    )
    users = UserService(tokens, PasswordHasher(settings.BCRYPT_ROUNDS))
    tags = TagService()
    articles = ArticleService(users, tags)
    comments = CommentService(users, articles)
    return Services(
        tokens=tokens,
        users=users,
        tags=tags,
        articles=articles,
        comments=comments,
    )
