"""
User service: registration, login, the current user's account, and the
public profile / follow graph.

Follow edges live in the ``user_follows`` join table and are written with
an insert-ignore / delete-if-present pair, so following twice or
unfollowing a stranger are both no-ops.
"""
import logging

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import insert_ignore
from app.errors import (
    AuthError,
    NotFoundError,
    ValidationError,
    is_unique_violation,
)
from app.models import User, user_follows, utcnow
from app.schemas import RegisterUser, UserUpdate
from app.security import PasswordHasher, TokenManager

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid email or password"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def profile_to_dict(user: User, following: bool) -> dict:
    """Public projection of *user* as seen by a particular viewer."""
    return {
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "following": following,
    }


class UserService:
    def __init__(self, tokens: TokenManager, hasher: PasswordHasher) -> None:
        self.tokens = tokens
        self.hasher = hasher

    def _user_to_dict(self, user: User) -> dict:
        """The caller's own account, with a freshly issued token."""
        return {
            "email": user.email,
            "token": self.tokens.issue(str(user.id)),
            "username": user.username,
            "bio": user.bio,
            "image": user.image,
        }

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get_by_id(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def _get_by_username(self, db: AsyncSession, username: str) -> User:
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def is_following(self, db: AsyncSession, follower_id: int | None, followee_id: int) -> bool:
        if follower_id is None:
            return False
        q = select(
            exists().where(
                user_follows.c.follower_id == follower_id,
                user_follows.c.followee_id == followee_id,
            )
        )
        return bool((await db.execute(q)).scalar())

    async def following_among(
        self, db: AsyncSession, follower_id: int | None, followee_ids: set[int]
    ) -> set[int]:
        """Subset of *followee_ids* that *follower_id* follows (one query)."""
        if follower_id is None or not followee_ids:
            return set()
        q = select(user_follows.c.followee_id).where(
            user_follows.c.follower_id == follower_id,
            user_follows.c.followee_id.in_(followee_ids),
        )
        return set((await db.execute(q)).scalars().all())

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def _save_unique(self, db: AsyncSession, user: User, changes: dict | None = None) -> None:
        """
        Apply *changes* to *user* and flush inside a SAVEPOINT, translating
        an email / username unique-constraint violation into a
        ``ValidationError``.

        Changes are set after the SAVEPOINT opens because ``begin_nested``
        flushes pending state first.
        """
        try:
            async with db.begin_nested():
                for field, value in (changes or {}).items():
                    setattr(user, field, value)
                db.add(user)
                await db.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc, "uq_users_email", "users.email"):
                raise ValidationError("email has already been taken")
            if is_unique_violation(exc, "uq_users_username", "users.username"):
                raise ValidationError("username has already been taken")
            raise

    async def register(self, db: AsyncSession, data: RegisterUser) -> dict:
        user = User(
            email=data.email,
            username=data.username,
            password_hash=self.hasher.hash(data.password),
        )
        await self._save_unique(db, user)
        logger.info("Registered user id=%s username=%r", user.id, user.username)
        return self._user_to_dict(user)

    async def login(self, db: AsyncSession, email: str, password: str) -> dict:
        """
        Authenticate by email and password.

        Unknown email and wrong password raise the same ``AuthError`` so the
        response does not reveal which accounts exist.
        """
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None or not self.hasher.matches(password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthError(INVALID_CREDENTIALS)
        return self._user_to_dict(user)

    async def get_current_user(self, db: AsyncSession, user_id: int) -> dict:
        return self._user_to_dict(await self._get_by_id(db, user_id))

    async def update_user(self, db: AsyncSession, user_id: int, data: UserUpdate) -> dict:
        """
        Apply a partial update: only fields present (and not null) in the
        payload change; a new password is re-hashed.
        """
        user = await self._get_by_id(db, user_id)
        update_data = data.model_dump(exclude_none=True)

        password = update_data.pop("password", None)
        if password is not None:
            update_data["password_hash"] = self.hasher.hash(password)

        update_data["updated_at"] = utcnow()

        await self._save_unique(db, user, update_data)
        return self._user_to_dict(user)

    # ------------------------------------------------------------------
    # Profiles and follows
    # ------------------------------------------------------------------

    async def get_profile(self, db: AsyncSession, viewer_id: int | None, username: str) -> dict:
        user = await self._get_by_username(db, username)
        return profile_to_dict(user, await self.is_following(db, viewer_id, user.id))

    async def follow(self, db: AsyncSession, viewer_id: int, username: str) -> dict:
        target = await self._get_by_username(db, username)
        if target.id == viewer_id:
            raise ValidationError("cannot follow yourself")

        stmt = insert_ignore(db, user_follows, ["follower_id", "followee_id"]).values(
            follower_id=viewer_id, followee_id=target.id
        )
        await db.execute(stmt)
        return profile_to_dict(target, True)

    async def unfollow(self, db: AsyncSession, viewer_id: int, username: str) -> dict:
        target = await self._get_by_username(db, username)
        await db.execute(
            delete(user_follows).where(
                user_follows.c.follower_id == viewer_id,
                user_follows.c.followee_id == target.id,
            )
        )
        return profile_to_dict(target, False)
