from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.middleware import install_query_counter

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def insert_ignore(db: AsyncSession, table, index_elements: list[str]):
    """
    Return an ``INSERT ... ON CONFLICT DO NOTHING`` for *table* in the
    dialect the session is bound to.

    Used for the tag vocabulary and the follow / favorite edges, where two
    concurrent writers may insert the same row: the store drops the
    duplicate instead of raising.
    """
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table)
    else:
        raise NotImplementedError(f"insert-ignore is not supported on {dialect!r}")
    return stmt.on_conflict_do_nothing(index_elements=index_elements)
