# backend/libs/db.py
import os

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

# Construct DATABASE_URL from individual environment variables if DATABASE_URL is not set
# This allows Kubernetes deployments to use separate env vars
if "DATABASE_URL" in os.environ:
    DATABASE_URL = os.getenv("DATABASE_URL")
else:
    # Build from individual components
    db_host = os.getenv("DATABASE_HOST", "127.0.0.1")
    db_port = os.getenv("DATABASE_PORT", "5432")
    db_user = os.getenv("DATABASE_USER", "nexus")
    db_password = os.getenv("DATABASE_PASSWORD", "")
    db_name = os.getenv("DATABASE_NAME", "nexus")

    # URL encode password if it contains special characters
    from urllib.parse import quote_plus

    db_password_encoded = quote_plus(db_password) if db_password else ""

    DATABASE_URL = f"postgresql+asyncpg://{db_user}:{db_password_encoded}@{db_host}:{db_port}/{db_name}"

engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # set True to log SQL while debugging
    future=True,
)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """Async session for FastAPI dependency injection."""
    async with AsyncSessionLocal() as session:
        yield session


def error_code(exc: Exception) -> str:
    """
    Extract the Postgres SQLSTATE from a DBAPI error wrapped by SQLAlchemy.

    asyncpg exposes it as ``sqlstate``, psycopg as ``pgcode``. Returns an
    empty string when neither is present (e.g. SQLite in tests).
    """
    orig = getattr(exc, "orig", exc)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    cause = getattr(orig, "__cause__", None)
    if cause is not None:
        code = getattr(cause, "sqlstate", None)
        if code:
            return str(code)
    return ""
