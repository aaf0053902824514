"""
Shared test database and helpers for building users and auth headers.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from cogniflow.app.core.jwt import create_access_token
from cogniflow.app.core.security import get_password_hash
from cogniflow.app.models.enums import UserRole
from cogniflow.app.models.user import User

# In-memory test database shared by conftest fixtures and tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def create_user(session: AsyncSession, username: str, role: UserRole, is_active: bool = True) -> User:
    user = User(
        email=f"{username}@test.com",
        username=username,
        hashed_password=get_password_hash("password123"),
        role=role,
        is_active=is_active
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def token_headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.username, "user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}
