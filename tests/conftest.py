"""Pytest configuration for all tests."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import AsyncGenerator, AsyncIterator, Iterable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from engagetrack.domain.entities.audit_entry import AuditAction, AuditEntry
from engagetrack.domain.entities.role import Role
from engagetrack.domain.entities.user import UserAccount
from engagetrack.domain.exceptions import UserNotFoundError
from engagetrack.domain.services.role_audit_service import AuditRecorder
from engagetrack.domain.services.role_management_service import (
    NotificationDispatcher,
    RoleManagementService,
)
from engagetrack.domain.services.user_directory import DirectoryTransaction, UserDirectory
from engagetrack.infrastructure.auth.jwt_service import jwt_service
from engagetrack.infrastructure.persistence.database import Base
from engagetrack.infrastructure.persistence.locks import SUPER_ADMIN_GUARD_KEY, KeyedLockRegistry
from engagetrack.infrastructure.persistence.models import UserModel, UserRoleModel

# (id, email, full name, roles, blocked)
STANDARD_USERS: list[tuple[str, str, str | None, tuple[Role, ...], bool]] = [
    ("owner", "owner@example.com", "Olivia Owner", (Role.SUPER_ADMIN,), False),
    ("admin", "admin@example.com", "Adam Admin", (Role.ADMIN,), False),
    ("admin2", "admin2@example.com", "Alice Second", (Role.ADMIN,), False),
    ("host", "host@example.com", "Hank Host", (Role.HOST,), False),
    ("viewer", "viewer@example.com", "Vera Viewer", (Role.VIEWER,), False),
    ("participant", "participant@example.com", None, (Role.PARTICIPANT,), False),
    ("blocked-admin", "blocked@example.com", "Bob Blocked", (Role.ADMIN,), True),
]


def standard_accounts() -> list[UserAccount]:
    return [
        UserAccount(
            id=user_id,
            email=email,
            full_name=name,
            roles=frozenset(roles),
            is_blocked=blocked,
            blocked_at=datetime(2026, 1, 1, tzinfo=timezone.utc) if blocked else None,
        )
        for user_id, email, name, roles, blocked in STANDARD_USERS
    ]


class InMemoryTransaction(DirectoryTransaction):
    """Works on a private copy of the directory until the unit commits."""

    def __init__(self, users: dict[str, UserAccount]) -> None:
        self.users = users

    async def get_user(self, user_id: str) -> UserAccount | None:
        return self.users.get(user_id)

    async def count_super_admins(self) -> int:
        return sum(1 for user in self.users.values() if user.holds(Role.SUPER_ADMIN))

    async def replace_roles(self, user_id: str, roles: Iterable[Role]) -> UserAccount:
        self.users[user_id] = self._require(user_id).with_roles(roles)
        return self.users[user_id]

    async def set_block_status(
        self,
        user_id: str,
        blocked: bool,
        reason: str | None,
        at: datetime | None,
    ) -> UserAccount:
        self.users[user_id] = replace(
            self._require(user_id), is_blocked=blocked, block_reason=reason, blocked_at=at
        )
        return self.users[user_id]

    def _require(self, user_id: str) -> UserAccount:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user


class InMemoryUserDirectory(UserDirectory):
    """Dictionary-backed directory with the same locking rules as the SQL one.

    ``commit_delay`` pauses every unit just before it commits, which lets
    tests interleave concurrent units or run past the service timeout.
    """

    def __init__(self, users: Iterable[UserAccount] = ()) -> None:
        self.users: dict[str, UserAccount] = {user.id: user for user in users}
        self.locks = KeyedLockRegistry()
        self.commit_delay = 0.0
        self.commit_error: Exception | None = None
        self.commits = 0

    async def get_user(self, user_id: str) -> UserAccount | None:
        return self.users.get(user_id)

    async def list_users(self) -> list[UserAccount]:
        return list(self.users.values())

    @asynccontextmanager
    async def atomic(
        self,
        user_ids: Iterable[str],
        guard_super_admins: bool = False,
    ) -> AsyncIterator[DirectoryTransaction]:
        keys = set(user_ids)
        if guard_super_admins:
            keys.add(SUPER_ADMIN_GUARD_KEY)
        async with self.locks.hold(keys):
            tx = InMemoryTransaction(dict(self.users))
            yield tx
            if self.commit_delay:
                await asyncio.sleep(self.commit_delay)
            if self.commit_error is not None:
                raise self.commit_error
            self.users = tx.users
            self.commits += 1

    def super_admin_ids(self) -> set[str]:
        return {user.id for user in self.users.values() if user.holds(Role.SUPER_ADMIN)}


class RecordingAuditRecorder(AuditRecorder):
    def __init__(self, fail: bool = False) -> None:
        self.entries: list[AuditEntry] = []
        self.fail = fail

    async def record(self, entry: AuditEntry) -> None:
        if self.fail:
            raise RuntimeError("audit store unavailable")
        self.entries.append(entry)


class RecordingNotifier(NotificationDispatcher):
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, AuditAction, Role, str]] = []
        self.fail = fail

    def dispatch(
        self,
        target_id: str,
        action: AuditAction,
        role: Role,
        actor_display_name: str,
    ) -> None:
        if self.fail:
            raise RuntimeError("notification queue unavailable")
        self.sent.append((target_id, action, role, actor_display_name))


@pytest.fixture
def directory() -> InMemoryUserDirectory:
    """In-memory directory seeded with one user per role."""
    return InMemoryUserDirectory(standard_accounts())


@pytest.fixture
def audit_recorder() -> RecordingAuditRecorder:
    return RecordingAuditRecorder()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(
    directory: InMemoryUserDirectory,
    audit_recorder: RecordingAuditRecorder,
    notifier: RecordingNotifier,
) -> RoleManagementService:
    return RoleManagementService(
        directory,
        audit_recorder=audit_recorder,
        notifier=notifier,
        timeout_seconds=2.0,
    )


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a file database.

    Each session gets its own connection, so independent units (role change,
    audit write, notification lookup) behave as they do in production.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'roles.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


async def seed_users(
    factory: async_sessionmaker[AsyncSession],
    users: Iterable[tuple[str, str, str | None, tuple[Role, ...], bool]] = STANDARD_USERS,
) -> None:
    async with factory() as session:
        for user_id, email, name, roles, blocked in users:
            session.add(
                UserModel(
                    id=user_id,
                    email=email,
                    full_name=name,
                    is_blocked=blocked,
                    blocked_at=datetime(2026, 1, 1, tzinfo=timezone.utc) if blocked else None,
                    roles=[UserRoleModel(role=role.value) for role in roles],
                )
            )
        await session.commit()


@pytest_asyncio.fixture
async def seeded_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """File database holding the standard users."""
    await seed_users(session_factory)
    return session_factory


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        token = jwt_service.create_access_token(user_id=user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def api_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(
    seeded_factory: async_sessionmaker[AsyncSession],
    api_notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client backed by the seeded file database."""
    from engagetrack.infrastructure.api.app import app
    from engagetrack.infrastructure.api.dependencies import get_role_change_notifier
    from engagetrack.infrastructure.persistence.database import get_session_factory

    app.dependency_overrides[get_session_factory] = lambda: seeded_factory
    app.dependency_overrides[get_role_change_notifier] = lambda: api_notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def seed():
    """Insert ``(id, email, name, roles, blocked)`` rows through a session factory."""
    return seed_users


@pytest.fixture
def make_directory():
    """Build an in-memory directory from a list of accounts."""
    return InMemoryUserDirectory


@pytest.fixture
def make_service(audit_recorder: RecordingAuditRecorder, notifier: RecordingNotifier):
    """Build a service around any directory, sharing the recording fakes."""

    def _make(user_directory: UserDirectory, **kwargs) -> RoleManagementService:
        kwargs.setdefault("audit_recorder", audit_recorder)
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("timeout_seconds", 2.0)
        return RoleManagementService(user_directory, **kwargs)

    return _make
