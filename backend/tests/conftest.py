"""Pytest configuration and fixtures"""
from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.core.database import Base
from app.core.principal import ADMIN, SUPERADMIN, Principal
from app.core.security import get_password_hash
from app.main import create_app
from app.models.admin_account import AdminAccount
from app.services.audit_service import AuditEmitter
from app.services.token_service import TokenService

TEST_PASSWORD = "secret123"


def make_settings(**overrides) -> Settings:
    values = dict(
        DATABASE_URL="sqlite://",
        ACCESS_TOKEN_SECRET="test-access-secret-0123456789abcdef0123456789",
        REFRESH_TOKEN_SECRET="test-refresh-secret-0123456789abcdef012345678",
        COOKIE_SECURE=False,
        DB_INIT_MODE="off",
        BCRYPT_ROUNDS=4,
        AUTH_RATE_LIMIT_REQUESTS=1000,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh in-memory database shared by every session of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def audit(session_factory) -> AuditEmitter:
    return AuditEmitter(session_factory)


@pytest.fixture
def token_service(settings) -> TokenService:
    return TokenService(settings.token_config())


@pytest.fixture
def app(settings, session_factory):
    return create_app(settings, session_factory=session_factory)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_admin(db) -> Callable[..., AdminAccount]:
    """Insert an account directly, bypassing the guarded paths"""

    def _make(email: str, role: str = ADMIN, is_active: bool = True, name: str = "Admin") -> AdminAccount:
        admin = AdminAccount(
            name=name,
            email=email,
            password_hash=get_password_hash(TEST_PASSWORD, rounds=4),
            role=role,
            is_active=is_active,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    return _make


@pytest.fixture
def superadmin(make_admin) -> AdminAccount:
    return make_admin("root@catalog.io", role=SUPERADMIN, name="Root")


@pytest.fixture
def auth_headers(token_service) -> Callable[[AdminAccount], dict]:
    def _headers(admin: AdminAccount) -> dict:
        pair = token_service.issue(admin.id, admin.role)
        return {"Authorization": f"Bearer {pair.access_token}"}

    return _headers


def principal_of(admin: AdminAccount) -> Principal:
    return Principal(subject_id=admin.id, role=admin.role)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
