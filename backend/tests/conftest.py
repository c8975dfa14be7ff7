"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["ADMIN_EMAIL"] = "admin@test.com"
os.environ["ADMIN_PASSWORD"] = "TestAdmin123!"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTO_CREATE_DB"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from authentication.auth import create_access_token, get_password_hash  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402
from repositories.db_models import Role  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session."""
    return db_session


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app
    from helpers.rate_limiter import limiter

    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(
    db_session,
    username: str,
    role: Role = Role.USER,
    password: str = "password123",
    **grant: bool,
) -> db_models.User:
    """Insert a user; keyword capabilities create a moderator grant row."""
    user = db_models.User(
        email=f"{username}@example.com",
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
    )
    db_session.add(user)
    db_session.flush()
    if grant:
        db_session.add(db_models.ModeratorPermission(user_id=user.id, **grant))
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers_for(user: db_models.User) -> dict[str, str]:
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(db_session) -> db_models.User:
    """Create a plain member."""
    return make_user(db_session, "testuser", password="testpassword123")


@pytest.fixture
def other_user(db_session) -> db_models.User:
    return make_user(db_session, "otheruser")


@pytest.fixture
def moderator_user(db_session) -> db_models.User:
    """Moderator allowed to ban and delete posts, nothing else."""
    return make_user(
        db_session,
        "moduser",
        role=Role.MODERATOR,
        can_ban_users=True,
        can_delete_posts=True,
    )


@pytest.fixture
def admin_user(db_session) -> db_models.User:
    """Create an admin."""
    return make_user(
        db_session, "adminuser", role=Role.ADMIN, password="adminpassword123"
    )


@pytest.fixture
def auth_headers(test_user) -> dict[str, str]:
    return auth_headers_for(test_user)


@pytest.fixture
def other_auth_headers(other_user) -> dict[str, str]:
    return auth_headers_for(other_user)


@pytest.fixture
def moderator_auth_headers(moderator_user) -> dict[str, str]:
    return auth_headers_for(moderator_user)


@pytest.fixture
def admin_auth_headers(admin_user) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
def test_category(db_session) -> db_models.Category:
    """Create a test category."""
    category = db_models.Category(
        name="Test Category", slug="test-category", description="A test category"
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def test_topic(db_session, test_user, test_category) -> db_models.Topic:
    """Topic by test_user with its opening post."""
    topic = db_models.Topic(
        title="Test Topic", category_id=test_category.id, author_id=test_user.id
    )
    db_session.add(topic)
    db_session.flush()
    db_session.add(
        db_models.Post(
            topic_id=topic.id, author_id=test_user.id, content="Opening post"
        )
    )
    db_session.commit()
    db_session.refresh(topic)
    return topic


@pytest.fixture
def test_post(db_session, test_topic) -> db_models.Post:
    """The opening post of test_topic."""
    return (
        db_session.query(db_models.Post)
        .filter(db_models.Post.topic_id == test_topic.id)
        .first()
    )


@pytest.fixture
def test_tag(db_session) -> db_models.Tag:
    tag = db_models.Tag(name="python", color="blue")
    db_session.add(tag)
    db_session.commit()
    db_session.refresh(tag)
    return tag


@pytest.fixture
def user_factory(db_session):
    """Build extra users: user_factory("name", role=..., can_ban_users=True)."""

    def _make(username: str, **kwargs) -> db_models.User:
        return make_user(db_session, username, **kwargs)

    return _make


@pytest.fixture
def headers_for():
    return auth_headers_for
