import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.chat import services
from app.core.exceptions import PersistenceError, ValidationError
from app.db.models.message import Message, MessageRole


def test_append_assigns_id_and_timestamp(db):
    message = services.append_message(db, "Hello", MessageRole.user)

    assert message.id is not None
    assert message.content == "Hello"
    assert message.role == MessageRole.user
    assert message.created_at is not None
    assert db.query(Message).count() == 1


def test_append_ids_follow_insertion_order(db):
    first = services.append_message(db, "one", MessageRole.user)
    second = services.append_message(db, "two", "assistant")

    assert second.id > first.id
    assert second.created_at >= first.created_at
    assert second.role == MessageRole.assistant


def test_recent_returns_newest_first(db):
    for i in range(5):
        services.append_message(db, f"message {i}", MessageRole.user)

    recent = services.get_recent_messages(db, limit=3)

    assert [m.content for m in recent] == ["message 4", "message 3", "message 2"]
    created = [m.created_at for m in recent]
    assert created == sorted(created, reverse=True)


def test_recent_default_limit_is_fifty(db):
    for i in range(55):
        services.append_message(db, f"m{i}", MessageRole.user)

    assert len(services.get_recent_messages(db)) == 50


def test_recent_zero_limit_is_empty(db):
    services.append_message(db, "Hello", MessageRole.user)
    assert services.get_recent_messages(db, limit=0) == []


def test_recent_limit_larger_than_log(db):
    services.append_message(db, "only one", MessageRole.user)
    assert len(services.get_recent_messages(db, limit=10)) == 1


@pytest.mark.parametrize("limit", [-1, 2.5, "3", True])
def test_recent_rejects_bad_limit(db, limit):
    with pytest.raises(ValidationError):
        services.get_recent_messages(db, limit=limit)


def test_recent_is_idempotent(db):
    for content in ("a", "b", "c"):
        services.append_message(db, content, MessageRole.user)

    first = [(m.id, m.content, m.role) for m in services.get_recent_messages(db, limit=10)]
    second = [(m.id, m.content, m.role) for m in services.get_recent_messages(db, limit=10)]
    assert first == second


def test_ties_on_created_at_are_broken_by_id(db):
    first = services.append_message(db, "first", MessageRole.user)
    second = services.append_message(db, "second", MessageRole.assistant)
    second.created_at = first.created_at
    db.commit()

    recent = services.get_recent_messages(db, limit=2)
    assert [m.id for m in recent] == [second.id, first.id]


@pytest.fixture
def broken_db():
    # No tables created: every statement fails at the storage layer
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()
    engine.dispose()


def test_append_wraps_storage_failure(broken_db):
    with pytest.raises(PersistenceError):
        services.append_message(broken_db, "Hello", MessageRole.user)


def test_recent_wraps_storage_failure(broken_db):
    with pytest.raises(PersistenceError):
        services.get_recent_messages(broken_db, limit=5)
