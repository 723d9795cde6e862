"""Shared fixtures: an isolated in-memory database per test, a recording
real-time notifier and a fake Redis for the category cache."""

import os

# Settings are read at import time; point the app at SQLite before anything imports it
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REALTIME_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus_library.database import Base, get_db
from campus_library.main import app
from campus_library.models import Book, BookCopy, Category, Channel, Post, User
from campus_library.services.auth import create_access_token
from campus_library.services.book_status import recompute_book_status
from campus_library.services.realtime import RealtimeNotifier


class RecordingNotifier(RealtimeNotifier):
    """Notifier that keeps every emitted event instead of publishing it."""

    def __init__(self):
        super().__init__(client=None, topic_prefix="test")
        self.events = []

    def emit(self, room, event, payload=None):
        self.events.append((room, event, payload))

    def rooms_for(self, event):
        return [room for room, name, _ in self.events if name == event]


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = session_local()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def cache():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def factory(role="USER", is_premium=False, first_name="Test", last_name="User", **fields):
        counter["n"] += 1
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=fields.pop("email", f"user{counter['n']}@campus.edu"),
            password_hash=fields.pop("password_hash", "not-a-real-hash"),
            role=role,
            status=fields.pop("status", "ACTIVE"),
            is_premium=is_premium,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture
def make_book(db_session):
    def factory(title="Clean Code", copies=1, category=None, **fields):
        book = Book(title=title, author=fields.pop("author", "Robert Martin"), category=category, **fields)
        db_session.add(book)
        db_session.flush()
        for i in range(copies):
            db_session.add(BookCopy(book_id=book.book_id, barcode=f"BK{book.book_id:06d}-{i:04d}"))
        recompute_book_status(db_session, book.book_id)
        db_session.commit()
        db_session.refresh(book)
        return book

    return factory


@pytest.fixture
def make_category(db_session):
    def factory(name="Programming", description=None):
        category = Category(name=name, description=description)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return factory


@pytest.fixture
def make_channel_post(db_session, make_user):
    """A premium owner with a channel and one post."""
    def factory(owner=None, link_name="readers-club", content="Welcome to the club!"):
        owner = owner or make_user(is_premium=True)
        channel = Channel(owner_id=owner.user_id, name="Readers Club", link_name=link_name)
        db_session.add(channel)
        db_session.flush()
        post = Post(channel_id=channel.channel_id, author_id=owner.user_id, content=content)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return owner, channel, post

    return factory


@pytest.fixture
def client(db_session, notifier, cache):
    """HTTP client wired to the test session; the lifespan is not run."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.notifier = notifier
    app.state.cache = cache
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.notifier
    del app.state.cache


@pytest.fixture
def auth_headers():
    def build(user):
        token = create_access_token({"sub": str(user.user_id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return build
