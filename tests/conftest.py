# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from link_manager.db.session import Base
from link_manager.models import Category, Link, Project

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT handling.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture()
def project(db_session: Session) -> Iterator[Project]:
    """Create a baseline project for category tests."""
    project = Project(owner_id=1, name="Reading", position="n")
    db_session.add(project)
    db_session.flush()
    db_session.refresh(project)
    yield project


@pytest.fixture()
def make_category(db_session: Session, project: Project) -> Callable[..., Category]:
    """Return a factory persisting categories with explicit positions."""

    def _make(name: str, position: str, project_id: int | None = None) -> Category:
        category = Category(
            project_id=project_id if project_id is not None else project.id,
            name=name,
            position=position,
        )
        db_session.add(category)
        db_session.flush()
        return category

    return _make


@pytest.fixture()
def category(make_category: Callable[..., Category]) -> Category:
    """Create a baseline category for link tests."""
    return make_category("Python", "n")


@pytest.fixture()
def make_link(db_session: Session, category: Category) -> Callable[..., Link]:
    """Return a factory persisting links with explicit positions."""

    def _make(title: str, position: str) -> Link:
        link = Link(
            category_id=category.id,
            url=f"https://example.com/{title.lower()}",
            title=title,
            position=position,
        )
        db_session.add(link)
        db_session.flush()
        return link

    return _make
