# tests/conftest.py
from __future__ import annotations

import os
import threading
from collections.abc import Callable, Generator, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from board_order.core.position import DecimalPosition
from board_order.db.session import Base
from board_order.db.session import get_db as app_get_session
from board_order.main import app as fastapi_app
from board_order.models import Card
from board_order.repositories.card_repo import CardRepository

TEST_DB_URL = "sqlite://"

CardFactory = Callable[..., list[Card]]


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Provide a fresh in-memory database per test.

    Moves commit and roll back on their own, so tests cannot be wrapped in an
    outer transaction; a new schema per test keeps them isolated instead.
    """
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def file_session_factory(tmp_path: Path) -> Generator[sessionmaker[Session], None, None]:
    """Provide sessions on a file database that separate threads can share.

    Every session opens its own connection, so concurrent writers really race
    on the unique constraint.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'board.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture()
def run_concurrently() -> Callable[[int, Callable[[int], object]], list[BaseException]]:
    """Return a helper that starts ``count`` workers at once and collects their errors."""

    def _run(count: int, work: Callable[[int], object]) -> list[BaseException]:
        barrier = threading.Barrier(count)
        errors: list[BaseException] = []
        lock = threading.Lock()

        def worker(index: int) -> None:
            barrier.wait()
            try:
                work(index)
            except Exception as exc:
                with lock:
                    errors.append(exc)

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return errors

    return _run


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def algebra() -> DecimalPosition:
    """Position algebra with default tuning."""
    return DecimalPosition()


@pytest.fixture()
def make_cards(db_session: Session) -> CardFactory:
    """Insert cards with explicit positions and commit them.

    Positions may be None to simulate rows that were never placed.
    """

    def _make(column_key: str, positions: list[str | None], prefix: str = "card") -> list[Card]:
        cards = [
            Card(column_key=column_key, title=f"{prefix}-{index}", position=position)
            for index, position in enumerate(positions)
        ]
        db_session.add_all(cards)
        db_session.commit()
        return cards

    return _make


@pytest.fixture()
def column_ids(db_session: Session) -> Callable[[str], list[int]]:
    """Return a helper listing the card ids of a column in display order."""

    def _ids(column_key: str) -> list[int]:
        return [card.id for card in CardRepository(db_session).list_column(column_key)]

    return _ids
