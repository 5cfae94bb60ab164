"""Shared fixtures: file-backed SQLite database, in-memory broker, recording mailer."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event

from ferm.config import Settings
from ferm.core.errors import ServiceUnavailableError
from ferm.infra.broker import encode_json
from ferm.infra.database import Database
from ferm.infra.mailer import MailPayload
from ferm.models import InventoryItem, ItemKind, ItemStatus, User
from ferm.services.runtime import GardenRuntime

T0 = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def make_record(
    topic: str,
    value: Any,
    key: str | bytes | None = None,
    offset: int = 0,
) -> SimpleNamespace:
    """Stand-in for an aiokafka ConsumerRecord."""
    if isinstance(value, dict):
        value = encode_json(value)
    elif isinstance(value, str):
        value = value.encode("utf-8")
    if isinstance(key, str):
        key = key.encode("utf-8")
    return SimpleNamespace(topic=topic, partition=0, offset=offset, key=key, value=value)


class FakeConsumer:
    """Yields the records queued at creation time, then ends."""

    def __init__(self, records: list[SimpleNamespace]) -> None:
        self._records = list(records)
        self.commits = 0
        self.stopped = False

    def __aiter__(self) -> "FakeConsumer":
        return self

    async def __anext__(self) -> SimpleNamespace:
        if not self._records:
            raise StopAsyncIteration
        return self._records.pop(0)

    async def commit(self) -> None:
        self.commits += 1

    def unsubscribe(self) -> None:
        pass

    async def stop(self) -> None:
        self.stopped = True


class InMemoryBroker:
    """Topic log kept in memory; each consumer takes what is queued."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.topics: dict[str, list[SimpleNamespace]] = defaultdict(list)
        self.published: list[tuple[str, str, dict[str, Any]]] = []
        self.consumers: list[FakeConsumer] = []
        self.fail_publish = False
        self.healthy = True

    async def check_ready(self) -> bool:
        return self.available and self.healthy

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def publish(self, topic: str, key: str, value: dict[str, Any]) -> None:
        if not self.available or self.fail_publish:
            raise ServiceUnavailableError(f"Failed to publish to {topic}")
        self.published.append((topic, key, value))
        log = self.topics[topic]
        log.append(make_record(topic, value, key=key, offset=len(self.published) - 1))

    def push_raw(self, topic: str, value: Any, key: str | bytes | None = None) -> None:
        self.topics[topic].append(make_record(topic, value, key=key))

    async def create_consumer(self, topic: str, group_id: str) -> FakeConsumer:
        if not self.available:
            raise ServiceUnavailableError("Message broker is disabled")
        records, self.topics[topic] = self.topics[topic], []
        consumer = FakeConsumer(records)
        self.consumers.append(consumer)
        return consumer

    async def release_consumer(self, consumer: FakeConsumer) -> None:
        await consumer.stop()


@dataclass
class RecordingMailer:
    """Mailer double; ``accept`` decides what the relay answers."""

    accept: bool = True
    sent: list[MailPayload] = field(default_factory=list)

    async def send(self, payload: MailPayload) -> bool:
        self.sent.append(payload)
        return self.accept


def serialize_sqlite_writers(database: Database) -> None:
    """Take the write lock at BEGIN so row-locking transactions queue up."""

    @event.listens_for(database.engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(database.engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        environment="dev",
        db_url_override=f"sqlite+aiosqlite:///{tmp_path / 'garden.db'}",
        db_connect_retries=1,
        db_connect_retry_delay_seconds=0.0,
        broker_enabled=False,
        broker_connect_retries=1,
        broker_connect_retry_delay_seconds=0.0,
        email_enabled=True,
        growth_minutes=10,
        garden_slots=6,
        log_json=False,
    )


@pytest_asyncio.fixture
async def db(test_settings: Settings):
    database = Database(test_settings.database_url)
    serialize_sqlite_writers(database)
    await database.create_all()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def users(db: Database) -> list[User]:
    async with db.transaction() as session:
        players = [
            User(id=1, email="player1@example.com"),
            User(id=2, email="player2@example.com"),
        ]
        session.add_all(players)
    return players


async def add_item(
    db: Database,
    *,
    user_id: int,
    crop_type: str,
    kind: ItemKind = ItemKind.SEED,
    item_id: int | None = None,
) -> int:
    status = ItemStatus.HARVESTED if kind == ItemKind.RAW_VEG else ItemStatus.NEW
    async with db.transaction() as session:
        item = InventoryItem(id=item_id, user_id=user_id, kind=kind, crop_type=crop_type, status=status)
        session.add(item)
        await session.flush()
        return item.id


@pytest.fixture
def broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def runtime(test_settings, db, users, broker, mailer, clock) -> GardenRuntime:
    return GardenRuntime(test_settings, db=db, broker=broker, mailer=mailer, clock=clock)


@pytest_asyncio.fixture
async def client(test_settings: Settings, runtime: GardenRuntime):
    from ferm.main import create_app

    app = create_app(test_settings, runtime=runtime)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def player() -> dict[str, str]:
    return {"X-User-Id": "1"}


@pytest.fixture
def admin() -> dict[str, str]:
    return {"X-User-Id": "1", "X-User-Role": "admin"}
