"""Tests for the Database transaction scope."""

import pytest
from sqlalchemy import select

from ferm.config import Settings
from ferm.core.errors import TransientInfraError
from ferm.infra.database import Database
from ferm.models import User


class TestDatabase:
    """Tests for Database."""

    @pytest.mark.asyncio
    async def test_transaction_commits(self, db: Database):
        async with db.transaction() as session:
            session.add(User(id=10, email="new@example.com"))

        async with db.transaction() as session:
            user = await session.get(User, 10)

        assert user is not None
        assert user.email == "new@example.com"

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, db: Database):
        with pytest.raises(RuntimeError):
            async with db.transaction() as session:
                session.add(User(id=11, email="ghost@example.com"))
                await session.flush()
                raise RuntimeError("boom")

        async with db.transaction() as session:
            found = await session.scalar(select(User).where(User.id == 11))

        assert found is None

    @pytest.mark.asyncio
    async def test_verify(self, db: Database):
        assert await db.verify() is True

    @pytest.mark.asyncio
    async def test_verify_unreachable(self, tmp_path):
        broken = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        try:
            assert await broken.verify() is False
        finally:
            await broken.close()

    @pytest.mark.asyncio
    async def test_connect_fails_fast_after_retries(self, tmp_path):
        broken = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        try:
            with pytest.raises(TransientInfraError):
                await broken.connect(attempts=2, delay_seconds=0)
        finally:
            await broken.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, tmp_path):
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
        await database.close()
        await database.verify()
        await database.close()
        await database.close()

    def test_from_settings_pool_options_only_for_postgres(self):
        pg = Database.from_settings(Settings(_env_file=None))
        lite = Database.from_settings(Settings(_env_file=None, db_url_override="sqlite+aiosqlite:///x.db"))

        assert pg._engine_options["pool_size"] == 5
        assert pg._engine_options["pool_pre_ping"] is True
        assert "pool_size" not in lite._engine_options
