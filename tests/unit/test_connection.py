from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from psycopg_pool import PoolTimeout

from itera_worker.config.settings import Settings
from itera_worker.database.connection import close_pool, init_pool

POOL_CLASS = "itera_worker.database.connection.AsyncConnectionPool"


@pytest.mark.asyncio
class TestInitPool:
    @patch(POOL_CLASS)
    async def test_opens_and_closes_pool(self, mock_pool_cls: MagicMock) -> None:
        pool = mock_pool_cls.return_value
        pool.open = AsyncMock()
        pool.close = AsyncMock()

        await init_pool(Settings(db_host="db", db_database="itera_test"))
        await close_pool()

        conninfo = mock_pool_cls.call_args.args[0]
        assert "host=db" in conninfo
        assert "dbname=itera_test" in conninfo
        pool.open.assert_awaited_once_with(wait=True)
        pool.close.assert_awaited_once()

    @patch(POOL_CLASS)
    async def test_failed_open_closes_pool(self, mock_pool_cls: MagicMock) -> None:
        pool = mock_pool_cls.return_value
        pool.open = AsyncMock(side_effect=PoolTimeout("pool initialization incomplete"))
        pool.close = AsyncMock()

        with pytest.raises(PoolTimeout):
            await init_pool(Settings())

        pool.close.assert_awaited_once()
