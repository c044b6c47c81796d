"""Store factory: one shared aiosqlite connection for all stores."""

import asyncio
import logging
from pathlib import Path
from typing import Union

import aiosqlite

from .schema import init_db
from .task_store import SqliteTaskStore
from .user_store import SqliteProjectStore, SqliteUserStore

logger = logging.getLogger(__name__)


class StoreGroup:
    """Store instances sharing the same database connection.

    The connection carries a single implicit transaction, so every store
    serializes its statements through one shared lock.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.lock = asyncio.Lock()
        self.user_store = SqliteUserStore(conn, self.lock)
        self.project_store = SqliteProjectStore(conn, self.lock)
        self.task_store = SqliteTaskStore(conn, self.lock)

    async def close(self) -> None:
        await self.conn.close()
        logger.info("Database connection closed")


async def create_store_group(db_path: Union[str, Path]) -> StoreGroup:
    """Open the database, apply the schema and build the stores.

    Args:
        db_path: SQLite database file path, or ``:memory:``

    Returns:
        StoreGroup instance
    """
    db_path = str(db_path)
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    logger.info(f"Database ready at {db_path}")
    return StoreGroup(conn)
