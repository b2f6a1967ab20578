"""
Database connections for the backup pipeline
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable
from urllib.parse import quote_plus
import aiomysql
import asyncpg
from pymongo import AsyncMongoClient

from .models import ConnectionParams, DatabaseKind
from .exceptions import DatabaseConnectionError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionHandle:
    """A live session to one database server, tagged with its kind.

    Owned by a single backup run. ``release`` closes the underlying client
    once; later calls do nothing.
    """

    def __init__(self, kind: DatabaseKind, client: Any, params: ConnectionParams):
        self.kind = kind
        self.client = client
        self.params = params
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def release(self):
        """Close the underlying client"""
        if self._released:
            return
        self._released = True

        if self.kind == DatabaseKind.MYSQL:
            await self.client.ensure_closed()
        else:
            # asyncpg connections and async Mongo clients share the same close
            await self.client.close()
        logger.info(f"Closed {self.kind.value} connection to {self.params.host}:{self.params.port}")

    def __repr__(self):
        return f"ConnectionHandle({self.kind.value}, {self.params.host}:{self.params.port})"


def build_mongo_uri(params: ConnectionParams) -> str:
    """Connection URI for the Mongo server, credentials percent-encoded"""
    credentials = ""
    if params.user:
        credentials = quote_plus(params.user)
        if params.password:
            credentials += f":{quote_plus(params.password)}"
        credentials += "@"
    host = params.host
    # IPv6 literals are bracketed in URIs
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"mongodb://{credentials}{host}:{params.port}/"


async def _connect_mysql(params: ConnectionParams):
    options = params.driver_options()
    return await aiomysql.connect(
        host=options["host"],
        user=options["user"],
        password=options["password"] or "",
        db=options["database"],
        port=options["port"],
    )


async def _connect_postgres(params: ConnectionParams):
    return await asyncpg.connect(**params.driver_options())


async def _connect_mongodb(params: ConnectionParams):
    # The database is chosen at export time, so connect to the server only
    client = AsyncMongoClient(build_mongo_uri(params))
    try:
        await client.admin.command("ping")
    except Exception:
        await client.close()
        raise
    return client


_CONNECTORS = {
    DatabaseKind.MYSQL: _connect_mysql,
    DatabaseKind.POSTGRES: _connect_postgres,
    DatabaseKind.MONGODB: _connect_mongodb,
}


async def connect_to_database(kind, params: ConnectionParams) -> ConnectionHandle:
    """Open a connection for the given database kind.

    Raises:
        UnsupportedDatabaseKind: before any network activity
        DatabaseConnectionError: when the driver cannot connect
    """
    kind = DatabaseKind.resolve(kind)
    connect = _CONNECTORS[kind]

    logger.info(f"Connecting to {kind.value} at {params.host}:{params.port}")
    try:
        client = await connect(params)
    except Exception as e:
        raise DatabaseConnectionError(
            f"Failed to connect to {kind.value} at {params.host}:{params.port}: {e}"
        ) from e

    logger.info("Connected to the database")
    return ConnectionHandle(kind, client, params)


Connector = Callable[[DatabaseKind, ConnectionParams], Awaitable[ConnectionHandle]]


@asynccontextmanager
async def open_connection(
    kind: DatabaseKind,
    params: ConnectionParams,
    connector: Connector = connect_to_database
) -> AsyncIterator[ConnectionHandle]:
    """Acquire a connection and release it exactly once on scope exit.

    A failing release is logged and never replaces an error raised inside
    the block.
    """
    handle = await connector(kind, params)
    try:
        yield handle
    finally:
        try:
            await handle.release()
        except Exception as e:
            logger.error(f"Error closing {kind.value} connection: {e}", exc_info=True)
