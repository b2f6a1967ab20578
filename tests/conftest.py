"""
Shared pytest fixtures for dbbackup tests.

This module provides:
- In-memory fakes for the MySQL, PostgreSQL and MongoDB clients
- A recording connector and notifier for orchestrator tests
- A fake mysqldump subprocess
- Backup request factories
"""

import copy
from pathlib import Path

import pytest

from dbbackup.core.database import ConnectionHandle
from dbbackup.core.models import BackupRequest, ConnectionParams, DatabaseKind


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    async def to_list(self, length=None):
        return copy.deepcopy(self.docs)


class FakeCollection:
    def __init__(self, name, docs):
        self.name = name
        self.docs = docs

    def find(self):
        return FakeCursor(self.docs)


class FakeMongoDatabase:
    def __init__(self, collections):
        self.collections = collections

    async def list_collection_names(self):
        # Server order is unspecified
        return list(reversed(list(self.collections)))

    def __getitem__(self, name):
        return FakeCollection(name, self.collections[name])


class FakeMongoClient:
    def __init__(self, databases=None):
        self.databases = databases or {}
        self.close_calls = 0

    def __getitem__(self, dbname):
        return FakeMongoDatabase(self.databases.get(dbname, {}))

    async def close(self):
        self.close_calls += 1


class FakePostgresConnection:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []
        self.close_calls = 0

    async def fetch(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.rows

    async def close(self):
        self.close_calls += 1


class FakeMySQLConnection:
    def __init__(self):
        self.close_calls = 0

    async def ensure_closed(self):
        self.close_calls += 1


class FailingCloseClient:
    """Client whose close always fails"""

    def __init__(self):
        self.close_calls = 0

    async def close(self):
        self.close_calls += 1
        raise RuntimeError("socket already closed")


class RecordingConnector:
    """Connector double that hands out handles around a fake client"""

    def __init__(self, client=None, error=None):
        self.client = client
        self.error = error
        self.calls = []
        self.handles = []

    async def __call__(self, kind, params):
        self.calls.append((kind, params))
        if self.error:
            raise self.error
        handle = ConnectionHandle(DatabaseKind.resolve(kind), self.client, params)
        self.handles.append(handle)
        return handle


class RecordingNotifier:
    def __init__(self):
        self.events = []
        self.closed = False

    async def notify(self, title, message):
        self.events.append((title, message))

    @property
    def titles(self):
        return [title for title, _ in self.events]

    async def aclose(self, timeout=10.0):
        self.closed = True


class FakeProcess:
    def __init__(self, returncode=0, stdout=b"", stderr=b""):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self):
        return self._stdout, self._stderr


MYSQL_DUMP_CONTENT = (
    "CREATE TABLE `orders` (`id` int NOT NULL);\n"
    "INSERT INTO `orders` VALUES (1),(2);\n"
)


def make_fake_mysqldump(calls, returncode=0, stderr=b"", content=MYSQL_DUMP_CONTENT):
    """Replacement for asyncio.create_subprocess_exec running mysqldump"""

    async def fake_exec(*cmd, **kwargs):
        calls.append((cmd, kwargs))
        if returncode == 0:
            for arg in cmd:
                if arg.startswith("--result-file="):
                    Path(arg.split("=", 1)[1]).write_text(content)
        return FakeProcess(returncode=returncode, stderr=stderr)

    return fake_exec


@pytest.fixture
def shop_documents():
    return {
        "orders": [
            {"_id": 1, "item": "book", "qty": 2, "tags": ["paper", "new"]},
            {"_id": 2, "item": "pen", "qty": 10, "price": {"amount": 1.5, "currency": "EUR"}},
        ],
        "users": [
            {"_id": "u1", "name": "Ada", "active": True, "nickname": None},
        ],
    }


@pytest.fixture
def mongo_client(shop_documents):
    return FakeMongoClient({"shop": shop_documents})


@pytest.fixture
def catalog_rows():
    return [
        {"schemaname": "public", "tablename": "orders", "tableowner": "app",
         "tablespace": None, "hasindexes": True, "hasrules": False,
         "hastriggers": False, "rowsecurity": False},
        {"schemaname": "public", "tablename": "users", "tableowner": "app",
         "tablespace": None, "hasindexes": True, "hasrules": False,
         "hastriggers": True, "rowsecurity": False},
    ]


@pytest.fixture
def postgres_connection(catalog_rows):
    return FakePostgresConnection(rows=catalog_rows)


@pytest.fixture
def mysql_connection():
    return FakeMySQLConnection()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def make_request():
    """Factory for backup requests with sensible defaults"""

    def _make(**overrides):
        values = {
            "db": "mongodb",
            "host": "localhost",
            "user": "backup",
            "password": "secret",
            "dbname": "shop",
        }
        values.update(overrides)
        return BackupRequest(**values)

    return _make


@pytest.fixture
def mysql_params():
    return ConnectionParams(host="db.local", port=3306, user="root", password="s3cret", dbname="shop")
