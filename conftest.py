"""Fixtures: throwaway SQLite databases standing in for Access files, gateways and dispatchers."""

import json
import typing as t
from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlalchemy.engine import URL

from access_mcp.config import ServerSettings
from access_mcp.database import AccessGateway
from access_mcp.dispatch import Dispatcher


SCHEMA = [
    "CREATE TABLE Customers (ID INTEGER PRIMARY KEY, Name VARCHAR(50) NOT NULL, City TEXT)",
    "CREATE TABLE Orders (ID INTEGER PRIMARY KEY, CustomerID INTEGER, Amount FLOAT, "
    "CONSTRAINT fk_orders_customer FOREIGN KEY (CustomerID) REFERENCES Customers (ID))",
    "CREATE VIEW CustomerNames AS SELECT Name FROM Customers",
    "INSERT INTO Customers (ID, Name, City) VALUES (1, 'John', 'Rome'), (2, 'Jane', 'Milan')",
    "INSERT INTO Orders (ID, CustomerID, Amount) VALUES (1, 1, 10.5)",
]

# Access-like system catalog, readable by the SQLite backend
CATALOG = [
    "CREATE TABLE MSysObjects (Name TEXT, Type INTEGER, Flags INTEGER, DateCreate TEXT, DateUpdate TEXT)",
    "INSERT INTO MSysObjects VALUES "
    "('frmCustomers', -32768, 0, '2024-01-01', '2024-02-01'), "
    "('rptSales', -32764, 0, '2024-01-01', '2024-02-01'), "
    "('AutoExec', -32766, 0, '2024-01-01', '2024-02-01'), "
    "('modUtils', -32761, 0, '2024-01-01', '2024-02-01')",
]


def CreateDatabase(path: Path, statements: list[str]) -> str:
    """Create a SQLite database file running the given statements."""

    engine = sa.create_engine(URL.create("sqlite", database=str(path)))
    with engine.begin() as conn:
        for sql in statements:
            conn.execute(sa.text(sql))
    engine.dispose()
    return str(path)


@pytest.fixture
def dbPath(tmp_path: Path) -> str:
    return CreateDatabase(tmp_path / "sales.db", SCHEMA)


@pytest.fixture
def catalogDbPath(tmp_path: Path) -> str:
    return CreateDatabase(tmp_path / "catalog.db", SCHEMA + CATALOG)


@pytest.fixture
def gateway() -> t.Iterator[AccessGateway]:
    gateway = AccessGateway()
    yield gateway
    gateway.Disconnect()


@pytest.fixture
def connected(gateway: AccessGateway, dbPath: str) -> AccessGateway:
    gateway.Connect(dbPath)
    return gateway


@pytest.fixture
def dispatcher(dbPath: str) -> t.Iterator[Dispatcher]:
    from server import CreateDispatcher

    dispatcher = CreateDispatcher(ServerSettings(database_path=dbPath))
    yield dispatcher
    dispatcher.context.gateway.Disconnect()


@pytest.fixture
def call(dispatcher: Dispatcher) -> t.Callable[..., t.Any]:
    """Call a tool through the dispatcher, returning the result of the response."""

    def Call(name: str, arguments: dict | None = None, requestId: int = 1) -> t.Any:
        line = json.dumps({
            "jsonrpc": "2.0", "id": requestId, "method": "tools/call",
            "params": {"name": name, "arguments": arguments or {}},
        })
        response = dispatcher.HandleLine(line)
        assert response is not None
        assert response["id"] == requestId
        return response["result"]

    return Call
