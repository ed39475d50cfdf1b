"""Tests for the database gateway, against SQLite files."""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from access_mcp.database import AccessGateway, IsBestEffort, ConnectionUrl
from access_mcp.errors import DatabaseNotFound, ConnectionFailed, NotConnected, BackendError
from access_mcp.models import FieldInfo



# CONNECTION MANAGEMENT
# =====================


def TestConnectAndDisconnect(gateway: AccessGateway, dbPath: str):
    assert not gateway.IsConnected

    gateway.Connect(dbPath)
    assert gateway.IsConnected
    assert gateway.path == dbPath

    gateway.Disconnect()
    assert not gateway.IsConnected
    assert gateway.path is None


def TestDisconnectIsIdempotent(gateway: AccessGateway):
    gateway.Disconnect()
    gateway.Disconnect()
    assert not gateway.IsConnected


def TestConnectMissingFile(gateway: AccessGateway, tmp_path: Path):
    with pytest.raises(DatabaseNotFound, match="Database file not found"):
        gateway.Connect(str(tmp_path / "missing.accdb"))
    assert not gateway.IsConnected


def TestConnectUnsupportedExtension(gateway: AccessGateway, tmp_path: Path):
    path = tmp_path / "notes.txt"
    path.write_text("not a database")

    with pytest.raises(ConnectionFailed, match="Unsupported database file extension"):
        gateway.Connect(str(path))
    assert not gateway.IsConnected


def TestConnectUnreadableFile(gateway: AccessGateway, tmp_path: Path):
    """A file that is not a database fails at connect time, not at the first query."""

    path = tmp_path / "broken.db"
    path.write_bytes(b"this is not a database file. " * 100)

    with pytest.raises(ConnectionFailed, match="Error connecting to database"):
        gateway.Connect(str(path))
    assert not gateway.IsConnected


def TestConnectAccessWithoutDriver(gateway: AccessGateway, tmp_path: Path):
    """Without the Access ODBC driver, opening an .accdb fails cleanly."""

    path = tmp_path / "empty.accdb"
    path.write_bytes(b"")

    with pytest.raises(ConnectionFailed):
        gateway.Connect(str(path))
    assert not gateway.IsConnected


def TestReconnectReplacesConnection(connected: AccessGateway, catalogDbPath: str):
    previousEngine = connected.engine

    connected.Connect(catalogDbPath)
    assert connected.IsConnected
    assert connected.path == catalogDbPath
    assert connected.engine is not previousEngine


def TestFailedReconnectLeavesDisconnected(connected: AccessGateway, tmp_path: Path):
    with pytest.raises(DatabaseNotFound):
        connected.Connect(str(tmp_path / "missing.mdb"))
    assert not connected.IsConnected


def TestConnectionUrl(tmp_path: Path):
    assert ConnectionUrl(tmp_path / "a.mdb").drivername == "access+pyodbc"
    assert ConnectionUrl(tmp_path / "a.ACCDB").drivername == "access+pyodbc"
    assert ConnectionUrl(tmp_path / "a.sqlite").drivername == "sqlite"



# SCHEMA
# ======


@pytest.mark.parametrize("operation", [
    "ListTables", "ListQueries", "ListRelationships", "ListSystemTables",
    "ListForms", "ListReports", "ListMacros", "ListModules", "GetObjectMetadata",
])
def TestListingRequiresConnection(gateway: AccessGateway, operation: str):
    with pytest.raises(NotConnected, match="Not connected to database"):
        getattr(gateway, operation)()


def TestListTables(connected: AccessGateway):
    tables = {table.name: table for table in connected.ListTables()}
    assert set(tables) == {"Customers", "Orders"}

    customers = tables["Customers"]
    assert customers.record_count == 2
    assert [f.name for f in customers.fields] == ["ID", "Name", "City"]

    name = customers.fields[1]
    assert name.size == 50
    assert name.required
    assert not customers.fields[2].required


def TestListTablesHidesReservedTables(gateway: AccessGateway, catalogDbPath: str):
    gateway.Connect(catalogDbPath)

    assert "MSysObjects" not in [table.name for table in gateway.ListTables()]

    systemTables = gateway.ListSystemTables()
    assert [table.name for table in systemTables] == ["MSysObjects"]
    assert systemTables[0].record_count == 4


def TestAccessSystemTablesFromOdbcCatalog(gateway: AccessGateway, monkeypatch):
    """The Access dialect reflects user tables only: system tables come from the ODBC catalog."""

    rows = [
        SimpleNamespace(table_name="Customers", table_type="TABLE"),
        SimpleNamespace(table_name="MSysObjects", table_type="SYSTEM TABLE"),
        SimpleNamespace(table_name="MSysACEs", table_type="SYSTEM TABLE"),
        SimpleNamespace(table_name="~TMPCLP1234", table_type="TABLE"),
    ]
    engine = MagicMock()
    engine.dialect.name = "access"
    engine.raw_connection.return_value.cursor.return_value.tables.return_value = rows

    gateway.engine = engine
    monkeypatch.setattr(gateway, "GetTableRecordCount", lambda tableName: 3)

    systemTables = gateway.ListSystemTables()
    assert [table.name for table in systemTables] == ["MSysObjects", "MSysACEs", "~TMPCLP1234"]
    assert all(table.record_count == 3 for table in systemTables)

    # the catalog is read without a table type filter
    engine.raw_connection.return_value.cursor.return_value.tables.assert_called_once_with()
    engine.raw_connection.return_value.close.assert_called_once()


def TestListQueries(connected: AccessGateway):
    queries = connected.ListQueries()
    assert [q.name for q in queries] == ["CustomerNames"]
    assert queries[0].type == "Query"
    assert "Customers" in queries[0].sql


def TestListRelationships(connected: AccessGateway):
    relationships = connected.ListRelationships()
    assert len(relationships) == 1
    assert relationships[0].table == "Orders"
    assert relationships[0].foreign_table == "Customers"


def TestRecordCountDegradesToZero(connected: AccessGateway):
    assert connected.GetTableRecordCount("Orders") == 1
    assert connected.GetTableRecordCount("NoSuchTable") == 0


def TestTableFieldsDegradeToEmpty(connected: AccessGateway):
    assert connected.GetTableFields("NoSuchTable") == []



# DDL
# ===


def TestCreateAndDeleteTable(connected: AccessGateway):
    connected.CreateTable("Products", [
        FieldInfo(name="Code", type="text", size=10, required=True),
        FieldInfo(name="Price", type="float", size=8),
    ])

    products = next(t for t in connected.ListTables() if t.name == "Products")
    assert [f.name for f in products.fields] == ["Code", "Price"]
    assert products.fields[0].size == 10
    assert products.fields[0].required
    assert products.record_count == 0

    connected.DeleteTable("Products")
    assert "Products" not in [t.name for t in connected.ListTables()]


def TestCreateDuplicateTable(connected: AccessGateway):
    with pytest.raises(BackendError, match="already exists"):
        connected.CreateTable("Customers", [FieldInfo(name="ID", type="integer")])


def TestDeleteMissingTable(connected: AccessGateway):
    with pytest.raises(BackendError, match="no such table"):
        connected.DeleteTable("NoSuchTable")


def TestDDLRequiresConnection(gateway: AccessGateway):
    with pytest.raises(NotConnected):
        gateway.CreateTable("T", [FieldInfo(name="ID", type="integer")])
    with pytest.raises(NotConnected):
        gateway.DeleteTable("T")



# SYSTEM CATALOG
# ==============


def TestCatalogPolicyMarkers():
    for operation in ("ListForms", "ListReports", "ListMacros", "ListModules",
                      "GetObjectMetadata", "FormExists", "GetTableRecordCount", "GetTableFields"):
        assert IsBestEffort(getattr(AccessGateway, operation)), operation

    for operation in ("Connect", "ListTables", "ListQueries", "ListRelationships",
                      "CreateTable", "DeleteTable"):
        assert not IsBestEffort(getattr(AccessGateway, operation)), operation


def TestCatalogUnavailableDegradesToEmpty(connected: AccessGateway):
    """SQLite has no MSysObjects table: catalog listings are empty, not errors."""

    assert connected.ListForms() == []
    assert connected.ListReports() == []
    assert connected.ListMacros() == []
    assert connected.ListModules() == []
    assert connected.GetObjectMetadata() == []
    assert connected.FormExists("frmCustomers") is False


def TestCatalogListings(gateway: AccessGateway, catalogDbPath: str):
    gateway.Connect(catalogDbPath)

    forms = gateway.ListForms()
    assert [(f.name, f.full_name, f.type) for f in forms] == [("frmCustomers", "frmCustomers", "Form")]
    assert [r.name for r in gateway.ListReports()] == ["rptSales"]
    assert [m.name for m in gateway.ListMacros()] == ["AutoExec"]
    assert [m.name for m in gateway.ListModules()] == ["modUtils"]

    assert gateway.FormExists("frmCustomers")
    assert not gateway.FormExists("rptSales")


def TestObjectMetadata(gateway: AccessGateway, catalogDbPath: str):
    gateway.Connect(catalogDbPath)

    metadata = {m.name: m for m in gateway.GetObjectMetadata()}
    assert set(metadata) == {"frmCustomers", "rptSales", "AutoExec", "modUtils"}
    assert metadata["rptSales"].type == "-32764"
    assert metadata["rptSales"].date_created == "2024-01-01"
    assert metadata["rptSales"].date_modified == "2024-02-01"
