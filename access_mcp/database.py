"""Gateway to a single MS Access database: connection lifecycle, schema queries, DDL."""

import functools
import typing as t
from pathlib import Path

import pandas as pd
import sqlalchemy as sa
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from fastmcp.utilities.logging import get_logger

from access_mcp.errors import DatabaseNotFound, ConnectionFailed, NotConnected, BackendError
from access_mcp.models import (
    FieldInfo, TableInfo, QueryInfo, RelationshipInfo,
    SystemTableInfo, MetadataInfo, ObjectInfo,
)

logger = get_logger(__name__)


# MSysObjects type discriminants
FORM_TYPE   = -32768
REPORT_TYPE = -32764
MACRO_TYPE  = -32766
MODULE_TYPE = -32761

# text types accepting a size suffix in CREATE TABLE
SIZED_TYPES = {"text", "varchar"}

ACCESS_EXTENSIONS = {".mdb", ".accdb"}
SQLITE_EXTENSIONS = {".db", ".sqlite", ".sqlite3"}

# errors swallowed by best-effort operations
BACKEND_ERRORS = (SQLAlchemyError, pd.errors.DatabaseError, NotImplementedError)



# BEST-EFFORT POLICY
# ==================


def BestEffort(fallback: t.Callable[[], t.Any]):
    """Mark a gateway operation as best-effort: backend failures return fallback() instead of raising.
    The system catalog may be locked down by the driver, so callers get "no rows" in that case.
    The connection is checked first: NotConnected always propagates.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            self.RequireEngine()
            try:
                return func(self, *args, **kwargs)
            except BACKEND_ERRORS as e:
                logger.debug(f"{func.__name__} degraded to fallback: {e}")
                return fallback()

        wrapper.bestEffort = True
        return wrapper
    return decorator


def IsBestEffort(operation: t.Callable) -> bool:
    """Tell whether the given gateway operation degrades on backend errors."""
    return getattr(operation, "bestEffort", False)


def BackendMessage(e: Exception) -> str:
    """Message of the underlying driver error, without SQLAlchemy decorations."""
    return str(getattr(e, "orig", None) or e)



# CONNECTION URLS
# ===============


def ConnectionUrl(databasePath: Path) -> URL:
    """Build the SQLAlchemy URL for the database file, based on its extension."""

    suffix = databasePath.suffix.lower()

    # For Microsoft Access files, use the ODBC driver
    if suffix in ACCESS_EXTENSIONS:
        connectionString = f"DRIVER={{Microsoft Access Driver (*.mdb, *.accdb)}};DBQ={databasePath};"
        return URL.create("access+pyodbc", query={"odbc_connect": connectionString})

    # SQLite files are supported for local use and testing
    if suffix in SQLITE_EXTENSIONS:
        return URL.create("sqlite", database=str(databasePath))

    # Handle other unknown file types
    raise ConnectionFailed(f"Unsupported database file extension: {databasePath}")



# GATEWAY
# =======


class AccessGateway:
    """Stateful handle to one database file. At most one connection is open at a time."""

    def __init__(self, reservedPrefixes: t.Sequence[str] = ("~", "MSys")):
        self.reservedPrefixes = tuple(reservedPrefixes)
        self.engine: sa.Engine | None = None
        self.path: str | None = None


    # CONNECTION MANAGEMENT
    # =====================

    @property
    def IsConnected(self) -> bool:
        return self.engine is not None


    def Connect(self, databasePath: str) -> None:
        """Open the database file, replacing the current connection if any."""

        # Close the previous connection first, so a failure leaves us disconnected
        self.Disconnect()

        path = Path(databasePath)
        if not path.is_file():
            raise DatabaseNotFound(f"Database file not found: {databasePath}")

        connectionUrl = ConnectionUrl(path)
        try:
            engine = sa.create_engine(connectionUrl)
        except (SQLAlchemyError, ImportError) as e:
            raise ConnectionFailed(f"Error connecting to database: {BackendMessage(e)}")

        # test the connection, reading the schema so unreadable files fail here
        try:
            with engine.connect() as conn:
                conn.execute(sa.text("SELECT 1"))
                sa.inspect(conn).get_table_names()
        except BACKEND_ERRORS as e:
            engine.dispose()
            raise ConnectionFailed(f"Error connecting to database: {BackendMessage(e)}")

        self.engine = engine
        self.path = databasePath
        logger.info(f"Connected to {databasePath}")


    def Disconnect(self) -> None:
        """Close the current connection. Does nothing when already disconnected."""

        if self.engine is None:
            return

        self.engine.dispose()
        logger.info(f"Disconnected from {self.path}")
        self.engine = None
        self.path = None


    def RequireEngine(self) -> sa.Engine:
        """Return the engine of the open connection, or raise NotConnected."""

        if self.engine is None:
            raise NotConnected()
        return self.engine


    def IsReserved(self, tableName: str) -> bool:
        return tableName.startswith(self.reservedPrefixes)


    # SCHEMA
    # ======

    def ListTables(self) -> list[TableInfo]:
        """List user tables, with their fields and record counts.
        Fields and counts are looked up table by table (one query each): fine for Access sizes.
        """

        engine = self.RequireEngine()
        try:
            tableNames = sa.inspect(engine).get_table_names()
        except BACKEND_ERRORS as e:
            raise BackendError(BackendMessage(e))

        return [
            TableInfo(
                name=name,
                fields=self.GetTableFields(name),
                record_count=self.GetTableRecordCount(name),
            )
            for name in tableNames if name and not self.IsReserved(name)
        ]


    def ListQueries(self) -> list[QueryInfo]:
        """List saved queries (views). SQL text is included when the driver exposes it."""

        engine = self.RequireEngine()
        try:
            inspector = sa.inspect(engine)
            viewNames = inspector.get_view_names()
        except BACKEND_ERRORS as e:
            raise BackendError(BackendMessage(e))

        queries = []
        for name in viewNames:
            try:
                sql = inspector.get_view_definition(name) or ""
            except BACKEND_ERRORS:
                sql = ""
            queries.append(QueryInfo(name=name, sql=sql))
        return queries


    def ListRelationships(self) -> list[RelationshipInfo]:
        """List foreign keys of all user tables."""

        engine = self.RequireEngine()
        relationships = []
        try:
            inspector = sa.inspect(engine)
            for tableName in inspector.get_table_names():
                if self.IsReserved(tableName):
                    continue
                for fk in inspector.get_foreign_keys(tableName):
                    relationships.append(RelationshipInfo(
                        name=fk.get("name") or "",
                        table=tableName,
                        foreign_table=fk.get("referred_table") or "",
                        attributes=", ".join(f"{k}={v}" for k, v in (fk.get("options") or {}).items()),
                    ))
        except BACKEND_ERRORS as e:
            raise BackendError(BackendMessage(e))
        return relationships


    @BestEffort(fallback=list)
    def GetTableFields(self, tableName: str) -> list[FieldInfo]:
        """Reflect the columns of a table. Returns an empty list if the table cannot be read."""

        engine = self.RequireEngine()
        fields = []
        for column in sa.inspect(engine).get_columns(tableName):
            columnType = column["type"]
            fields.append(FieldInfo(
                name=column["name"],
                type=str(columnType),
                size=getattr(columnType, "length", None) or 0,
                required=not column.get("nullable", True),
                allow_zero_length=True,
            ))
        return fields


    @BestEffort(fallback=lambda: 0)
    def GetTableRecordCount(self, tableName: str) -> int:
        """Count the rows of a table. Returns 0 if the count query fails."""

        engine = self.RequireEngine()
        quotedName = engine.dialect.identifier_preparer.quote_identifier(tableName)
        with engine.connect() as conn:
            return int(conn.execute(sa.text(f"SELECT COUNT(*) FROM {quotedName}")).scalar() or 0)


    def AllTableNames(self, engine: sa.Engine) -> list[str]:
        """Names of all tables, system and temporary ones included.
        The Access dialect only reflects user tables, so its ODBC catalog is read directly.
        """

        if engine.dialect.name != "access":
            return sa.inspect(engine).get_table_names()

        # no tableType filter: includes SYSTEM TABLE rows and ~TMP tables
        rawConnection = engine.raw_connection()
        try:
            cursor = rawConnection.cursor()
            return [row.table_name for row in cursor.tables() if row.table_name]
        except engine.dialect.loaded_dbapi.Error as e:
            raise BackendError(f"Error listing tables: {e}")
        finally:
            rawConnection.close()


    def ListSystemTables(self) -> list[SystemTableInfo]:
        """List system and temporary tables (reserved prefixes), with record counts."""

        engine = self.RequireEngine()
        try:
            tableNames = self.AllTableNames(engine)
        except BACKEND_ERRORS as e:
            raise BackendError(BackendMessage(e))

        return [
            SystemTableInfo(name=name, record_count=self.GetTableRecordCount(name))
            for name in tableNames if self.IsReserved(name)
        ]


    # DDL
    # ===

    def CreateTable(self, tableName: str, fields: list[FieldInfo]) -> None:
        """Create a table with a single CREATE TABLE statement."""

        engine = self.RequireEngine()
        quote = engine.dialect.identifier_preparer.quote_identifier

        # Build column definitions: size only for variable-length text types
        columnDefinitions = []
        for f in fields:
            definition = f"{quote(f.name)} {f.type}"
            if f.size > 0 and f.type.lower() in SIZED_TYPES:
                definition += f"({f.size})"
            if f.required:
                definition += " NOT NULL"
            columnDefinitions.append(definition)

        self.Execute(f"CREATE TABLE {quote(tableName)} ({', '.join(columnDefinitions)})")
        logger.info(f"Created table {tableName}")


    def DeleteTable(self, tableName: str) -> None:
        engine = self.RequireEngine()
        self.Execute(f"DROP TABLE {engine.dialect.identifier_preparer.quote_identifier(tableName)}")
        logger.info(f"Deleted table {tableName}")


    def Execute(self, sql: str) -> None:
        """Execute a statement in a transaction, mapping failures to BackendError."""

        try:
            # SQLAlchemy automatically commits if no errors occur
            with self.RequireEngine().begin() as conn:
                conn.execute(sa.text(sql))
        except SQLAlchemyError as e:
            raise BackendError(BackendMessage(e))


    # SYSTEM CATALOG
    # ==============

    def QueryCatalog(self, sql: str, params: dict[str, t.Any] | None = None) -> pd.DataFrame:
        """Run a query against the MSysObjects catalog."""

        with self.RequireEngine().connect() as conn:
            return pd.read_sql_query(sa.text(sql), conn, params=params or {})


    def ListCatalogObjects(self, objectType: int, label: str) -> list[ObjectInfo]:
        """List the names of catalog objects of the given type."""

        df = self.QueryCatalog("SELECT Name FROM MSysObjects WHERE Type = :type", {"type": objectType})
        names = [str(name) for name in df["Name"].tolist() if name is not None]
        return [ObjectInfo(name=name, full_name=name, type=label) for name in names]


    @BestEffort(fallback=list)
    def ListForms(self) -> list[ObjectInfo]:
        return self.ListCatalogObjects(FORM_TYPE, "Form")

    @BestEffort(fallback=list)
    def ListReports(self) -> list[ObjectInfo]:
        return self.ListCatalogObjects(REPORT_TYPE, "Report")

    @BestEffort(fallback=list)
    def ListMacros(self) -> list[ObjectInfo]:
        return self.ListCatalogObjects(MACRO_TYPE, "Macro")

    @BestEffort(fallback=list)
    def ListModules(self) -> list[ObjectInfo]:
        return self.ListCatalogObjects(MODULE_TYPE, "Module")


    @BestEffort(fallback=list)
    def GetObjectMetadata(self) -> list[MetadataInfo]:
        """Return every catalog row. Empty if the catalog cannot be read."""

        df = self.QueryCatalog("SELECT * FROM MSysObjects")

        def Text(row: dict, column: str) -> str:
            value = row.get(column)
            return "" if value is None or pd.isna(value) else str(value)

        return [
            MetadataInfo(
                name=Text(row, "Name"),
                type=Text(row, "Type"),
                flags=Text(row, "Flags"),
                date_created=Text(row, "DateCreate"),
                date_modified=Text(row, "DateUpdate"),
            )
            for row in df.to_dict("records")
        ]


    @BestEffort(fallback=lambda: False)
    def FormExists(self, formName: str) -> bool:
        df = self.QueryCatalog(
            "SELECT COUNT(*) AS n FROM MSysObjects WHERE Name = :name AND Type = :type",
            {"name": formName, "type": FORM_TYPE},
        )
        return int(df["n"].iloc[0]) > 0
