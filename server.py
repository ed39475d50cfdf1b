"""MCP server for Microsoft Access databases, speaking line-delimited JSON-RPC over stdin/stdout."""

import io
import sys
import argparse

from fastmcp.utilities.logging import configure_logging, get_logger

from access_mcp.config     import ServerSettings
from access_mcp.database   import AccessGateway
from access_mcp.automation import StubAutomation
from access_mcp.dispatch   import Dispatcher
from access_mcp.protocol   import ToolRegistry
from access_mcp.tools      import *

logger = get_logger("server")


# Static tool catalog, declared once at startup
registry = ToolRegistry()


# Argument schemas shared by several tools
STRING = {"type": "string"}
FIELDS = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "name":              {"type": "string"},
            "type":              {"type": "string"},
            "size":              {"type": "integer"},
            "required":          {"type": "boolean"},
            "allow_zero_length": {"type": "boolean"},
        },
    },
}


# Register tools: connection
registry.tool(name="connect_access", description="Connect to an Access database (defaults to the configured database)",
    properties={"database_path": STRING})(ConnectAccess)
registry.tool(name="disconnect_access", description="Disconnect from the current Access database")(DisconnectAccess)
registry.tool(name="is_connected", description="Check if connected to an Access database")(IsConnected)

# Register tools: schema
registry.tool(name="get_tables", description="Get list of all tables in the database")(GetTables)
registry.tool(name="get_queries", description="Get list of all queries in the database")(GetQueries)
registry.tool(name="get_relationships", description="Get list of all relationships in the database")(GetRelationships)
registry.tool(name="create_table", description="Create a new table in the database",
    properties={"table_name": STRING, "fields": FIELDS}, required=["table_name", "fields"])(CreateTable)
registry.tool(name="delete_table", description="Delete a table from the database",
    properties={"table_name": STRING}, required=["table_name"])(DeleteTable)

# Register tools: application
registry.tool(name="launch_access", description="Launch Microsoft Access application")(LaunchAccess)
registry.tool(name="close_access", description="Close Microsoft Access application")(CloseAccess)

# Register tools: catalog
registry.tool(name="get_forms", description="Get list of all forms in the database")(GetForms)
registry.tool(name="get_reports", description="Get list of all reports in the database")(GetReports)
registry.tool(name="get_macros", description="Get list of all macros in the database")(GetMacros)
registry.tool(name="get_modules", description="Get list of all modules in the database")(GetModules)
registry.tool(name="open_form", description="Open a form in Access",
    properties={"form_name": STRING}, required=["form_name"])(OpenForm)
registry.tool(name="close_form", description="Close a form in Access",
    properties={"form_name": STRING}, required=["form_name"])(CloseForm)

# Register tools: VBA
registry.tool(name="get_vba_projects", description="Get list of VBA projects")(GetVBAProjects)
registry.tool(name="get_vba_code", description="Get VBA code from a module",
    properties={"project_name": STRING, "module_name": STRING},
    required=["project_name", "module_name"])(GetVBACode)
registry.tool(name="set_vba_code", description="Set VBA code in a module",
    properties={"project_name": STRING, "module_name": STRING, "code": STRING},
    required=["project_name", "module_name", "code"])(SetVBACode)
registry.tool(name="add_vba_procedure", description="Add a VBA procedure to a module",
    properties={"project_name": STRING, "module_name": STRING, "procedure_name": STRING, "code": STRING},
    required=["project_name", "module_name", "procedure_name", "code"])(AddVBAProcedure)
registry.tool(name="compile_vba", description="Compile VBA code")(CompileVBA)

# Register tools: system tables
registry.tool(name="get_system_tables", description="Get list of system tables")(GetSystemTables)
registry.tool(name="get_object_metadata", description="Get metadata for database objects")(GetObjectMetadata)

# Register tools: forms and controls
registry.tool(name="form_exists", description="Check if a form exists",
    properties={"form_name": STRING}, required=["form_name"])(FormExists)
registry.tool(name="get_form_controls", description="Get list of controls in a form",
    properties={"form_name": STRING}, required=["form_name"])(GetFormControls)
registry.tool(name="get_control_properties", description="Get properties of a control",
    properties={"form_name": STRING, "control_name": STRING},
    required=["form_name", "control_name"])(GetControlProperties)
registry.tool(name="set_control_property", description="Set a property of a control",
    properties={"form_name": STRING, "control_name": STRING, "property_name": STRING, "value": STRING},
    required=["form_name", "control_name", "property_name", "value"])(SetControlProperty)

# Register tools: import/export
registry.tool(name="export_form_to_text", description="Export a form to text format",
    properties={"form_name": STRING}, required=["form_name"])(ExportFormToText)
registry.tool(name="import_form_from_text", description="Import a form from text format",
    properties={"form_data": STRING}, required=["form_data"])(ImportFormFromText)
registry.tool(name="delete_form", description="Delete a form from the database",
    properties={"form_name": STRING}, required=["form_name"])(DeleteForm)
registry.tool(name="export_report_to_text", description="Export a report to text format",
    properties={"report_name": STRING}, required=["report_name"])(ExportReportToText)
registry.tool(name="import_report_from_text", description="Import a report from text format",
    properties={"report_data": STRING}, required=["report_data"])(ImportReportFromText)
registry.tool(name="delete_report", description="Delete a report from the database",
    properties={"report_name": STRING}, required=["report_name"])(DeleteReport)



def CreateDispatcher(settings: ServerSettings) -> Dispatcher:
    """Create the dispatcher with a fresh, disconnected gateway."""

    gateway = AccessGateway(reservedPrefixes=settings.reserved_prefixes)
    context = Context(gateway=gateway, automation=StubAutomation(gateway), settings=settings)
    return Dispatcher(registry, context)


def main(argv: list[str] | None = None) -> int:
    """Command line entry point: serve requests from stdin until end of input."""

    parser = argparse.ArgumentParser(description="MS Access MCP Server (JSON-RPC over stdio)")
    parser.add_argument("--db-path", type=str, default=None,
                        help="Default Access database file (.accdb or .mdb) for connect_access")
    parser.add_argument("--log-level", type=str, default=None,
                        help="Logging level for diagnostics on stderr (default: INFO)")
    args = parser.parse_args(argv)

    # command line overrides environment
    settings = ServerSettings()
    if args.db_path:
        settings.database_path = args.db_path
    if args.log_level:
        settings.log_level = args.log_level.upper()

    configure_logging(level=settings.log_level)

    # undecodable bytes become replacement characters, failing JSON parsing for that line only
    if isinstance(sys.stdin, io.TextIOWrapper):
        sys.stdin.reconfigure(encoding="utf-8", errors="replace")

    dispatcher = CreateDispatcher(settings)
    logger.info(f"Serving {len(registry)} tools on stdio")
    try:
        return dispatcher.Serve(sys.stdin, sys.stdout)
    finally:
        dispatcher.context.gateway.Disconnect()


# Run the server loop
if __name__ == "__main__":
    sys.exit(main())
