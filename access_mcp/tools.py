"""Tool handlers: each one reads its arguments and calls exactly one gateway or automation operation.

Handlers return the payload of a successful result and raise on failure.
Argument presence is checked before they run (see protocol.InvokeTool).
"""

import typing as t
from dataclasses import dataclass

from access_mcp.config import ServerSettings
from access_mcp.database import AccessGateway
from access_mcp.automation import HostAutomation
from access_mcp.errors import AccessError
from access_mcp.models import FieldInfo, ToPlain


@dataclass
class Context:
    """Collaborators shared by all tool handlers, for the whole process lifetime."""

    gateway: AccessGateway
    automation: HostAutomation
    settings: ServerSettings


Arguments = dict[str, t.Any]



# CONNECTION
# ==========


def ConnectAccess(ctx: Context, args: Arguments) -> dict:
    """Connect to the given database, or to the configured one."""

    databasePath = args.get("database_path") or ctx.settings.database_path
    if not databasePath:
        raise AccessError("database_path is required (no default database configured)")

    ctx.gateway.Connect(databasePath)
    if not ctx.gateway.IsConnected:
        raise AccessError("Failed to establish database connection")
    return {"message": f"Connected to {databasePath}", "connected": True}


def DisconnectAccess(ctx: Context, args: Arguments) -> dict:
    ctx.gateway.Disconnect()
    return {"message": "Disconnected from database"}


def IsConnected(ctx: Context, args: Arguments) -> dict:
    return {"connected": ctx.gateway.IsConnected}



# SCHEMA
# ======


def GetTables(ctx: Context, args: Arguments) -> dict:
    return {"tables": ToPlain(ctx.gateway.ListTables())}


def GetQueries(ctx: Context, args: Arguments) -> dict:
    return {"queries": ToPlain(ctx.gateway.ListQueries())}


def GetRelationships(ctx: Context, args: Arguments) -> dict:
    return {"relationships": ToPlain(ctx.gateway.ListRelationships())}


def GetSystemTables(ctx: Context, args: Arguments) -> dict:
    return {"system_tables": ToPlain(ctx.gateway.ListSystemTables())}


def GetObjectMetadata(ctx: Context, args: Arguments) -> dict:
    return {"metadata": ToPlain(ctx.gateway.GetObjectMetadata())}


def ParseField(item: t.Any) -> FieldInfo:
    """Build a field definition from a create_table argument item."""

    if not isinstance(item, dict):
        raise AccessError("Each field must be an object with name and type")

    name, fieldType = item.get("name"), item.get("type")
    if not name or not fieldType:
        raise AccessError("Each field requires a name and a type")

    try:
        size = int(item.get("size") or 0)
    except (TypeError, ValueError):
        raise AccessError(f"Invalid size for field {name}: {item.get('size')!r}")

    # flags must be real booleans: the string "false" is not false
    flags = {}
    for flag, default in (("required", False), ("allow_zero_length", True)):
        value = item.get(flag, default)
        if not isinstance(value, bool):
            raise AccessError(f"Invalid {flag} for field {name}: {value!r} (expected true or false)")
        flags[flag] = value

    return FieldInfo(
        name=str(name),
        type=str(fieldType),
        size=size,
        required=flags["required"],
        allow_zero_length=flags["allow_zero_length"],
    )


def CreateTable(ctx: Context, args: Arguments) -> dict:
    tableName = args["table_name"]
    if not isinstance(args["fields"], list):
        raise AccessError("fields must be a list")

    fields = [ParseField(item) for item in args["fields"]]
    ctx.gateway.CreateTable(tableName, fields)
    return {"message": f"Created table {tableName}"}


def DeleteTable(ctx: Context, args: Arguments) -> dict:
    tableName = args["table_name"]
    ctx.gateway.DeleteTable(tableName)
    return {"message": f"Deleted table {tableName}"}



# CATALOG
# =======


def GetForms(ctx: Context, args: Arguments) -> dict:
    return {"forms": ToPlain(ctx.gateway.ListForms())}


def GetReports(ctx: Context, args: Arguments) -> dict:
    return {"reports": ToPlain(ctx.gateway.ListReports())}


def GetMacros(ctx: Context, args: Arguments) -> dict:
    return {"macros": ToPlain(ctx.gateway.ListMacros())}


def GetModules(ctx: Context, args: Arguments) -> dict:
    return {"modules": ToPlain(ctx.gateway.ListModules())}


def FormExists(ctx: Context, args: Arguments) -> dict:
    return {"exists": ctx.gateway.FormExists(args["form_name"])}



# APPLICATION AND FORMS
# =====================


def LaunchAccess(ctx: Context, args: Arguments) -> dict:
    ctx.automation.LaunchApp()
    return {"message": "Access launched successfully"}


def CloseAccess(ctx: Context, args: Arguments) -> dict:
    ctx.automation.CloseApp()
    return {"message": "Access closed successfully"}


def OpenForm(ctx: Context, args: Arguments) -> dict:
    ctx.automation.OpenForm(args["form_name"])
    return {"message": f"Opened form {args['form_name']}"}


def CloseForm(ctx: Context, args: Arguments) -> dict:
    ctx.automation.CloseForm(args["form_name"])
    return {"message": f"Closed form {args['form_name']}"}


def GetFormControls(ctx: Context, args: Arguments) -> dict:
    return {"controls": ToPlain(ctx.automation.GetFormControls(args["form_name"]))}


def GetControlProperties(ctx: Context, args: Arguments) -> dict:
    properties = ctx.automation.GetControlProperties(args["form_name"], args["control_name"])
    return {"properties": ToPlain(properties)}


def SetControlProperty(ctx: Context, args: Arguments) -> dict:
    ctx.automation.SetControlProperty(
        args["form_name"], args["control_name"], args["property_name"], args["value"])
    return {"message": f"Updated property {args['property_name']}"}



# VBA
# ===


def GetVBAProjects(ctx: Context, args: Arguments) -> dict:
    return {"projects": ToPlain(ctx.automation.GetVBAProjects())}


def GetVBACode(ctx: Context, args: Arguments) -> dict:
    return {"code": ctx.automation.GetVBACode(args["project_name"], args["module_name"])}


def SetVBACode(ctx: Context, args: Arguments) -> dict:
    ctx.automation.SetVBACode(args["project_name"], args["module_name"], args["code"])
    return {"message": f"Updated VBA code in {args['module_name']}"}


def AddVBAProcedure(ctx: Context, args: Arguments) -> dict:
    ctx.automation.AddVBAProcedure(
        args["project_name"], args["module_name"], args["procedure_name"], args["code"])
    return {"message": f"Added VBA procedure {args['procedure_name']}"}


def CompileVBA(ctx: Context, args: Arguments) -> dict:
    ctx.automation.CompileVBA()
    return {"message": "VBA compiled successfully"}



# IMPORT/EXPORT
# =============


def ExportFormToText(ctx: Context, args: Arguments) -> dict:
    return {"form_data": ctx.automation.ExportFormToText(args["form_name"])}


def ImportFormFromText(ctx: Context, args: Arguments) -> dict:
    ctx.automation.ImportFormFromText(args["form_data"])
    return {"message": "Form imported successfully"}


def DeleteForm(ctx: Context, args: Arguments) -> dict:
    ctx.automation.DeleteForm(args["form_name"])
    return {"message": f"Deleted form {args['form_name']}"}


def ExportReportToText(ctx: Context, args: Arguments) -> dict:
    return {"report_data": ctx.automation.ExportReportToText(args["report_name"])}


def ImportReportFromText(ctx: Context, args: Arguments) -> dict:
    ctx.automation.ImportReportFromText(args["report_data"])
    return {"message": "Report imported successfully"}


def DeleteReport(ctx: Context, args: Arguments) -> dict:
    ctx.automation.DeleteReport(args["report_name"])
    return {"message": f"Deleted report {args['report_name']}"}
