"""Automation of the MS Access application: forms, controls, VBA, import/export.

Real automation needs the Access host process (COM), which this server does not drive.
HostAutomation is the capability the tools depend on; StubAutomation is the default
implementation, returning placeholder data and logging the requested actions.
"""

import abc
import typing as t

from pydantic import ValidationError
from fastmcp.utilities.logging import get_logger

from access_mcp.database import AccessGateway
from access_mcp.errors import InvalidDocument
from access_mcp.models import (
    ControlInfo, ControlProperties, VBAModuleInfo, VBAProjectInfo,
    FormExport, ReportExport,
)

logger = get_logger(__name__)


class HostAutomation(abc.ABC):
    """Operations on the running Access application."""

    # application
    @abc.abstractmethod
    def LaunchApp(self) -> None: ...

    @abc.abstractmethod
    def CloseApp(self) -> None: ...

    # forms
    @abc.abstractmethod
    def OpenForm(self, formName: str) -> None: ...

    @abc.abstractmethod
    def CloseForm(self, formName: str) -> None: ...

    # VBA
    @abc.abstractmethod
    def GetVBAProjects(self) -> list[VBAProjectInfo]: ...

    @abc.abstractmethod
    def GetVBACode(self, projectName: str, moduleName: str) -> str: ...

    @abc.abstractmethod
    def SetVBACode(self, projectName: str, moduleName: str, code: str) -> None: ...

    @abc.abstractmethod
    def AddVBAProcedure(self, projectName: str, moduleName: str, procedureName: str, code: str) -> None: ...

    @abc.abstractmethod
    def CompileVBA(self) -> None: ...

    # controls
    @abc.abstractmethod
    def GetFormControls(self, formName: str) -> list[ControlInfo]: ...

    @abc.abstractmethod
    def GetControlProperties(self, formName: str, controlName: str) -> ControlProperties: ...

    @abc.abstractmethod
    def SetControlProperty(self, formName: str, controlName: str, propertyName: str, value: t.Any) -> None: ...

    # persistence
    @abc.abstractmethod
    def ExportFormToText(self, formName: str) -> str: ...

    @abc.abstractmethod
    def ImportFormFromText(self, formData: str) -> None: ...

    @abc.abstractmethod
    def DeleteForm(self, formName: str) -> None: ...

    @abc.abstractmethod
    def ExportReportToText(self, reportName: str) -> str: ...

    @abc.abstractmethod
    def ImportReportFromText(self, reportData: str) -> None: ...

    @abc.abstractmethod
    def DeleteReport(self, reportName: str) -> None: ...



class StubAutomation(HostAutomation):
    """Placeholder automation. Catalog lookups go through the gateway, everything else is simulated."""

    PROJECT_NAME = "CurrentProject"

    def __init__(self, gateway: AccessGateway):
        self.gateway = gateway


    # APPLICATION
    # ===========

    def LaunchApp(self) -> None:
        logger.info("Access launch requires COM automation, not available")

    def CloseApp(self) -> None:
        logger.info("Access close requires COM automation, not available")

    def OpenForm(self, formName: str) -> None:
        logger.info(f"Form {formName} open requires COM automation, not available")

    def CloseForm(self, formName: str) -> None:
        logger.info(f"Form {formName} close requires COM automation, not available")


    # VBA
    # ===

    def GetVBAProjects(self) -> list[VBAProjectInfo]:
        """One project for the current database, listing the modules found in the catalog."""

        # an unreadable catalog gives no modules, hence no project
        modules = self.gateway.ListModules()
        if not modules:
            return []

        return [VBAProjectInfo(
            name=self.PROJECT_NAME,
            description="Current Access Project",
            modules=[VBAModuleInfo(name=m.name) for m in modules],
        )]

    def GetVBACode(self, projectName: str, moduleName: str) -> str:
        return f"' VBA code for {moduleName} would be retrieved here"

    def SetVBACode(self, projectName: str, moduleName: str, code: str) -> None:
        logger.info(f"VBA code for {moduleName} would be set here ({len(code)} characters)")

    def AddVBAProcedure(self, projectName: str, moduleName: str, procedureName: str, code: str) -> None:
        logger.info(f"VBA procedure {procedureName} would be added to {moduleName}")

    def CompileVBA(self) -> None:
        logger.info("VBA compilation would be performed here")


    # CONTROLS
    # ========

    def GetFormControls(self, formName: str) -> list[ControlInfo]:
        self.gateway.RequireEngine()
        return [ControlInfo(
            name="PlaceholderControl", type="TextBox",
            left=100, top=100, width=200, height=25,
        )]

    def GetControlProperties(self, formName: str, controlName: str) -> ControlProperties:
        self.gateway.RequireEngine()
        return ControlProperties(
            name=controlName, type="TextBox",
            left=100, top=100, width=200, height=25,
        )

    def SetControlProperty(self, formName: str, controlName: str, propertyName: str, value: t.Any) -> None:
        self.gateway.RequireEngine()
        logger.info(f"Property {propertyName} of control {controlName} would be set to {value}")


    # IMPORT/EXPORT
    # =============

    def ExportFormToText(self, formName: str) -> str:
        document = FormExport(
            name=formName,
            controls=self.GetFormControls(formName),
            vba=self.GetVBACode(self.PROJECT_NAME, formName),
        )
        return document.model_dump_json(indent=2)

    def ImportFormFromText(self, formData: str) -> None:
        self.gateway.RequireEngine()
        try:
            document = FormExport.model_validate_json(formData)
        except ValidationError as e:
            raise InvalidDocument(f"Invalid form data: {e.error_count()} error(s), {e.errors()[0]['msg']}")
        logger.info(f"Form {document.name} would be imported here")

    def DeleteForm(self, formName: str) -> None:
        self.gateway.RequireEngine()
        logger.info(f"Form {formName} would be deleted here")

    def ExportReportToText(self, reportName: str) -> str:
        # reports share the form control layout
        document = ReportExport(name=reportName, controls=self.GetFormControls(reportName))
        return document.model_dump_json(indent=2)

    def ImportReportFromText(self, reportData: str) -> None:
        self.gateway.RequireEngine()
        try:
            document = ReportExport.model_validate_json(reportData)
        except ValidationError as e:
            raise InvalidDocument(f"Invalid report data: {e.error_count()} error(s), {e.errors()[0]['msg']}")
        logger.info(f"Report {document.name} would be imported here")

    def DeleteReport(self, reportName: str) -> None:
        self.gateway.RequireEngine()
        logger.info(f"Report {reportName} would be deleted here")
