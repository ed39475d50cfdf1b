"""Records returned by the gateway and the automation layer.

Records are transient query results, with no identity beyond their name.
They are converted to plain dictionaries (snake_case keys) before being sent to clients.
"""

import typing as t
from datetime import datetime, timezone
from dataclasses import dataclass, field, asdict, is_dataclass

from pydantic import BaseModel, Field



# SCHEMA RECORDS
# ==============


@dataclass
class FieldInfo:
    """Column of a table, as reflected or as requested by create_table."""

    name: str
    type: str
    size: int = 0                   # only meaningful for text columns
    required: bool = False          # NOT NULL
    allow_zero_length: bool = True  # not enforced by DDL


@dataclass
class TableInfo:
    name: str
    fields: list[FieldInfo] = field(default_factory=list)
    record_count: int = 0


@dataclass
class QueryInfo:
    name: str
    sql: str = ""
    type: str = "Query"


@dataclass
class RelationshipInfo:
    name: str
    table: str
    foreign_table: str
    attributes: str = ""


@dataclass
class SystemTableInfo:
    """System or temporary table. Creation and update dates are not exposed by the drivers."""

    name: str
    date_created: str | None = None
    last_updated: str | None = None
    record_count: int = 0


@dataclass
class MetadataInfo:
    """Row of the MSysObjects catalog."""

    name: str
    type: str
    flags: str
    date_created: str
    date_modified: str



# CATALOG OBJECTS
# ===============


@dataclass
class ObjectInfo:
    """Form, report, macro or module listed in the catalog."""

    name: str
    full_name: str
    type: str


@dataclass
class VBAModuleInfo:
    name: str
    type: str = "Module"
    has_code: bool = True


@dataclass
class VBAProjectInfo:
    name: str
    description: str
    modules: list[VBAModuleInfo] = field(default_factory=list)



# FORMS AND CONTROLS
# ==================


@dataclass
class ControlInfo:
    name: str
    type: str
    left: int = 0
    top: int = 0
    width: int = 0
    height: int = 0
    visible: bool = True
    enabled: bool = True


@dataclass
class ControlProperties(ControlInfo):
    back_color: int = 16777215  # white
    fore_color: int = 0         # black
    font_name: str = "Arial"
    font_size: int = 10
    font_bold: bool = False
    font_italic: bool = False


class FormExport(BaseModel):
    """Text representation of a form, produced by export_form_to_text."""

    name: str
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    controls: list[ControlInfo] = Field(default_factory=list)
    vba: str = ""


class ReportExport(BaseModel):
    """Text representation of a report, produced by export_report_to_text."""

    name: str
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    controls: list[ControlInfo] = Field(default_factory=list)



# SERIALIZATION
# =============


def ToPlain(value: t.Any) -> t.Any:
    """Convert records (and lists of records) to JSON-ready dictionaries."""

    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [ToPlain(item) for item in value]
    return value
