"""Server settings, loaded from environment variables (ACCESS_MCP_*) and .env file."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from access_mcp import __version__


class ServerSettings(BaseSettings):
    """Settings for the Access MCP server. Command line options override these."""

    model_config = SettingsConfigDict(env_prefix="ACCESS_MCP_", env_file=".env", extra="ignore")

    # database opened by connect_access when no path is given
    database_path: str = Field(default="", description="Default Access database file (.mdb, .accdb)")

    # diagnostics always go to stderr
    log_level: str = Field(default="INFO", description="Logging level for stderr diagnostics")

    # reported by initialize
    server_name:      str = "Access MCP Server"
    server_version:   str = __version__
    protocol_version: str = "2024-11-05"

    # tables starting with these prefixes are system or temporary tables
    reserved_prefixes: list[str] = Field(default_factory=lambda: ["~", "MSys"])
