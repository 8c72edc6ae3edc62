import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clusterview.datastructures.cluster_types import (
    DEFAULT_MAX_PORT,
    DEFAULT_MIN_PORT,
    PortRange,
)
from clusterview.datastructures.type_aliases import PortNumber, SettingName

SETTINGS_SECTION: SettingName = "clusterview"


class ClusterViewSettings(BaseSettings):
    """clusterview status server configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLUSTERVIEW_", env_file=".env", extra="ignore"
    )

    host: str = Field(
        "127.0.0.1", description="The host address for the status server to listen on."
    )
    http_port_offset: int = Field(
        6000,
        description="Offset added to the local member's port to get the HTTP port.",
    )
    http_port: int | None = Field(
        None,
        description="Explicit HTTP port, overriding the offset rule (0 picks a free port).",
    )
    min_port: int = Field(
        DEFAULT_MIN_PORT,
        description="Lowest member port (inclusive) reported in snapshots.",
    )
    max_port: int = Field(
        DEFAULT_MAX_PORT,
        description="Highest member port (inclusive) reported in snapshots.",
    )
    enable_cors: bool = Field(
        True, description="Send Access-Control-Allow-Origin on snapshot responses."
    )
    pretty_json: bool = Field(True, description="Indent serialized snapshots.")
    log_level: str = Field("INFO", description="Minimum log level.")
    log_debug_scopes: tuple[str, ...] = Field(
        (),
        description="Module scopes (e.g. 'server') that log at DEBUG regardless of level.",
    )
    log_colorize: bool = Field(False, description="Colorize log output.")
    cluster_file: Path | None = Field(
        None, description="TOML or JSON description of the cluster to serve."
    )

    @model_validator(mode="after")
    def check_port_window(self) -> Self:
        if self.min_port > self.max_port:
            raise ValueError(
                f"min_port ({self.min_port}) must not exceed max_port ({self.max_port})"
            )
        return self

    @property
    def port_range(self) -> PortRange:
        return PortRange(min_port=self.min_port, max_port=self.max_port)

    def http_port_for(self, member_port: PortNumber) -> int | None:
        """HTTP port for a member, or None when the member is outside the window."""
        if member_port not in self.port_range:
            return None
        if self.http_port is not None:
            return self.http_port
        return member_port + self.http_port_offset

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "ClusterViewSettings":
        normalized = dict(values)
        scopes = normalized.get("log_debug_scopes")
        if isinstance(scopes, str):
            normalized["log_debug_scopes"] = (scopes,)
        elif scopes is not None:
            normalized["log_debug_scopes"] = tuple(scopes)
        return cls(**normalized)

    @classmethod
    def from_toml(cls, path: Path | str) -> "ClusterViewSettings":
        """Load settings from the ``[clusterview]`` table of a TOML file."""
        with Path(path).open("rb") as handle:
            document = tomllib.load(handle)
        section = document.get(SETTINGS_SECTION, document)
        if not isinstance(section, Mapping):
            raise ValueError(f"[{SETTINGS_SECTION}] in {path} must be a table")
        return cls.from_dict(section)
