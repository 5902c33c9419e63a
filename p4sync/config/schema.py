# P4Sync Configuration Schema
# Pydantic models for YAML configuration validation

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class P4Config(BaseModel):
    """How the Perforce command line is invoked."""

    executable: str = Field(default="p4", description="Name or path of the p4 binary")
    workspace: Optional[str] = Field(
        default=None, description="Directory to run p4 in (selects the client workspace)"
    )

    @field_validator("workspace")
    @classmethod
    def expand_workspace(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ in path."""
        if v is None:
            return v
        return str(Path(v).expanduser())


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")


class P4SyncConfig(BaseModel):
    """Root configuration model."""

    depot_root: str = Field(default="//depot/", description="Depot path that subtree arguments are relative to")
    threads: int = Field(default=8, ge=1, description="Number of parallel sync workers")
    idle_interval: float = Field(
        default=0.002, gt=0, description="Seconds a worker waits for work before re-checking for abort"
    )
    poll_interval: float = Field(default=0.1, gt=0, description="Seconds between completion checks")
    p4: P4Config = Field(default_factory=P4Config, description="Perforce settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @field_validator("depot_root")
    @classmethod
    def ensure_depot_root(cls, v: str) -> str:
        """Depot root must be a depot path ending in a slash."""
        if not v.startswith("//"):
            raise ValueError(f"depot_root must start with '//': {v}")
        if not v.endswith("/"):
            v += "/"
        return v
