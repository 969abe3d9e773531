from __future__ import annotations

from pathlib import Path
from typing import Any

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

from errors import ConfigError

CONFIG_FILENAME = "xrefmap.toml"


class XrefConfig(BaseModel):
    """Configuration for scanning, watching and rendering references."""

    model_config = ConfigDict(extra="forbid")

    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for source files to scan (empty = all files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for source files to skip",
    )
    render: list[str] = Field(
        default_factory=list,
        description="Glob patterns for target files to decorate (empty = all)",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between watcher polls",
    )

    @field_validator("include", "exclude", "render", mode="before")
    @classmethod
    def validate_patterns(cls, v: Any) -> Any:
        """Reject absolute or empty glob patterns.

        Patterns are matched against POSIX paths relative to the workspace
        root, so an absolute pattern can never match.
        """
        if v is None:
            return []

        if not isinstance(v, list):
            msg = "patterns must be a list of strings"
            raise TypeError(msg)

        for pattern in v:
            if not isinstance(pattern, str) or not pattern:
                msg = "patterns must be non-empty strings"
                raise ValueError(msg)
            if pattern.startswith("/"):
                msg = f"Pattern '{pattern}' must be relative to the workspace root"
                raise ValueError(msg)

        return v


def load_config(root: Path) -> XrefConfig:
    """Load configuration from xrefmap.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return XrefConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return XrefConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
