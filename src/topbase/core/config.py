"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from topbase.core.base import BaseConfig, BaseState
from topbase.core.log import Logger
from topbase.core.yaml_settings import YamlWithIncludesSettingsSource

# Modules available for template substitution in YAML files
# Usage: {platformdirs.user_state_dir}, {os.getcwd}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GitConfig(BaseConfig):
    """Repository location and git object constants."""

    workdir: Path = Field(
        default=Path("."),
        description="Path to the git working directory to reconcile in",
    )
    empty_tree: str = Field(
        default=EMPTY_TREE,
        description=(
            "Object id of the empty tree; used as the replay base "
            "and diff base for root commits"
        ),
    )
    timeout: int | None = Field(
        default=None,
        description=(
            "Seconds before a single git command is abandoned; "
            "None waits indefinitely"
        ),
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    git: GitConfig = Field(
        default_factory=GitConfig,
        description="Repository settings"
    )
    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Console log level: 'spew', 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("topbase"))
        ),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )
    commands: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Command templates organized by category (git, ...)",
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Initialize the global logger once configuration is known."""
        from topbase.core.log import setup_logger
        from topbase.core.yaml_settings import _cleanup_bootstrap_logger

        if self.logger is None:
            self.logger = Logger(level=self.log_level)

        # log_level is the verbosity switch; it wins over YAML
        self.logger.console.level = self.log_level

        setup_logger(
            log_root=self.log_root,
            run_name="topbase",
            level=self.logger.level,
            console=self.logger.console,
            otlp=self.logger.otlp,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        _cleanup_bootstrap_logger()
        return self

    def close(self):
        """Close the global logger, then any closeable children."""
        from topbase.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during a run)
# ============================================================

class ReconcileState(BaseState):
    """Runtime state of one topbase/rebase invocation."""

    operation: str | None = Field(
        default=None,
        description="'topbase' or 'rebase'",
    )
    status: str = Field(
        default="pending",
        description="pending, running, complete, failed",
    )
    result: Any = Field(
        default=None,
        description="ReconcileResult once the run completes",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Runtime(BaseModel):
    """Container for runtime state sections."""

    reconcile: ReconcileState = Field(default_factory=ReconcileState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state for one invocation.

    Sources, highest priority first: init arguments, YAML files
    (package defaults < user config < ./topbase.yaml < --include),
    .env, and TOPBASE_ prefixed environment variables.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="topbase.yaml",
        env_file=".env",
        env_prefix="TOPBASE_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Expand {field.path} templates in every string and Path."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with resolved values.

        Unresolvable names are left alone, which keeps command
        placeholders such as {ref} intact for later formatting.

        Examples:
            "{config.git.workdir}/.git" → "./.git"
            "{platformdirs.user_state_dir}"
            → "~/.local/state/topbase"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj('topbase', appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = ["State", "Config", "GitConfig", "BaseConfig", "BaseState"]
