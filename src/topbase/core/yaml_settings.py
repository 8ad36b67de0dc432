"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

# Config loading happens before the real logger exists
_bootstrap_logger = None


def _get_bootstrap_logger():
    global _bootstrap_logger
    if _bootstrap_logger is None:
        from topbase.core.log import ConsoleSink, Logger
        _bootstrap_logger = Logger(console=ConsoleSink(level="warn"))
        _bootstrap_logger.setup(log_root=Path.home(), run_name="bootstrap")
    return _bootstrap_logger


def _cleanup_bootstrap_logger():
    """Drop the bootstrap logger once Config has set up the real one."""
    global _bootstrap_logger
    if _bootstrap_logger:
        _bootstrap_logger.close()
        _bootstrap_logger = None


def _cli_includes(argv: list[str]) -> list[str]:
    """Collect --include values from argv before pydantic parses it."""
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directive and --include
    CLI support.

    Merge order, later wins:
        package defaults < user config < project config
        < CLI includes
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        includes = _cli_includes(sys.argv)

        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike))
                else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        """Load and deep-merge every configuration layer that exists.

        Args:
            files: Project config path(s) plus --include paths
            deep_merge: Accepted for signature compatibility; layers
                are always deep-merged

        Returns:
            Deep-merged dictionary of all loaded data
        """
        files_to_load = [
            Path(__file__).parent.parent / "defaults" / "default.yaml",
            Path(user_config_dir("topbase", appauthor=False))
            / "topbase.yaml",
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in files_to_load:
            if not file_path.is_file():
                _get_bootstrap_logger().debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
                continue
            data = self._load_file_recursive(file_path, set())
            result = self._deep_merge(result, data)
        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a file and resolve its include: directives.

        Raises:
            ValueError: If circular include detected
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        for inc in includes:
            inc_path = self._resolve_path(inc, filepath)
            _get_bootstrap_logger().debug(
                "Including configuration",
                included_from=str(filepath),
                include_file=str(inc_path),
            )
            inc_data = self._load_file_recursive(inc_path, visited.copy())
            # Including file overrides what it includes
            data = self._deep_merge(inc_data, data)

        return data

    def _resolve_path(self, include_path: str, relative_to: Path) -> Path:
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
