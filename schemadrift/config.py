"""TOML configuration loader.

Loads run settings from ``schemadrift.toml`` (or the
``[tool.schemadrift]`` table of ``pyproject.toml``) and merges CLI
overrides on top before validating everything into a frozen RunConfig.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from schemadrift.schemas.config import RunConfig

CONFIG_FILENAME = "schemadrift.toml"


def find_config(start: Path) -> Path | None:
    """Locate a configuration file in ``start``.

    ``schemadrift.toml`` wins over ``pyproject.toml``; a pyproject without
    a ``[tool.schemadrift]`` table does not count.
    """
    candidate = start / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    pyproject = start / "pyproject.toml"
    if pyproject.is_file():
        with open(pyproject, "rb") as f:
            raw = tomllib.load(f)
        if "schemadrift" in raw.get("tool", {}):
            return pyproject
    return None


def _read_table(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        raw = tomllib.load(f)
    if path.name == "pyproject.toml":
        raw = raw.get("tool", {}).get("schemadrift", {})
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid schemadrift configuration in {path}")
    return raw


def load_run_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    search_dir: Path | None = None,
) -> RunConfig:
    """Build a RunConfig from a TOML file plus overrides.

    Args:
        config_path: Explicit config file. When omitted, ``search_dir``
            (default: the current directory) is searched; finding nothing
            is not an error as long as overrides supply schema patterns.
        overrides: Run-level values that win over the file. ``None``
            values are ignored.
        search_dir: Directory searched when ``config_path`` is omitted.

    Returns:
        Validated RunConfig.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        ValueError: If the TOML structure or any value is invalid.
    """
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    path = config_path or find_config(search_dir or Path.cwd())
    raw: dict[str, Any] = _read_table(path) if path is not None else {}

    run_section = raw.get("run", {})
    if not isinstance(run_section, dict):
        raise ValueError(f"[run] must be a table in {path}")

    data: dict[str, Any] = dict(run_section)
    if "compiler" in raw:
        data["compiler"] = raw["compiler"]
    if "groups" in raw:
        data["groups"] = raw["groups"]

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    # Relative working directories in a config file are relative to the file
    if path is not None and (overrides or {}).get("working_directory") is None:
        workdir = Path(data.get("working_directory", "."))
        if not workdir.is_absolute():
            data["working_directory"] = str(path.parent / workdir)

    return RunConfig(**data)
