# errorgen/compiler/config.py
"""`[tool.errorgen]` settings from the nearest pyproject.toml.

Recognised keys:

    [tool.errorgen]
    strict-placeholders = true
    runtime-module = "errorgen.runtime"
    out-dir = "generated"

Command-line flags override values read here.
"""
from __future__ import annotations
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from errorgen.backend.codegen import DEFAULT_RUNTIME_MODULE


class ConfigError(Exception):
    """Raised when `[tool.errorgen]` holds a value of the wrong type."""


@dataclass
class Config:
    strict_placeholders: bool = True
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    out_dir: Optional[Path] = None
    path: Optional[Path] = None


def find_pyproject(start: Path) -> Optional[Path]:
    """Walk up from `start` to the first directory holding a pyproject.toml."""
    start = start.resolve()
    for directory in (start, *start.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def _expect(table: Dict[str, Any], key: str, kind: type, path: Path) -> Any:
    value = table[key]
    if not isinstance(value, kind):
        raise ConfigError(f"{path}: [tool.errorgen] {key} must be a {kind.__name__}, "
                          f"got {type(value).__name__}")
    return value


def load_config(start: Optional[Path] = None) -> Config:
    """Read `[tool.errorgen]`; missing file or table gives the defaults.

    Raises:
        ConfigError: on a mistyped value or unreadable TOML.
    """
    path = find_pyproject(start or Path.cwd())
    if path is None:
        return Config()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    table = data.get("tool", {}).get("errorgen", {})
    config = Config(path=path)
    if "strict-placeholders" in table:
        config.strict_placeholders = _expect(table, "strict-placeholders", bool, path)
    if "runtime-module" in table:
        config.runtime_module = _expect(table, "runtime-module", str, path)
    if "out-dir" in table:
        # Relative to the pyproject.toml that declares it
        config.out_dir = path.parent / _expect(table, "out-dir", str, path)
    return config
