"""
Project config files

A project config lists the packs available to documents:

    # prevhs.config.toml
    excludePacks = ["probe"]

    [[packs]]
    module = "./packs/team.py"
    autoUse = true
    options = { suffix = "!" }

YAML (`prevhs.config.yaml` or `.yml`) and JSON (`prevhs.config.json`) with
the same keys are accepted too:

    # prevhs.config.yaml
    excludePacks: [probe]
    packs:
      - module: ./packs/team.py
        autoUse: true

Plain strings are allowed in `packs` as shorthand for `{ module = "..." }`.
"""

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..lib.errors import ConfigError
from ..lib.log import LOG

CONFIG_CANDIDATES = [
    "prevhs.config.toml",
    "prevhs.config.yaml",
    "prevhs.config.yml",
    "prevhs.config.json",
]


class PackSpec(BaseModel):
    """
    One pack entry of a project config

    Attributes:
        module: First-party pack name, file path or dotted module name
        enabled: Skip the pack when False
        options: Passed to the pack as PackContext.options
        auto_use: Register the pack's macros as always-on (no `Use` needed)
    """
    model_config = ConfigDict(populate_by_name=True)

    module: Optional[str] = None
    enabled: bool = True
    options: Dict[str, Any] = Field(default_factory=dict)
    auto_use: bool = Field(default=False, alias="autoUse")


class ProjectConfig(BaseModel):
    """
    Parsed project config

    Attributes:
        packs: Pack entries, in load order
        exclude_packs: First-party pack names not to auto-load
    """
    model_config = ConfigDict(populate_by_name=True)

    packs: List[Union[str, PackSpec]] = Field(default_factory=list)
    exclude_packs: List[str] = Field(default_factory=list, alias="excludePacks")


@dataclass
class LoadedConfig:
    """
    Result of config_load()

    Attributes:
        config: Parsed project config (empty when no file was found)
        config_dir: Directory relative pack paths resolve against
    """
    config: ProjectConfig
    config_dir: Path


def configPath_resolve(explicit_path: Optional[str], cwd: Path) -> Optional[Path]:
    """
    Find the config file to load

    Raises:
        ConfigError: An explicit path was given but does not exist
    """
    if explicit_path:
        resolved = (cwd / explicit_path).resolve()
        if not resolved.exists():
            raise ConfigError(f"Config not found: {resolved}")
        return resolved

    for name in CONFIG_CANDIDATES:
        candidate = cwd / name
        if candidate.exists():
            return candidate

    return None


def configFile_read(path: Path) -> ProjectConfig:
    """
    Parse a YAML, TOML or JSON config file

    The format follows the file suffix. Empty or non-table content
    yields an empty config.

    Raises:
        ConfigError: The file cannot be read or parsed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not read config {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            raw: Any = yaml.safe_load(text)
        elif path.suffix == ".json":
            raw = json.loads(text)
        else:
            raw = tomllib.loads(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path.name}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"Could not read config {path}: {e}") from e

    if isinstance(raw, dict) and isinstance(raw.get("default"), dict):
        raw = raw["default"]
    if not isinstance(raw, dict):
        raw = {}

    return ProjectConfig.model_validate(raw)


def config_load(path: Optional[str] = None, cwd: Optional[Path] = None) -> LoadedConfig:
    """
    Load the project config from an explicit path or the working directory

    Args:
        path: Explicit config path (relative to cwd)
        cwd: Directory to search (defaults to the process working directory)

    Returns:
        LoadedConfig; an empty config rooted at cwd when no file exists

    Raises:
        ConfigError: Explicit path missing or unreadable
    """
    base = Path(cwd) if cwd is not None else Path.cwd()
    config_path = configPath_resolve(path, base)

    if config_path is None:
        LOG("No project config found, using defaults", level=2)
        return LoadedConfig(config=ProjectConfig(), config_dir=base)

    LOG(f"Loading project config: {config_path}", level=2)
    return LoadedConfig(config=configFile_read(config_path), config_dir=config_path.parent)
