"""
Pack loading for prevhs

A pack is a Python module exposing `setup(context: PackContext)`. Pack
specs come from a project config or from `Pack` header statements and
resolve in this order:

1. First-party names (`builtins`, `typingStyles`, `emojiShortcuts`,
   `emoji`, `probe`), compared case- and punctuation-insensitively
2. Path-like specs (absolute, `.`-relative, containing a separator or
   ending in `.py`), loaded from file relative to a base directory
3. Anything else, imported as a dotted module name

Each resolved pack is initialized at most once per engine.
"""

import importlib
import importlib.util
import re
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from .log import LOG

if TYPE_CHECKING:
    from ..config.project import PackSpec, ProjectConfig
    from .engine import Engine

FIRST_PARTY_PACKS = {
    "builtins": "prevhs.packs.builtins",
    "typingstyles": "prevhs.packs.typing_styles",
    "emojishortcuts": "prevhs.packs.emoji_shortcuts",
    "emoji": "prevhs.packs.emoji_shortcuts",
    "probe": "prevhs.packs.probe",
}

# Loaded when a config does not exclude them
AUTO_LOAD_PACKS = ["builtins", "typingStyles", "emojiShortcuts", "probe"]


def packKey_normalize(module_id: str) -> str:
    """
    Normalize a pack name for first-party lookup

    Example:
        >>> packKey_normalize("Typing-Styles")
        'typingstyles'
    """
    return re.sub(r'[^a-z0-9]', '', str(module_id or "").strip().lower())


def pathLike_is(module_id: str) -> bool:
    """True if a spec names a file rather than an importable module"""
    if not module_id:
        return False
    return (
        Path(module_id).is_absolute()
        or module_id.startswith(".")
        or "/" in module_id
        or "\\" in module_id
        or module_id.endswith(".py")
    )


def packSpec_normalize(spec: Union[str, "PackSpec", Mapping[str, Any], None]) -> "PackSpec":
    """
    Coerce a string, mapping or PackSpec into a PackSpec

    Anything unrecognized becomes a disabled spec.
    """
    from ..config.project import PackSpec

    if isinstance(spec, PackSpec):
        return spec
    if isinstance(spec, str):
        return PackSpec(module=spec)
    if isinstance(spec, Mapping):
        return PackSpec.model_validate(dict(spec))
    return PackSpec(enabled=False)


def moduleId_resolve(module_id: Optional[str], base_dir: Optional[Path]) -> str:
    """
    Resolve a pack spec to a dotted module name or absolute file path

    Args:
        module_id: Spec as written
        base_dir: Directory relative paths resolve against (cwd when None)

    Returns:
        Resolved identifier, or "" if the spec is empty
    """
    if not module_id or not isinstance(module_id, str):
        return ""
    trimmed = module_id.strip()
    if not trimmed:
        return ""

    first_party = FIRST_PARTY_PACKS.get(packKey_normalize(trimmed))
    if first_party:
        return first_party

    if pathLike_is(trimmed):
        base = Path(base_dir) if base_dir is not None else Path.cwd()
        return str((base / trimmed).resolve())

    return trimmed


def module_load(resolved: str) -> ModuleType:
    """
    Import a pack module by dotted name or file path

    Raises:
        ImportError: Module cannot be found or loaded
    """
    if not pathLike_is(resolved):
        return importlib.import_module(resolved)

    path = Path(resolved)
    spec = importlib.util.spec_from_file_location(f"prevhs_pack_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load pack from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def pack_loadAndInit(pack: "PackSpec", engine: "Engine", base_dir: Optional[Path]) -> None:
    """
    Load one pack and call its setup() with a context bound to the engine

    Packs already loaded into this engine are skipped. A module without a
    callable `setup` is ignored.
    """
    resolved = moduleId_resolve(pack.module, base_dir)
    if not resolved:
        return
    if resolved in engine.packs_loaded:
        LOG(f"Pack already loaded: {resolved}", level=3)
        return
    engine.packs_loaded.add(resolved)

    module = module_load(resolved)
    setup = getattr(module, "setup", None)
    if not callable(setup):
        LOG(f"Pack {resolved} has no setup(), skipping", level=2)
        return

    LOG(f"Initializing pack {resolved} (autoUse={pack.auto_use})", level=2)
    setup(engine.packContext_make(pack.options, pack.auto_use))


def packs_initFromSpecs(specs: Optional[Iterable[Any]], engine: "Engine", base_dir: Optional[Path]) -> None:
    """
    Load a list of pack specs into an engine

    Disabled specs and specs without a module are skipped.
    """
    for raw in list(specs or []):
        pack = packSpec_normalize(raw)
        if not pack.enabled or not pack.module:
            continue
        pack_loadAndInit(pack, engine, base_dir)


def packs_initFromConfig(
    config: Union["ProjectConfig", Mapping[str, Any], None],
    engine: "Engine",
    config_dir: Optional[Path],
) -> None:
    """
    Load the packs of a project config into an engine

    First-party packs are auto-loaded first unless excluded or listed
    explicitly (in which case the explicit entry with its options wins),
    then the explicit specs in order.

    Args:
        config: ProjectConfig, raw mapping or None (first-party packs only)
        engine: Target engine
        config_dir: Directory relative pack paths resolve against
    """
    from ..config.project import ProjectConfig

    if config is None:
        project = ProjectConfig()
    elif isinstance(config, ProjectConfig):
        project = config
    else:
        project = ProjectConfig.model_validate(dict(config))

    explicit = [packSpec_normalize(spec) for spec in project.packs]
    excluded = {moduleId_resolve(name, config_dir) for name in project.exclude_packs}
    listed = set()
    for pack in explicit:
        if pack.module:
            listed.add(moduleId_resolve(pack.module, config_dir))
            listed.add(packKey_normalize(Path(pack.module).stem))

    auto = [
        name for name in AUTO_LOAD_PACKS
        if moduleId_resolve(name, config_dir) not in excluded
        and packKey_normalize(name) not in listed
        and moduleId_resolve(name, config_dir) not in listed
    ]
    packs_initFromSpecs(auto, engine, config_dir)
    packs_initFromSpecs(explicit, engine, config_dir)
