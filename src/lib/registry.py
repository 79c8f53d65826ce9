"""
Macro registry for prevhs

Maps macro names to MacroEntry objects. Registration is last-wins; a
document-scoped overlay holds header aliases so they never leak into the
next document processed by the same engine.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Set

from ..models.macros import MacroEntry, tapeCommand_is
from .log import LOG, WARN


class MacroRegistry:
    """
    Registry of macro entries

    Attributes:
        entries: Name -> MacroEntry registered at this level
        parent: Registry consulted when a name is not found here
        warn_on_collision: Log re-registration of an existing name
    """

    def __init__(self, warn_on_collision: bool = True, parent: Optional["MacroRegistry"] = None) -> None:
        self.entries: Dict[str, MacroEntry] = {}
        self.parent = parent
        self.warn_on_collision = warn_on_collision

    def macros_register(
        self,
        macros: Optional[Mapping[str, Callable[..., Any]]],
        require_use: bool = True,
        warn_command_collision: bool = False,
    ) -> None:
        """
        Install or overwrite macros

        Non-mapping input and non-callable values are ignored.

        Args:
            macros: Name -> expansion function
            require_use: Macro only fires when activated with `Use`
            warn_command_collision: Warn when a name shadows a tape command
        """
        if not isinstance(macros, Mapping):
            return

        for name, fn in macros.items():
            if not callable(fn):
                continue

            if self.warn_on_collision and self.entry_get(name) is not None:
                WARN(f"[prevhs] Duplicate macro registration for '{name}', last definition wins")
            if warn_command_collision and tapeCommand_is(name):
                WARN(f"[prevhs] WARNING: Collision detected between custom macro '{name}' and tape command")

            self.entries[name] = MacroEntry(
                name=name,
                handler=fn,
                require_use=require_use,
                has_star=bool(getattr(fn, 'has_star', False)),
                each_line=bool(getattr(fn, 'each_line', False)),
                arity=int(getattr(fn, 'arity', 0) or 0),
            )
            LOG(f"Registered macro '{name}' (require_use={require_use})", level=3)

    def entry_get(self, name: str) -> Optional[MacroEntry]:
        """Look up a macro by name, falling back to the parent registry"""
        if name in self.entries:
            return self.entries[name]
        if self.parent is not None:
            return self.parent.entry_get(name)
        return None

    def entry_active(self, name: str, use_set: Set[str]) -> Optional[MacroEntry]:
        """Look up a macro and return it only if it is eligible to fire"""
        entry = self.entry_get(name)
        if entry is not None and entry.active_is(use_set):
            return entry
        return None

    def overlay_create(self) -> "MacroRegistry":
        """Create a child registry for one document"""
        return MacroRegistry(warn_on_collision=self.warn_on_collision, parent=self)
