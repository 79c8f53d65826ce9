"""
Macro, transform and engine option models

Defines the structures the expansion engine passes around: registry
entries, transform phases, per-directive context and the guard state
shared across one document.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Literal, Optional, Set

from pydantic import BaseModel, Field


class TransformPhase(Enum):
    """
    Phases of the transform pipeline

    Values are the phase names accepted by Engine.transform_register().
    """
    HEADER = "header"                # full token list of one directive line
    PRE_EXPAND = "preExpandToken"    # single token, before macro lookup
    POST_EXPAND = "postExpand"       # single output line, before emission
    FINALIZE = "finalize"            # whole output, once per document


HeaderValidation = Literal["off", "warn", "error"]


class EngineOptions(BaseModel):
    """
    Construction options for an Engine instance

    Attributes:
        warn_on_macro_collision: Log a warning when a macro name is registered twice
        header_validation: Strictness for header anomalies ("off" | "warn" | "error")
        max_expansion_steps: Token considerations allowed per document
        max_expansion_depth: Nested macro calls allowed per token
    """
    warn_on_macro_collision: bool = Field(default=True)
    header_validation: HeaderValidation = Field(default="off")
    max_expansion_steps: int = Field(default=10000, gt=0)
    max_expansion_depth: int = Field(default=32, gt=0)


@dataclass
class MacroEntry:
    """
    A registered macro

    Attributes:
        name: Macro name (leading word that triggers it)
        handler: Expansion function (payload, raw_token, args, ctx) -> list of tokens
        require_use: Only eligible when named in the document's `Use` set
        has_star: Handler consumes the greedy `$*` argument
        each_line: Handler is the per-line template marker (see Expander)
        arity: Positional arguments a bare invocation consumes
    """
    name: str
    handler: Callable[..., Any]
    require_use: bool = True
    has_star: bool = False
    each_line: bool = False
    arity: int = 0

    def active_is(self, use_set: Set[str]) -> bool:
        """Eligible to fire for a document with the given activation set"""
        return not self.require_use or self.name in use_set


@dataclass
class ExpansionContext:
    """
    Per-directive state handed to macros and transforms

    Attributes:
        line_number: 1-based source line of the directive (or passthrough line)
        header_text: Directive text after the leading '>'
        token_index: Position of the token within its token list
        each_line: True while expanding a per-line template
        last_line_base: Command name of the last line emitted (post-expand only)
    """
    line_number: int = 0
    header_text: str = ""
    token_index: int = 0
    each_line: bool = False
    last_line_base: str = ""


@dataclass
class ExpansionState:
    """
    Guard and emission state for one document

    The step counter is shared by every directive of the document; the
    call stack is threaded through the expander per token.
    """
    expansion_steps: int = 0
    last_emitted_base: str = ""


@dataclass
class EngineHelpers:
    """Helper functions exposed to packs"""
    type_format: Callable[[str], str]
    commandBase_get: Callable[[str], str]


@dataclass
class PackContext:
    """
    Facade handed to a pack's setup() function

    Attributes:
        macros_register: Registration function (possibly forcing require_use=False)
        transform_register: Transform registration function
        helpers: Shared helper functions
        options: Caller-supplied pack options
    """
    macros_register: Callable[..., None]
    transform_register: Callable[..., None]
    helpers: EngineHelpers
    options: Dict[str, Any] = field(default_factory=dict)


# Macro names the alias builder treats as per-line templates
EACH_LINE_MACRO = "EachLine"

# Always-on literal text macro
TYPE_MACRO = "Type"

# Commands understood by the downstream tape format; header aliases that
# shadow one of these are reported.
TAPE_COMMANDS: Set[str] = {
    'Output', 'Require', 'Set', 'Type', 'Left', 'Right', 'Up', 'Down',
    'Backspace', 'Delete', 'Insert', 'Enter', 'Tab', 'Space', 'Escape',
    'PageUp', 'PageDown', 'Ctrl', 'Alt', 'Shift', 'Sleep', 'Hide', 'Show',
    'Screenshot', 'Copy', 'Paste', 'Source', 'Wait', 'Env',
}


def tapeCommand_is(name: str) -> bool:
    """Check if a name is a downstream tape command"""
    return name in TAPE_COMMANDS


def phase_resolve(phase: Any) -> Optional[TransformPhase]:
    """
    Resolve a phase given as enum or string name

    Args:
        phase: TransformPhase or its string value

    Returns:
        TransformPhase, or None if the name is unknown
    """
    if isinstance(phase, TransformPhase):
        return phase
    for candidate in TransformPhase:
        if candidate.value == phase:
            return candidate
    return None

