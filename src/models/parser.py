"""
Parser-specific data models

Type-safe structures for header parsing and argument binding.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union


@dataclass
class UseStatement:
    """
    Result of trying to read a `Use` line

    Attributes:
        matched: Line is a `Use` statement (even an empty one)
        names: Macro names to activate

    Example:
        "Use BackspaceAll Gap" -> UseStatement(matched=True, names=["BackspaceAll", "Gap"])
    """
    matched: bool
    names: List[str] = field(default_factory=list)


@dataclass
class AliasDefinition:
    """
    Result of trying to read an alias line (`Name = Cmd1, Cmd2`)

    Attributes:
        matched: Line has the alias shape
        name: Alias name, None when the body was empty
        macro: Synthesized macro callable, None when the body was empty
    """
    matched: bool
    name: Optional[str] = None
    macro: Optional[Callable[..., Any]] = None


@dataclass
class ParsedHeader:
    """
    Result of splitting a document into header and body

    Attributes:
        alias_macros: Alias name -> macro callable
        use_names: Names declared active via `Use`
        pack_specs: Pack specs declared via `Pack`
        body_lines: Lines from the first body line to the end
        body_start_index: 0-based index of the first body line

    Example:
        For ["Greet = Type $1", "", "> Greet $1", "hi"]:
        ParsedHeader(alias_macros={"Greet": <AliasMacro>}, use_names=[],
                     pack_specs=[], body_lines=["> Greet $1", "hi"],
                     body_start_index=2)
    """
    alias_macros: Dict[str, Callable[..., Any]]
    use_names: List[str]
    pack_specs: List[str]
    body_lines: List[str]
    body_start_index: int


@dataclass
class ArgumentAnalysis:
    """
    How many lines a directive consumes

    Attributes:
        max_index: Number of positional lines to consume ($1..$N)
        has_star: Greedy `$*` block follows the positional lines
    """
    max_index: int
    has_star: bool


@dataclass
class ArgumentBindings:
    """
    Bound arguments for one directive invocation

    Positional slots are 1-based. Missing slots read as the empty string.

    Attributes:
        positional: Index -> line text
        greedy: Joined `$*` block, None when no greedy argument was bound

    Example:
        >>> args = ArgumentBindings(positional={1: "hello"})
        >>> args[1], args[2], args["*"]
        ('hello', '', '')
    """
    positional: Dict[int, str] = field(default_factory=dict)
    greedy: Optional[str] = None

    def __getitem__(self, key: Union[int, str]) -> str:
        if key == "*":
            return self.greedy if self.greedy is not None else ""
        return self.positional.get(int(key), "")

    def copy(self) -> "ArgumentBindings":
        """Independent copy for derived (nested) calls"""
        return ArgumentBindings(positional=dict(self.positional), greedy=self.greedy)


@dataclass
class ArgumentBinding:
    """
    Result of consuming argument lines after a directive

    Attributes:
        args: Bound arguments
        new_index: Index of the last body line consumed (directive line if none)
    """
    args: ArgumentBindings
    new_index: int
