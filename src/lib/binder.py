"""
Argument binder for directive lines

Decides how many body lines following a directive are consumed as
positional arguments ($1..$N) and whether a greedy `$*` block follows,
then consumes them.
"""

from typing import Callable, List, Optional

from ..models.macros import MacroEntry, TYPE_MACRO
from ..models.parser import ArgumentAnalysis, ArgumentBinding, ArgumentBindings
from .helpers import argIndex_max, commandBase_get

EntryLookup = Callable[[str], Optional[MacroEntry]]


class ArgumentBinder:
    """
    Computes and consumes argument lines for one directive

    Attributes:
        entry_lookup: Returns the eligible MacroEntry for a name, or None
        bare_macro: Name of the always-on macro whose bare use implies $1
    """

    def __init__(self, entry_lookup: EntryLookup, bare_macro: str = TYPE_MACRO) -> None:
        self.entry_lookup = entry_lookup
        self.bare_macro = bare_macro

    def arguments_analyze(self, tokens: List[str]) -> ArgumentAnalysis:
        """
        Determine the argument shape of a directive's tokens

        Rules, in order:
        1. Tokens after an each-line macro form its per-line template and
           are ignored here; the each-line macro itself implies `$*`.
        2. Highest `$N` referenced by the remaining tokens, raised by the
           arity of any bare token naming a macro with an arity hint.
        3. `$*` referenced directly or by a macro flagged has_star.
        4. No `$N` and no `$*` but a bare `Type` token: consume one line.

        Args:
            tokens: Header-transformed directive tokens

        Returns:
            ArgumentAnalysis(max_index, has_star)

        Example:
            ["Type"]           -> ArgumentAnalysis(max_index=1, has_star=False)
            ["Type $2", "Tab"] -> ArgumentAnalysis(max_index=2, has_star=False)
            ["Type $*"]        -> ArgumentAnalysis(max_index=0, has_star=True)
        """
        each_line_index = -1
        for index, token in enumerate(tokens):
            entry = self.entry_lookup(commandBase_get(token))
            if entry is not None and entry.each_line:
                each_line_index = index
                break

        scanned = tokens[:each_line_index] if each_line_index >= 0 else tokens

        max_index, has_star = argIndex_max(scanned)
        for token in scanned:
            name = commandBase_get(token)
            entry = self.entry_lookup(name)
            if entry is None:
                continue
            if entry.has_star:
                has_star = True
            if entry.arity and token.strip() == name:
                max_index = max(max_index, entry.arity)

        has_star = has_star or each_line_index >= 0

        bare = any(token.strip() == self.bare_macro for token in scanned)
        if max_index == 0 and not has_star and bare:
            max_index = 1

        return ArgumentAnalysis(max_index=max_index, has_star=has_star)

    def arguments_consume(
        self, body_lines: List[str], current_index: int, analysis: ArgumentAnalysis
    ) -> ArgumentBinding:
        """
        Consume argument lines following the directive at current_index

        Positional lines are taken verbatim (missing ones bind to "").
        The greedy block takes following lines up to a blank line, which
        is consumed and discarded, or the end of input.

        Args:
            body_lines: Body region lines
            current_index: Index of the directive line
            analysis: Shape from arguments_analyze()

        Returns:
            ArgumentBinding with the bound args and the index of the last
            consumed line
        """
        args = ArgumentBindings()
        index = current_index

        for position in range(1, analysis.max_index + 1):
            index += 1
            args.positional[position] = body_lines[index] if index < len(body_lines) else ""

        if analysis.has_star:
            star_lines = []
            while index + 1 < len(body_lines):
                next_line = body_lines[index + 1]
                index += 1
                if not next_line.strip():
                    break
                star_lines.append(next_line)
            args.greedy = "\n".join(star_lines)
            if analysis.max_index < 1:
                args.positional[1] = args.greedy

        return ArgumentBinding(args=args, new_index=index)
