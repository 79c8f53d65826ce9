"""
Core helper functions for the prevhs engine

Text escaping for the literal `Type` command, command-name extraction,
argument placeholder scanning/substitution, alias macro construction and
header validation reporting.
"""

import re
from typing import Any, Callable, List, Optional, Tuple

from ..models.macros import EACH_LINE_MACRO
from ..models.parser import ArgumentBindings
from .errors import HeaderValidationError
from .log import WARN

STAR_PATTERN = re.compile(r'\$\*')
INDEX_PATTERN = re.compile(r'\$(\d+)')


def type_format(text: str = "") -> str:
    """
    Escape arbitrary text for a tape `Type` command.

    Always emits a backtick-quoted literal; only backticks need escaping.

    Example:
        >>> type_format("echo `date`")
        'Type `echo \\\\`date\\\\``'
    """
    escaped = str(text).replace('`', '\\`')
    return f"Type `{escaped}`"


def type_unescape(literal: str) -> str:
    """Inverse of the escaping applied by type_format() to the quoted body"""
    return str(literal).replace('\\`', '`')


def typeLiteral_is(text: str) -> bool:
    """True if text is already a complete backtick-quoted literal"""
    return len(text) >= 2 and text.startswith('`') and text.endswith('`')


def commandBase_get(line: str) -> str:
    """
    Extract the leading command word from a line.

    Example:
        >>> commandBase_get('  Sleep 1s')
        'Sleep'
    """
    trimmed = str(line).strip()
    if not trimmed:
        return ""
    return trimmed.split(None, 1)[0]


def remainder_get(token: str) -> str:
    """Text after the leading word, trimmed"""
    parts = str(token).strip().split(None, 1)
    return parts[1].strip() if len(parts) > 1 else ""


def argIndex_max(tokens: List[str]) -> Tuple[int, bool]:
    """
    Find the highest `$N` placeholder and whether `$*` appears.

    Args:
        tokens: Directive tokens to scan

    Returns:
        (max positional index, has greedy marker)

    Example:
        >>> argIndex_max(["Type $1", "Multi $*", "End $2"])
        (2, True)
    """
    highest = 0
    has_star = False
    for token in tokens:
        if STAR_PATTERN.search(token):
            has_star = True
        for match in INDEX_PATTERN.finditer(str(token)):
            highest = max(highest, int(match.group(1)))
    return highest, has_star


def placeholders_has(token: str) -> bool:
    """True if the token references `$N` or `$*`"""
    return bool(INDEX_PATTERN.search(token) or STAR_PATTERN.search(token))


def args_substitute(text: str, args: ArgumentBindings) -> str:
    """Replace `$*` and `$N` with bound values (empty string when unbound)"""
    result = STAR_PATTERN.sub(lambda _m: args["*"], str(text))
    return INDEX_PATTERN.sub(lambda m: args[int(m.group(1))], result)


def macro_mark(
    has_star: bool = False, each_line: bool = False, arity: int = 0
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator attaching registry flags to a macro function.

    Example:
        @macro_mark(each_line=True)
        def EachLine(payload, raw, args, ctx):
            return []
    """
    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        fn.has_star = has_star  # type: ignore[attr-defined]
        fn.each_line = each_line  # type: ignore[attr-defined]
        fn.arity = arity  # type: ignore[attr-defined]
        return fn
    return decorate


class AliasMacro:
    """
    Macro synthesized from a header alias (`Name = Cmd1, Cmd2 $1, ...`)

    Calling it substitutes the call-site arguments into the body tokens
    and returns them for further expansion. Placeholders inside an
    `EachLine` body token are left for the per-line expansion.

    Attributes:
        name: Alias name
        body: Body tokens
        has_star: Body references `$*`
        arity: Highest `$N` referenced by the body (outside EachLine tokens)
    """

    def __init__(self, name: str, body: List[str]) -> None:
        self.name = name
        self.body = list(body)
        call_site = [tok for tok in self.body if commandBase_get(tok) != EACH_LINE_MACRO]
        self.arity, _ = argIndex_max(call_site)
        self.has_star = any(STAR_PATTERN.search(tok) for tok in self.body)

    def __call__(self, payload: str, raw_token: str, args: ArgumentBindings, ctx: Any = None) -> List[str]:
        out = []
        for token in self.body:
            if commandBase_get(token) == EACH_LINE_MACRO:
                # $1 / $* belong to each line of the greedy block
                out.append(INDEX_PATTERN.sub(
                    lambda m: m.group(0) if m.group(1) == "1" else args[int(m.group(1))],
                    token,
                ))
            else:
                out.append(args_substitute(token, args))
        return out

    def __repr__(self) -> str:
        return f"AliasMacro({self.name!r}, {self.body!r})"


def aliasMacro_make(name: str, body: List[str]) -> AliasMacro:
    """Build the macro callable for a header alias"""
    return AliasMacro(name, body)


def headerIssue_report(mode: str, line_number: int, message: str, line: str) -> None:
    """
    Report a header anomaly according to the validation mode.

    Args:
        mode: "off" (ignore), "warn" (log) or "error" (raise)
        line_number: 1-based line number
        message: Description of the anomaly
        line: Offending line text

    Raises:
        HeaderValidationError: When mode is "error"
    """
    if mode == "off":
        return

    full_message = f"[prevhs] Header line {line_number}: {message}\n  -> {line}"

    if mode == "error":
        raise HeaderValidationError(full_message)
    WARN(full_message)


def text_split(text: Optional[str]) -> List[str]:
    """Split document text on \\r?\\n"""
    return re.split(r'\r?\n', str(text if text is not None else ""))
