"""
Built-in convenience macros

None of these fire until a document activates them in its header:

    Use BackspaceAll BackspaceAllButOne ClearLine TypeEnter Gap WordGap SentenceGap EachLine

Each macro returns plain tape commands. `Gap <duration>` is a switch:
from then on a `Sleep <duration>` is inserted before every emitted
command that follows another command (never around Sleep itself).
"""

import re
from typing import Any, List, Optional

from ..lib.helpers import macro_mark
from ..models.macros import ExpansionContext, PackContext, TransformPhase

SENTENCE_ABBREVIATIONS = ["mr.", "mrs.", "ms.", "dr.", "prof.", "sr.", "jr.", "st.", "mt."]
SENTENCE_PUNCTUATION = ".?!;"
GAP_PATTERN = re.compile(r'Gap\s+(.+)')
WORD_CHUNK = re.compile(r'(\S+)(\s*)')


def gapArg_extract(raw_token: str) -> str:
    """Second word of a token, e.g. the duration of `WordGap 80ms`"""
    parts = str(raw_token or "").strip().split()
    return parts[1] if len(parts) > 1 else ""


def words_chunk(text: str) -> List[str]:
    """
    Split text into words, each keeping its trailing whitespace

    Example:
        >>> words_chunk("  one two  three ")
        ['one ', 'two  ', 'three']
    """
    trimmed = str(text or "").strip()
    return [m.group(1) + m.group(2) for m in WORD_CHUNK.finditer(trimmed)]


def abbreviation_is(text: str, dot_index: int) -> bool:
    """True if the '.' at dot_index closes a known abbreviation such as 'Dr.'"""
    lower = text.lower()
    for abbr in SENTENCE_ABBREVIATIONS:
        start = dot_index - len(abbr) + 1
        if start < 0 or lower[start:dot_index + 1] != abbr:
            continue
        if start == 0 or lower[start - 1].isspace():
            return True
    return False


def sentences_chunk(text: str) -> List[str]:
    """
    Split text after sentence punctuation followed by whitespace

    Each chunk keeps its trailing whitespace. A period ending a known
    abbreviation does not end a sentence.

    Example:
        >>> sentences_chunk("Hi Dr. Who. Ready? Go")
        ['Hi Dr. Who. ', 'Ready? ', 'Go']
    """
    trimmed = str(text or "").strip()
    if not trimmed:
        return []

    chunks: List[str] = []
    start = 0
    i = 0
    while i < len(trimmed):
        ch = trimmed[i]
        following = trimmed[i + 1] if i + 1 < len(trimmed) else ""
        if (
            ch in SENTENCE_PUNCTUATION
            and following.isspace()
            and not (ch == "." and abbreviation_is(trimmed, i))
        ):
            end = i + 1
            while end < len(trimmed) and trimmed[end].isspace():
                end += 1
            chunks.append(trimmed[start:end])
            start = end
            i = end
            continue
        i += 1

    if start < len(trimmed):
        chunks.append(trimmed[start:])
    return chunks


def setup(context: PackContext) -> None:
    """Register the built-in macros and the gap transform"""
    type_format = context.helpers.type_format
    commandBase_get = context.helpers.commandBase_get

    # Current gap duration for this engine, None when off
    gap: List[Optional[str]] = [None]

    def gapped_type(chunks: List[str], duration: str) -> List[str]:
        lines = []
        for index, chunk in enumerate(chunks):
            lines.append(type_format(chunk))
            if duration and index < len(chunks) - 1:
                lines.append(f"Sleep {duration}")
        return lines

    def BackspaceAll(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return [f"Backspace {len(str(payload or ''))}"]

    def BackspaceAllButOne(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return [f"Backspace {max(len(str(payload or '')) - 1, 0)}"]

    def ClearLine(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return [f"Backspace {len(str(payload or ''))}", type_format(""), "Enter"]

    def TypeEnter(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return [type_format(payload or ""), "Enter"]

    def Gap(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        match = GAP_PATTERN.search(raw_token or "")
        gap[0] = match.group(1).strip() if match else None
        return []

    def WordGap(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return gapped_type(words_chunk(payload), gapArg_extract(raw_token))

    def SentenceGap(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return gapped_type(sentences_chunk(payload), gapArg_extract(raw_token))

    @macro_mark(each_line=True)
    def EachLine(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        # Never called directly: the expander turns the rest of the
        # directive into a per-line template.
        return []

    context.macros_register({
        "BackspaceAll": BackspaceAll,
        "BackspaceAllButOne": BackspaceAllButOne,
        "ClearLine": ClearLine,
        "TypeEnter": TypeEnter,
        "Gap": Gap,
        "WordGap": WordGap,
        "SentenceGap": SentenceGap,
        "EachLine": EachLine,
    })

    def gap_insert(line: str, ctx: ExpansionContext) -> Any:
        if not line or not str(line).strip() or not gap[0]:
            return line
        base = commandBase_get(line)
        last_base = ctx.last_line_base
        if not last_base or base in ("Sleep", "Gap") or last_base == "Gap":
            return line
        return [f"Sleep {gap[0]}", line]

    context.transform_register(TransformPhase.POST_EXPAND, gap_insert)
