"""
Typing styles: "human" and "sloppy"

Select a style for the rest of the document with a directive:

    > Apply TypingStyle human medium fast
    > Apply TypingStyle human slow 50ms
    > Apply TypingStyle sloppy high
    > Apply TypingStyle None        # back to plain Type
    > Apply TypingStyle Default     # back to the configured default

While a style is active every emitted `Type` line is replaced by one
`Type@<ms>ms "<char>"` line per character. Human delays grow with the
keyboard distance between consecutive keys; sloppy typing occasionally
hits a wrong key, pauses and backspaces.

    human levels:  low | medium | high       (difficulty multiplier)
    human speeds:  fast | normal | medium | slow | <N>ms
    sloppy levels: low | medium | high       (mistake chance)
    sloppy speeds: fast | normal | medium | slow | <N>ms

Pack options: `defaultStyle`, `human`, `humanSpeed`, `sloppy`, `sloppySpeed`.
`HumanType` and `SloppyType` are always available as macros.
"""

import math
import random
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..lib.helpers import type_unescape
from ..models.macros import ExpansionContext, PackContext, TransformPhase

HUMAN_LEVELS = {"low": 0.7, "medium": 1.0, "high": 2.5}
HUMAN_SPEEDS = {"fast": 50, "normal": 60, "medium": 60, "slow": 120}
SLOPPY_LEVELS = {"low": 0.2, "medium": 0.4, "high": 0.7}
SLOPPY_SPEEDS = {"fast": 60, "medium": 90, "normal": 90, "slow": 140}

HUMAN_DISTANCE_SCALE_MS = 60
HUMAN_JITTER_MS = 20
SLOPPY_JITTER_MS = 50

ALPHABET = "abcdefghijklmnopqrstuvwxyz"
MS_TOKEN = re.compile(r'^(\d+(?:\.\d+)?)(ms)?$')
CHUNK_PATTERN = re.compile(r'\S+|\s+')
TYPE_PREFIX = re.compile(r'^Type\b')

KEYBOARD_ROWS = [
    ("qwertyuiop", 0, 0.0),
    ("asdfghjkl", 1, 0.5),
    ("zxcvbnm", 2, 1.0),
]


def keyboardMap_build() -> Dict[str, Tuple[float, int]]:
    """Key -> (x, y) position on a staggered QWERTY layout"""
    positions = {}
    for keys, y, offset in KEYBOARD_ROWS:
        for i, key in enumerate(keys):
            positions[key] = (i + offset, y)
    return positions


KEYBOARD_POS = keyboardMap_build()


def half_up(value: float) -> int:
    """Round half up (2.5 -> 3, -2.5 -> -2)"""
    return int(math.floor(value + 0.5))


def rand(low: float, high: float) -> float:
    return low + random.random() * (high - low)


def msToken_parse(token: str) -> Optional[float]:
    """
    Parse a duration token such as "50" or "50ms"

    Example:
        >>> msToken_parse("75ms")
        75.0
        >>> msToken_parse("fast") is None
        True
    """
    match = MS_TOKEN.match(token)
    return float(match.group(1)) if match else None


def baseline_resolve(value: Any, speeds: Dict[str, int], fallback: int) -> float:
    """Baseline delay from a pack option (number, speed name or "<N>ms")"""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        return max(0, value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in speeds:
            return speeds[key]
        ms = msToken_parse(key)
        if ms is not None:
            return max(0, ms)
    return fallback


def levelAndSpeed_parse(
    tokens: List[str], levels: Dict[str, float], speeds: Dict[str, int]
) -> Tuple[Optional[str], Optional[float]]:
    """
    Pick a level name and a baseline delay out of `Apply TypingStyle` arguments

    Example:
        >>> levelAndSpeed_parse(["high", "slow"], HUMAN_LEVELS, HUMAN_SPEEDS)
        ('high', 120)
    """
    level: Optional[str] = None
    baseline: Optional[float] = None
    for token in tokens:
        lower = token.lower()
        if level is None and lower in levels:
            level = lower
            continue
        if baseline is None and lower in speeds:
            baseline = speeds[lower]
            continue
        ms = msToken_parse(lower)
        if ms is not None:
            baseline = ms
    return level, baseline


def doubleQuoted_escape(text: str) -> str:
    return str(text).replace('\\', '\\\\').replace('"', '\\"')


def typePayload_extract(line: str) -> str:
    """
    Recover the literal text of an emitted `Type` line

    Handles backtick, double-quoted and single-quoted forms; anything
    else is returned as written.

    Example:
        >>> typePayload_extract('Type `a \\\\`b\\\\``')
        'a `b`'
    """
    remainder = TYPE_PREFIX.sub('', str(line or ""), count=1).strip()
    if not remainder:
        return ""
    if len(remainder) >= 2 and remainder[0] == remainder[-1] == '`':
        return type_unescape(remainder[1:-1])
    if len(remainder) >= 2 and remainder[0] == remainder[-1] == '"':
        return remainder[1:-1].replace('\\"', '"').replace('\\\\', '\\')
    if len(remainder) >= 2 and remainder[0] == remainder[-1] == "'":
        return remainder[1:-1].replace("\\'", "'").replace('\\\\', '\\')
    return remainder


@dataclass
class TypingStyler:
    """
    Typing style state for one engine

    Attributes:
        default_style: Style restored by `Apply TypingStyle Default`
        style: Active style ("default", "human" or "sloppy")
        human_multiplier: Difficulty multiplier for human typing
        human_baseline_ms: Base per-key delay for human typing
        sloppy_mistake_chance: Probability of a typo per word
        sloppy_baseline_ms: Base per-key delay for sloppy typing
    """
    default_style: str = "default"
    style: str = "default"
    human_multiplier: float = HUMAN_LEVELS["medium"]
    human_baseline_ms: float = HUMAN_SPEEDS["normal"]
    sloppy_mistake_chance: float = SLOPPY_LEVELS["medium"]
    sloppy_baseline_ms: float = SLOPPY_SPEEDS["medium"]

    @classmethod
    def options_apply(cls, options: Dict[str, Any]) -> "TypingStyler":
        """Build the initial state from pack options"""
        default_style = options.get("defaultStyle") or "default"
        human = options.get("human")
        sloppy = options.get("sloppy")
        return cls(
            default_style=default_style,
            style=default_style,
            human_multiplier=HUMAN_LEVELS.get(
                human.strip().lower() if isinstance(human, str) else "", HUMAN_LEVELS["medium"]
            ),
            human_baseline_ms=baseline_resolve(
                options.get("humanSpeed"), HUMAN_SPEEDS, HUMAN_SPEEDS["normal"]
            ),
            sloppy_mistake_chance=SLOPPY_LEVELS.get(
                sloppy.strip().lower() if isinstance(sloppy, str) else "", SLOPPY_LEVELS["medium"]
            ),
            sloppy_baseline_ms=baseline_resolve(
                options.get("sloppySpeed"), SLOPPY_SPEEDS, SLOPPY_SPEEDS["medium"]
            ),
        )

    def pairDifficulty_get(self, prev_char: Optional[str], curr_char: str) -> float:
        prev = KEYBOARD_POS.get(prev_char.lower()) if prev_char else None
        curr = KEYBOARD_POS.get(curr_char.lower()) if curr_char else None
        if prev is None or curr is None:
            return 1 if prev_char else 0
        return math.hypot(prev[0] - curr[0], prev[1] - curr[1])

    def pairDelay_get(self, prev_char: Optional[str], curr_char: str) -> int:
        difficulty = self.pairDifficulty_get(prev_char, curr_char)
        base = self.human_baseline_ms + difficulty * HUMAN_DISTANCE_SCALE_MS * self.human_multiplier
        jitter = rand(-HUMAN_JITTER_MS, HUMAN_JITTER_MS) * self.human_multiplier
        return max(0, half_up(base + jitter))

    def sloppyDelay_get(self) -> int:
        low = max(0, half_up(self.sloppy_baseline_ms - SLOPPY_JITTER_MS))
        high = max(low, half_up(self.sloppy_baseline_ms + SLOPPY_JITTER_MS))
        return half_up(rand(low, high))

    def human_expand(self, payload: str) -> List[str]:
        """One Type line per character, delayed by key distance and jitter"""
        text = str(payload or "")
        if not text:
            return [f'Type@{self.pairDelay_get(None, "")}ms ""']

        out = []
        prev_char = None
        for ch in text:
            out.append(f'Type@{self.pairDelay_get(prev_char, ch)}ms "{doubleQuoted_escape(ch)}"')
            prev_char = ch
        return out

    def sloppyChars_emit(self, text: str) -> List[str]:
        if not text:
            return [f'Type@{self.sloppyDelay_get()}ms ""']
        return [f'Type@{self.sloppyDelay_get()}ms "{doubleQuoted_escape(ch)}"' for ch in text]

    def sloppy_expand(self, payload: str) -> List[str]:
        """Per-character typing with an occasional wrong key, pause and backspace"""
        text = str(payload or "")
        chunks = CHUNK_PATTERN.findall(text) or [text]
        out: List[str] = []
        for chunk in chunks:
            if chunk.isspace():
                out.extend(self.sloppyChars_emit(chunk))
                continue

            if random.random() < self.sloppy_mistake_chance and len(chunk) >= 3:
                index = int(math.floor(rand(1, len(chunk) - 1)))
                before, after = chunk[:index], chunk[index:]
                wrong = chunk[index]
                while wrong == chunk[index]:
                    wrong = ALPHABET[int(math.floor(random.random() * len(ALPHABET)))]

                if before:
                    out.extend(self.sloppyChars_emit(before))
                out.extend(self.sloppyChars_emit(wrong))
                out.append(f"Sleep {half_up(self.sloppyDelay_get() * 2)}ms")
                out.append("Backspace 1")
                out.append(f"Sleep {half_up(self.sloppyDelay_get() * 2)}ms")
                if after:
                    out.extend(self.sloppyChars_emit(after))
            else:
                out.extend(self.sloppyChars_emit(chunk))
        return out

    def styleDirective_apply(self, parts: List[str]) -> None:
        """Handle the words of `Apply TypingStyle <style> [level] [speed]`"""
        style_token = parts[2] if len(parts) > 2 else None

        if style_token == "None":
            self.style = "default"
            return
        if style_token == "Default":
            self.style = self.default_style
            return

        style = (style_token or "default").lower()
        if style not in ("human", "sloppy", "default"):
            self.style = "default"
            return

        self.style = style
        rest = parts[3:]
        if style == "human":
            level, baseline = levelAndSpeed_parse(rest, HUMAN_LEVELS, HUMAN_SPEEDS)
            if level:
                self.human_multiplier = HUMAN_LEVELS[level]
            if baseline is not None:
                self.human_baseline_ms = max(0, baseline)
        elif style == "sloppy":
            level, baseline = levelAndSpeed_parse(rest, SLOPPY_LEVELS, SLOPPY_SPEEDS)
            if level:
                self.sloppy_mistake_chance = SLOPPY_LEVELS[level]
            if baseline is not None:
                self.sloppy_baseline_ms = max(0, baseline)

    def typeToken_rewrite(self, token: str) -> str:
        """Point a `Type` token at the active style's macro"""
        if self.style == "human":
            return TYPE_PREFIX.sub('HumanType', token, count=1)
        if self.style == "sloppy":
            return TYPE_PREFIX.sub('SloppyType', token, count=1)
        return token

    def HumanType(self, payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return self.human_expand(payload or "")

    def SloppyType(self, payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
        return self.sloppy_expand(payload or "")


def setup(context: PackContext) -> None:
    """Register the style macros and the Apply/rewrite transforms"""
    styler = TypingStyler.options_apply(context.options)
    commandBase_get = context.helpers.commandBase_get

    context.macros_register(
        {"HumanType": styler.HumanType, "SloppyType": styler.SloppyType},
        require_use=False,
    )

    def eachLine_rewrite(token: str, ctx: ExpansionContext) -> Any:
        if not ctx or not ctx.each_line:
            return token
        trimmed = str(token or "").strip()
        if trimmed and commandBase_get(trimmed) == "Type":
            return styler.typeToken_rewrite(trimmed)
        return token

    def typeLine_restyle(line: str, ctx: ExpansionContext) -> Any:
        if styler.style == "default":
            return line
        trimmed = str(line or "").strip()
        if not trimmed or commandBase_get(trimmed) != "Type":
            return line
        payload = typePayload_extract(trimmed)
        if styler.style == "human":
            return styler.human_expand(payload)
        if styler.style == "sloppy":
            return styler.sloppy_expand(payload)
        return line

    def header_rewrite(tokens: List[str], ctx: ExpansionContext) -> List[str]:
        out = []
        for token in tokens:
            trimmed = str(token or "").strip()
            if not trimmed:
                continue
            parts = trimmed.split()
            if parts[0] == "Apply" and len(parts) > 1 and parts[1].lower() == "typingstyle":
                styler.styleDirective_apply(parts)
                continue
            if commandBase_get(trimmed) == "Type":
                out.append(styler.typeToken_rewrite(trimmed))
            else:
                out.append(trimmed)
        return out

    context.transform_register(TransformPhase.PRE_EXPAND, eachLine_rewrite)
    context.transform_register(TransformPhase.POST_EXPAND, typeLine_restyle)
    context.transform_register(TransformPhase.HEADER, header_rewrite)
