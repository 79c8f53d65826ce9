"""
Emoji shortcut macros

Each macro types an emoji, followed by a space and the payload when one
is given:

    Use EmojiSmile
    > EmojiSmile $1, Enter
    hello

    -> Type `🙂 hello`
       Enter

Aliases work as usual:

    Smile = EmojiSmile $1
"""

from typing import Any, Callable, Dict, List

from ..models.macros import PackContext

EMOJI = {
    "EmojiSmile": "\U0001F642",        # 🙂
    "EmojiGrin": "\U0001F604",         # 😄
    "EmojiThumbsUp": "\U0001F44D",     # 👍
    "EmojiParty": "\U0001F389",        # 🎉
    "EmojiWarning": "\u26A0\uFE0F",   # ⚠️
    "EmojiInfo": "\u2139\uFE0F",      # ℹ️
    "EmojiCheck": "\u2705",           # ✅
    "EmojiCross": "\u274C",           # ❌
}


def optionalText_append(emoji: str, payload: str) -> str:
    text = str(payload or "").strip()
    return f"{emoji} {text}" if text else emoji


def setup(context: PackContext) -> None:
    type_format = context.helpers.type_format

    def emojiMacro_make(emoji: str) -> Callable[..., List[str]]:
        def macro(payload: str = "", raw_token: str = "", args: Any = None, ctx: Any = None) -> List[str]:
            return [type_format(optionalText_append(emoji, payload))]
        return macro

    macros: Dict[str, Callable[..., List[str]]] = {
        name: emojiMacro_make(emoji) for name, emoji in EMOJI.items()
    }
    context.macros_register(macros)
