"""
Custom Pygments lexer for prevhs source files

Highlights .tape.pre documents when they are echoed at high verbosity.

Token types:
- Comment: `#` and `//` lines
- Keyword.Namespace: `Use` / `Pack` header statements
- Name.Function: alias names and macro invocations
- Operator: the `>` directive marker and alias `=`
- Name.Variable: `$1`, `$*` placeholders
- Keyword: tape commands (Type, Sleep, Enter, ...)
- String.Backtick: backtick-quoted literals
"""

import re

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Text,
    Whitespace,
    Punctuation,
    Name,
    String,
    Keyword,
    Comment,
    Number,
    Operator,
)

from ..models.macros import TAPE_COMMANDS

TAPE_COMMAND_PATTERN = "|".join(sorted(TAPE_COMMANDS, key=len, reverse=True))


class PreVhsLexer(RegexLexer):
    """
    Lexer for prevhs documents

    Example:
        Use TypeEnter
        Greet = TypeEnter hello $1

        > Greet $1, Sleep 1s
        world

    Tokens:
        Use → Keyword.Namespace
        Greet (definition) → Name.Function
        > → Operator
        $1 → Name.Variable
        Sleep → Keyword
        1s → Number
    """

    name = 'prevhs'
    aliases = ['prevhs', 'tape-pre']
    filenames = ['*.tape.pre', '*.pre']
    flags = re.MULTILINE

    tokens = {
        'root': [
            # Full-line comments
            (r'^[ \t]*(#|//).*?$', Comment.Single),

            # Header statements
            (r'^([ \t]*)(Use|Pack)\b', bygroups(Whitespace, Keyword.Namespace), 'names'),

            # Alias definitions
            (r'^([ \t]*)([A-Za-z_]\w*)(\s*)(=)', bygroups(Whitespace, Name.Function, Whitespace, Operator), 'directive'),

            # Directive lines
            (r'^([ \t]*)(>)', bygroups(Whitespace, Operator), 'directive'),

            # Anything else: argument lines or passthrough commands
            (r'^([ \t]*)(%s)\b' % TAPE_COMMAND_PATTERN, bygroups(Whitespace, Keyword), 'directive'),
            (r'\n', Whitespace),
            (r'[^\n]+', String),
        ],

        'names': [
            (r'\n', Whitespace, '#pop'),
            (r'[ \t]+', Whitespace),
            (r'[^\s]+', Name.Function),
        ],

        'directive': [
            (r'\n', Whitespace, '#pop'),
            (r'\$(\d+|\*)', Name.Variable),
            (r'`(\\`|[^`\n])*`', String.Backtick),
            (r'"(\\"|[^"\n])*"', String.Double),
            (r'/[^/\s]+/', String.Regex),
            (r',', Punctuation),
            (r'\b(%s)\b' % TAPE_COMMAND_PATTERN, Keyword),
            (r'\b\d+(\.\d+)?(ms|s)?\b', Number),
            (r'[A-Z]\w*', Name.Function),
            (r'[ \t]+', Whitespace),
            (r'[^\s,$`"]+', Text),
            (r'.', Text),
        ],
    }


def get_lexer() -> PreVhsLexer:
    """
    Get the PreVhsLexer instance

    Returns:
        PreVhsLexer instance ready for use with Pygments
    """
    return PreVhsLexer()


def source_highlight(text: str) -> str:
    """Render a prevhs document with ANSI colors for terminal display"""
    return highlight(text, PreVhsLexer(), TerminalFormatter())
