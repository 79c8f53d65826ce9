"""
Exceptions raised by the prevhs engine

Guard errors abort a whole Engine.text_process() call; header validation
errors only occur when header validation is set to "error".
"""

from typing import List, Optional


class ExpansionError(RuntimeError):
    """
    Base class for macro expansion guard failures

    Attributes:
        line_number: Source line of the directive being expanded
        stack: Macro names in progress when the guard tripped
    """

    def __init__(self, message: str, line_number: int, stack: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.stack: List[str] = list(stack or [])


class StepLimitError(ExpansionError):
    """Shared step counter reached max_expansion_steps"""


class MacroRecursionError(ExpansionError):
    """A macro appeared twice in its own call chain"""


class DepthLimitError(ExpansionError):
    """Call chain reached max_expansion_depth"""


class HeaderValidationError(SyntaxError):
    """Header anomaly under header_validation="error" """


class ConfigError(RuntimeError):
    """Project config could not be located or read"""
