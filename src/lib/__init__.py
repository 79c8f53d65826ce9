"""
prevhs engine library

Header parsing, argument binding, macro registry, transforms, recursive
expansion and emission, plus pack loading.
"""

__version__ = "1.0.0"

from .engine import Engine, engine_create, text_process, type_macro
from .errors import (
    ExpansionError,
    StepLimitError,
    MacroRecursionError,
    DepthLimitError,
    HeaderValidationError,
    ConfigError,
)
from .helpers import type_format, type_unescape, commandBase_get, macro_mark
from .log import LOG, WARN, state_connectToLogger

__all__ = [
    "Engine",
    "engine_create",
    "text_process",
    "type_macro",
    "ExpansionError",
    "StepLimitError",
    "MacroRecursionError",
    "DepthLimitError",
    "HeaderValidationError",
    "ConfigError",
    "type_format",
    "type_unescape",
    "commandBase_get",
    "macro_mark",
    "LOG",
    "WARN",
    "state_connectToLogger",
    "__version__",
]
