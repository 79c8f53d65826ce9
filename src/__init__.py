"""
prevhs - Macro preprocessor for terminal recording scripts

Expands header aliases and `>` directive lines in .tape.pre documents
into plain .tape scripts.
"""

__version__ = "1.0.0"

from .lib import Engine, engine_create, text_process, type_format, commandBase_get, LOG, state_connectToLogger

__all__ = [
    "Engine",
    "engine_create",
    "text_process",
    "type_format",
    "commandBase_get",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
