"""
Models package for prevhs

Contains data structures and type definitions for the expansion engine
and the CLI pipeline.
"""

from .state import ProgramState, pipeline
from .macros import (
    EngineOptions,
    MacroEntry,
    ExpansionContext,
    ExpansionState,
    PackContext,
    TransformPhase,
)
from .parser import ArgumentBindings, ArgumentAnalysis, ArgumentBinding, ParsedHeader

__all__ = [
    "ProgramState",
    "pipeline",
    "EngineOptions",
    "MacroEntry",
    "ExpansionContext",
    "ExpansionState",
    "PackContext",
    "TransformPhase",
    "ArgumentBindings",
    "ArgumentAnalysis",
    "ArgumentBinding",
    "ParsedHeader",
]
