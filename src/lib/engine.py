"""
Core prevhs engine

Processes .tape.pre documents into plain .tape files. Each Engine
instance owns its macro registry, transform pipeline and loaded packs;
nothing is shared between instances.

Processing flow for one document:
1. Split into lines, parse the header (aliases, `Use`, `Pack`)
2. Load header packs and register aliases in a document overlay
3. For each body line:
   - directive (`> Tok1, Tok2 ...`): header transforms, bind argument
     lines, expand tokens, emit
   - anything else: emit verbatim (post-expansion transforms still run)
4. Apply finalize transforms and join with newlines

Example:
    >>> engine = engine_create()
    >>> engine.text_process("> Type $1, Enter\\nhello")
    'Type `hello`\\nEnter'
"""

import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

from ..models.macros import (
    EngineHelpers,
    EngineOptions,
    ExpansionContext,
    ExpansionState,
    PackContext,
    TransformPhase,
    TYPE_MACRO,
)
from ..models.parser import ArgumentBindings, ParsedHeader
from .binder import ArgumentBinder
from .emitter import Emitter
from .expander import Expander
from .helpers import commandBase_get, text_split, type_format, typeLiteral_is
from .log import LOG
from .parser import HeaderParser, directive_is
from .registry import MacroRegistry
from .transforms import TransformPipeline

DIRECTIVE_PREFIX = re.compile(r'^\s*>\s*')
TYPE_PREFIX = re.compile(r'^Type\b')


def type_macro(payload: str, raw_token: str, args: Optional[ArgumentBindings] = None, ctx: Any = None) -> List[str]:
    """
    The always-on `Type` macro: emit its text as an escaped literal

    Inline text after `Type` wins over the payload. Text that is already
    backtick-quoted is passed through untouched; simple "..." or '...'
    quotes are stripped before escaping.
    """
    remainder = TYPE_PREFIX.sub('', raw_token, count=1).strip()

    if typeLiteral_is(remainder):
        return [raw_token.strip()]

    stripped = remainder
    if len(remainder) >= 2 and remainder[0] == remainder[-1] and remainder[0] in ('"', "'"):
        stripped = remainder[1:-1]

    return [type_format(stripped or payload or "")]


class Engine:
    """
    A prevhs engine instance

    Attributes:
        options: Validated engine options
        registry: Engine-level macro registry
        pipeline: Transform pipeline
        helpers: Helper functions shared with packs
        packs_loaded: Resolved pack identifiers already initialized
    """

    def __init__(self, options: Optional[EngineOptions] = None) -> None:
        """
        Initialize an engine and register the built-in `Type` macro

        Args:
            options: Engine options (defaults when omitted)
        """
        self.options = options or EngineOptions()
        self.registry = MacroRegistry(warn_on_collision=self.options.warn_on_macro_collision)
        self.pipeline = TransformPipeline()
        self.helpers = EngineHelpers(type_format=type_format, commandBase_get=commandBase_get)
        self.packs_loaded: Set[str] = set()

        self.registry.macros_register({TYPE_MACRO: type_macro}, require_use=False)

    def macros_register(
        self,
        macros: Optional[Mapping[str, Callable[..., Any]]],
        require_use: bool = True,
        warn_command_collision: bool = False,
    ) -> None:
        """
        Register macros with this engine (last registration wins)

        Args:
            macros: Name -> expansion function (payload, raw_token, args, ctx) -> list
            require_use: Macro only fires when activated with `Use`
            warn_command_collision: Warn when a name shadows a tape command
        """
        self.registry.macros_register(
            macros, require_use=require_use, warn_command_collision=warn_command_collision
        )

    def transform_register(self, phase: Union[TransformPhase, str], fn: Callable[..., Any]) -> None:
        """Register a transform hook for a phase"""
        self.pipeline.transform_register(phase, fn)

    def packContext_make(self, options: Optional[Dict[str, Any]] = None, auto_use: bool = False) -> PackContext:
        """
        Build the facade handed to a pack's setup()

        Args:
            options: Pack options from the config
            auto_use: Register the pack's macros as always-on

        Returns:
            PackContext bound to this engine
        """
        register = self.macros_register
        if auto_use:
            def register(macros, require_use=True, warn_command_collision=False):  # type: ignore[no-redef]
                self.macros_register(macros, require_use=False, warn_command_collision=warn_command_collision)

        return PackContext(
            macros_register=register,
            transform_register=self.transform_register,
            helpers=self.helpers,
            options=dict(options or {}),
        )

    def text_process(self, text: str) -> str:
        """
        Expand one document

        Args:
            text: Source document

        Returns:
            Expanded document, lines joined with "\\n"

        Raises:
            StepLimitError, MacroRecursionError, DepthLimitError: Expansion guards
            HeaderValidationError: Header anomaly under "error" validation
        """
        lines = text_split(text)
        header = HeaderParser(lines, self.options.header_validation).header_parse()

        if header.pack_specs:
            from .packloader import packs_initFromSpecs
            packs_initFromSpecs(header.pack_specs, self, Path.cwd())

        registry = self.registry.overlay_create()
        registry.macros_register(header.alias_macros, require_use=False, warn_command_collision=True)

        state = ExpansionState()
        expander = Expander(
            registry,
            self.pipeline,
            set(header.use_names),
            state,
            max_steps=self.options.max_expansion_steps,
            max_depth=self.options.max_expansion_depth,
        )
        binder = ArgumentBinder(expander.macro_active)
        emitter = Emitter(self.pipeline, state)

        self.bodyLines_process(header, expander, binder, emitter)

        LOG(
            f"Expanded {len(header.body_lines)} body lines into {len(emitter.output)} lines "
            f"in {state.expansion_steps} steps",
            level=2,
        )
        return emitter.output_finalize()

    def bodyLines_process(
        self, header: ParsedHeader, expander: Expander, binder: ArgumentBinder, emitter: Emitter
    ) -> None:
        """Walk the body, expanding directives and passing other lines through"""
        body = header.body_lines
        index = 0
        while index < len(body):
            line = body[index]
            line_number = header.body_start_index + index + 1

            if directive_is(line):
                index = self.directiveLine_process(line, line_number, body, index, expander, binder, emitter)
            else:
                emitter.lines_emit([line], ExpansionContext(line_number=line_number))
            index += 1

    def directiveLine_process(
        self,
        line: str,
        line_number: int,
        body: List[str],
        index: int,
        expander: Expander,
        binder: ArgumentBinder,
        emitter: Emitter,
    ) -> int:
        """
        Expand one directive line and emit its output

        Args:
            line: Directive line text
            line_number: 1-based document line number
            body: Body lines
            index: Body index of the directive line
            expander: Document expander
            binder: Document argument binder
            emitter: Document emitter

        Returns:
            Body index of the last line consumed by this directive
        """
        header_text = DIRECTIVE_PREFIX.sub('', line, count=1)
        tokens = [part.strip() for part in header_text.split(',') if part.strip()]

        ctx = ExpansionContext(line_number=line_number, header_text=header_text)
        tokens = self.pipeline.header_apply(tokens, ctx)

        analysis = binder.arguments_analyze([str(token) for token in tokens])
        binding = binder.arguments_consume(body, index, analysis)

        payload = binding.args[1] or binding.args["*"]
        expanded = expander.tokens_expand(tokens, payload, binding.args, ctx, [])
        emitter.lines_emit(expanded, ctx)

        return binding.new_index


def engine_create(options: Optional[EngineOptions] = None, **overrides: Any) -> Engine:
    """
    Create an engine

    Args:
        options: Engine options; keyword overrides are applied on top

    Returns:
        New Engine instance

    Example:
        engine = engine_create(max_expansion_depth=8, header_validation="warn")
    """
    if options is None:
        options = EngineOptions(**overrides)
    elif overrides:
        options = EngineOptions(**{**options.model_dump(), **overrides})
    return Engine(options)


def text_process(
    text: str,
    config: Any = None,
    config_dir: Optional[Path] = None,
    options: Optional[EngineOptions] = None,
) -> str:
    """
    Expand a document with a fresh engine and the packs of a project config

    Args:
        text: Source document
        config: ProjectConfig (or mapping); first-party packs load when omitted
        config_dir: Directory for resolving relative pack paths
        options: Engine options

    Returns:
        Expanded document
    """
    from .packloader import packs_initFromConfig

    engine = engine_create(options)
    packs_initFromConfig(config, engine, config_dir)
    return engine.text_process(text)
