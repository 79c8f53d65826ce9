#!/usr/bin/env python3
"""
prevhs - Macro preprocessor for terminal recording scripts

Expands .tape.pre documents (header aliases, `Use` activation, `>`
directive lines with `$1`/`$*` argument lines) into plain .tape files
for the downstream recorder.

As with the other tools in this family, the ChRIS "plugin" pattern is
used as a general purpose app framework: an input directory, an output
directory and a pipeline of stages over a ProgramState.

Usage:
    prevhs inputdir/ outputdir/ --inputFile demo.tape.pre

    The expanded script is written to outputdir/demo.tape.

Examples:
    # Basic expansion
    prevhs . out/ --inputFile demo.tape.pre

    # Explicit output name and config file
    prevhs . out/ --inputFile demo.tape.pre --outputFile final.tape --config prevhs.config.toml

    # Strict header checking, verbose output
    prevhs . out/ --inputFile demo.tape.pre --headerValidation error -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import engine_create, __version__, LOG, state_connectToLogger, ExpansionError, ConfigError
from .lib.packloader import packs_initFromConfig
from .config import appsettings, config_load as projectConfig_load
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
   ___  ________ _  ____ _____
  | _ \| _ \ __\ \ / / / / __|
  |  _/|   / _| \ V / / \__ \
  |_|  |_|_\___| \_/_/  |___/

  Macro preprocessor for tape scripts
"""

# Define CLI arguments
parser = ArgumentParser(
    description="prevhs - Macro preprocessor for terminal recording scripts",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input .tape.pre file (relative to inputdir)"
)

parser.add_argument(
    "--outputFile",
    default="",
    type=str,
    help="Output file name (defaults to inputFile without its .pre suffix)",
)

parser.add_argument(
    "--config",
    default=None,
    type=str,
    help="Project config file (relative to inputdir). Defaults to prevhs.config.toml/.yaml/.yml/.json in inputdir",
)

parser.add_argument(
    "--headerValidation",
    default=None,
    choices=["off", "warn", "error"],
    help="Header validation mode (overrides PREVHS_HEADER_VALIDATION)",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the source file
            - outputTapeFile: Resolved path of the file to write
            - envOK: True if environment is valid

    Exits:
        1 if the input file is not found
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    input_file = state.inputdir / state.inputFile

    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    output_name = state.outputFile or appsettings.outputName_make(Path(state.inputFile).name)
    state.outputdir.mkdir(parents=True, exist_ok=True)
    state.outputTapeFile = state.outputdir / output_name
    LOG(f"Output file: {state.outputTapeFile}", level=2)

    state.envOK = True
    return state


def config_load(inputstate: ProgramState) -> ProgramState:
    """
    Load the project config (pack list) relative to inputdir.

    Returns:
        ProgramState with added fields:
            - projectConfig: Parsed ProjectConfig
            - configDir: Directory relative pack paths resolve against

    Exits:
        1 if an explicit config is missing or unreadable
    """

    state = inputstate.copy()

    try:
        loaded = projectConfig_load(state.config, cwd=state.inputdir)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        sys.exit(1)

    state.projectConfig = loaded.config
    state.configDir = loaded.config_dir
    LOG(f"Packs configured: {len(loaded.config.packs)} explicit, "
        f"{len(loaded.config.exclude_packs)} excluded", level=2)
    return state


def source_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the source document.

    Returns:
        ProgramState with added field:
            - sourceText: Document text

    Exits:
        1 if the file cannot be read
    """

    state = inputstate.copy()

    LOG("Reading source file...", level=1)

    try:
        state.sourceText = state.inputSourceFile.read_text(encoding="utf-8")
        LOG(f"Read {len(state.sourceText)} characters from {state.inputSourceFile.name}", level=2)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    if state.verbosity >= 3:
        from .lib.lexer import source_highlight
        LOG("\n" + source_highlight(state.sourceText), level=3)

    return state


def text_expand(inputstate: ProgramState) -> ProgramState:
    """
    Expand the source document with a fresh engine.

    Returns:
        ProgramState with added field:
            - expandedText: Expanded document

    Exits:
        1 on expansion guard errors, strict header errors or pack failures
    """

    state = inputstate.copy()

    if state.sourceText is None:
        print("Error: No source text available", file=sys.stderr)
        sys.exit(1)

    LOG("Expanding macros...", level=1)

    try:
        engine = engine_create(appsettings.engineOptions_make(header_validation=state.headerValidation))
        packs_initFromConfig(state.projectConfig, engine, state.configDir)
        state.expandedText = engine.text_process(state.sourceText)
    except ExpansionError as e:
        print(f"Expansion error: {e}", file=sys.stderr)
        sys.exit(1)
    except SyntaxError as e:
        print(f"Header error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Pack error: {e}", file=sys.stderr)
        if state.verbosity >= 3:
            import traceback

            traceback.print_exc()
        sys.exit(1)

    LOG(f"Expanded to {len(state.expandedText.splitlines())} lines", level=2)
    return state


def output_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the expanded document to outputTapeFile.

    Exits:
        1 if nothing was expanded or the file cannot be written
    """

    state = inputstate.copy()

    if state.expandedText is None:
        print("Error: Expansion failed", file=sys.stderr)
        sys.exit(1)

    try:
        state.outputTapeFile.write_text(state.expandedText + "\n", encoding="utf-8")
    except OSError as e:
        print(f"Error writing output file: {e}", file=sys.stderr)
        sys.exit(1)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display expansion results to the user.

    Returns:
        ProgramState unchanged (terminal pipeline stage)
    """
    state: ProgramState = inputstate.copy()

    LOG("\n✓ Expansion successful!", level=1)
    LOG(f"  Input:  {state.inputSourceFile}", level=1)
    LOG(f"  Output: {state.outputTapeFile}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="prevhs - Macro preprocessor for tape scripts",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - expand a .tape.pre document into a .tape file.

    Orchestrates the pipeline:
        1. env_check: Validate paths
        2. config_load: Read the project config
        3. source_read: Read the document
        4. text_expand: Run the engine with configured packs
        5. output_write: Write the .tape file
        6. results_report: Display results

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing the source document
        outputdir: Directory where the expanded script is written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, config_load, source_read, text_expand, output_write, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
