"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    State bus carried through the CLI pipeline.

    Each stage copies the state, fills in its own fields and hands it on.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, inputFile, outputFile,
          config, headerValidation
        - env_check: inputSourceFile, outputTapeFile, envOK
        - config_load: projectConfig, configDir
        - source_read: sourceText
        - text_expand: expandedText
        - output_write: (writes outputTapeFile)
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing the .tape.pre source
        outputdir: Directory the .tape file is written to
        verbosity: Logging verbosity level (1-3)
        inputFile: Source filename (relative to inputdir)
        outputFile: Output filename (derived from inputFile when empty)
        config: Explicit project config path (relative to inputdir)
        headerValidation: Header validation mode override
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the source file
        outputTapeFile: Resolved path to the output file
        projectConfig: Parsed project config
        configDir: Directory relative pack paths resolve against
        sourceText: Source document
        expandedText: Expanded document
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    inputFile: str = field(default="")
    outputFile: str = field(default="")
    config: Optional[str] = field(default=None)
    headerValidation: Optional[str] = field(default=None)

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    outputTapeFile: Path = field(default=Path("/"))
    projectConfig: Optional[Any] = field(default=None)  # ProjectConfig at runtime
    configDir: Optional[Path] = field(default=None)
    sourceText: Optional[str] = field(default=None)
    expandedText: Optional[str] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Options without a matching field are dropped.

        Args:
            options: Parsed CLI arguments (inputFile, outputFile, ...)
            inputdir: Directory containing source files
            outputdir: Directory for expanded output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in vars(options).items() if k in valid_fields}
        return cls(**{**filtered_options, "inputdir": inputdir, "outputdir": outputdir})

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            config_load,
            source_read,
            text_expand,
            output_write,
            results_report
        )
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
