"""
Output emitter

Runs post-expansion transforms over produced lines, tracks the command
name of the last emitted line and applies the finalize transforms once
the whole document has been walked.
"""

from dataclasses import replace
from typing import List, Union

from ..models.macros import ExpansionContext, ExpansionState
from .helpers import commandBase_get
from .transforms import TransformPipeline


class Emitter:
    """
    Accumulates output lines for one document

    Attributes:
        pipeline: Transform pipeline
        state: Document state; last_emitted_base is only written here
        output: Lines emitted so far
    """

    def __init__(self, pipeline: TransformPipeline, state: ExpansionState) -> None:
        self.pipeline = pipeline
        self.state = state
        self.output: List[str] = []

    def lines_emit(self, lines: Union[str, List[str]], ctx: ExpansionContext) -> None:
        """
        Post-transform and append lines to the output

        Each line is transformed with the base command of the previously
        appended line in ctx.last_line_base. Blank lines do not update it.

        Args:
            lines: Line or lines produced by expansion or passthrough
            ctx: Directive context
        """
        items = lines if isinstance(lines, list) else [lines]
        for line in items:
            produced = self.pipeline.postExpand_apply(
                line, replace(ctx, last_line_base=self.state.last_emitted_base)
            )
            for out_line in produced:
                base = commandBase_get(out_line)
                if base:
                    self.state.last_emitted_base = base
                self.output.append(out_line)

    def output_finalize(self) -> str:
        """Apply finalize transforms and join the output with newlines"""
        return "\n".join(self.pipeline.finalize_apply(self.output))
