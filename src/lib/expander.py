"""
Macro expander

Turns the tokens of one directive into plain output lines.

For every token:
1. Guard check against the document's step budget, then count the step
2. Substitute `$*` / `$N` with the bound arguments
3. Run the pre-expansion transforms (may fan out)
4. For each resulting token, resolve its leading word:
   - no eligible macro: emit the token verbatim
   - macro: check recursion and depth, derive payload/args, call it and
     expand what it returns

A macro's output item whose leading word is the macro's own name is
emitted verbatim rather than re-expanded. A macro flagged `each_line`
captures the rest of its token list as a template that is expanded once
per non-blank line of the greedy argument.

Nesting is tracked on an explicit work stack of frames rather than the
interpreter's call stack, so `max_depth` is the only limit on how deep
macros can call each other. Frames are resumed last-in first-out, which
keeps output and side effects in depth-first order.
"""

from dataclasses import dataclass, replace
from typing import Any, List, Optional, Set, Union

from ..models.macros import ExpansionContext, ExpansionState, MacroEntry
from ..models.parser import ArgumentBindings
from .errors import DepthLimitError, MacroRecursionError, StepLimitError
from .helpers import args_substitute, commandBase_get, placeholders_has, remainder_get, text_split
from .log import LOG
from .registry import MacroRegistry
from .transforms import TransformPipeline


@dataclass
class TokenListFrame:
    """
    A token list being expanded (a directive line or a macro's output)

    Attributes:
        tokens: Tokens to expand
        payload: Payload inherited from the caller
        args: Arguments inherited from the caller
        ctx: Directive context
        stack: Macro names in progress
        block_base: Name of the macro that produced these tokens
        index: Next token to expand
    """
    tokens: List[Any]
    payload: str
    args: ArgumentBindings
    ctx: ExpansionContext
    stack: List[str]
    block_base: Optional[str] = None
    index: int = 0


@dataclass
class CandidateFrame:
    """
    Tokens produced by the pre-expansion transforms for one token

    Attributes:
        candidates: Fanned-out tokens
        payload: Payload of the originating token
        args: Arguments of the originating token
        ctx: Token context
        stack: Macro names in progress
        had_placeholders: Originating token referenced `$N` or `$*`
        index: Next candidate to resolve
    """
    candidates: List[Any]
    payload: str
    args: ArgumentBindings
    ctx: ExpansionContext
    stack: List[str]
    had_placeholders: bool
    index: int = 0


@dataclass
class EachLineFrame:
    """
    A template expanded once per line of the greedy argument

    Attributes:
        template: Tokens expanded for each line
        lines: Non-blank lines still to iterate
        args: Arguments of the each-line token
        ctx: Context with each_line set
        stack: Macro names in progress
        block_base: Passthrough name of the enclosing token list
        index: Next line
    """
    template: List[str]
    lines: List[str]
    args: ArgumentBindings
    ctx: ExpansionContext
    stack: List[str]
    block_base: Optional[str] = None
    index: int = 0


Frame = Union[TokenListFrame, CandidateFrame, EachLineFrame]


class Expander:
    """
    Expands directive tokens for one document

    Attributes:
        registry: Macro registry (document overlay)
        pipeline: Transform pipeline
        use_set: Names activated in the document header
        state: Guard state shared by every directive of the document
        max_steps: Token considerations allowed for the document
        max_depth: Nested macro calls allowed per token
    """

    def __init__(
        self,
        registry: MacroRegistry,
        pipeline: TransformPipeline,
        use_set: Set[str],
        state: ExpansionState,
        max_steps: int,
        max_depth: int,
    ) -> None:
        self.registry = registry
        self.pipeline = pipeline
        self.use_set = use_set
        self.state = state
        self.max_steps = max_steps
        self.max_depth = max_depth

    def macro_active(self, name: str) -> Optional[MacroEntry]:
        """Eligible macro for a name, or None"""
        return self.registry.entry_active(name, self.use_set)

    def tokens_expand(
        self,
        tokens: List[Any],
        payload: str,
        args: ArgumentBindings,
        ctx: ExpansionContext,
        stack: List[str],
        block_base: Optional[str] = None,
    ) -> List[str]:
        """
        Expand a list of tokens (a directive line or a macro's output)

        Args:
            tokens: Tokens to expand; blank entries are skipped
            payload: Payload inherited from the caller
            args: Arguments inherited from the caller
            ctx: Directive context
            stack: Macro names in progress
            block_base: Name of the macro that produced these tokens;
                        items starting with it are final output

        Returns:
            Expanded output lines
        """
        return self.frames_run([TokenListFrame(tokens, payload, args, ctx, list(stack), block_base)])

    def token_expand(
        self,
        token: str,
        payload: str,
        args: ArgumentBindings,
        ctx: ExpansionContext,
        stack: List[str],
    ) -> List[str]:
        """
        Expand one token

        Raises:
            StepLimitError: Document step budget exhausted
        """
        return self.frames_run([self.candidateFrame_make(token, payload, args, ctx, list(stack))])

    def frames_run(self, work: List[Frame]) -> List[str]:
        """
        Resume frames until the work stack is empty

        A frame that still has work pushes itself back before pushing the
        frame for its current item, so each item finishes before its
        next sibling starts.
        """
        out: List[str] = []
        while work:
            frame = work.pop()
            if isinstance(frame, TokenListFrame):
                self.tokenList_step(frame, work, out)
            elif isinstance(frame, CandidateFrame):
                self.candidate_step(frame, work, out)
            else:
                self.eachLine_step(frame, work)
        return out

    def tokenList_step(self, frame: TokenListFrame, work: List[Frame], out: List[str]) -> None:
        while frame.index < len(frame.tokens):
            index = frame.index
            frame.index += 1

            raw = frame.tokens[index]
            raw_text = "" if raw is None else str(raw)
            trimmed = raw_text.strip()
            if not trimmed:
                continue

            token_ctx = replace(frame.ctx, token_index=index)
            base = commandBase_get(trimmed)
            if frame.block_base and base == frame.block_base:
                out.append(raw_text)
                continue

            entry = self.macro_active(base)
            if entry is not None and entry.each_line:
                # the rest of the list is the template
                template = self.eachLineTemplate_build(frame.tokens, index, trimmed)
                each = self.eachLineFrame_make(
                    template, frame.payload, frame.args, token_ctx, frame.stack, frame.block_base
                )
                if each is not None:
                    work.append(each)
                return

            work.append(frame)
            work.append(self.candidateFrame_make(raw_text, frame.payload, frame.args, token_ctx, frame.stack))
            return

    def candidateFrame_make(
        self,
        token: str,
        payload: str,
        args: ArgumentBindings,
        ctx: ExpansionContext,
        stack: List[str],
    ) -> CandidateFrame:
        """Count the token as a step, substitute arguments and run pre-expand hooks"""
        self.limits_check(ctx, stack)
        self.state.expansion_steps += 1

        had_placeholders = placeholders_has(token)
        with_args = args_substitute(token, args)
        LOG(f"Line {ctx.line_number}: expanding {token!r} -> {with_args!r}", level=3)

        candidates = self.pipeline.preExpand_apply(with_args, ctx)
        return CandidateFrame(candidates, payload, args, ctx, stack, had_placeholders)

    def candidate_step(self, frame: CandidateFrame, work: List[Frame], out: List[str]) -> None:
        while frame.index < len(frame.candidates):
            position = frame.index
            frame.index += 1
            if position > 0:
                # fanned-out tokens count as steps of their own
                self.limits_check(frame.ctx, frame.stack)
                self.state.expansion_steps += 1

            trimmed = str(frame.candidates[position]).strip()
            if not trimmed:
                continue

            work.append(frame)
            self.candidate_resolve(trimmed, frame, work, out)
            return

    def candidate_resolve(self, trimmed: str, frame: CandidateFrame, work: List[Frame], out: List[str]) -> None:
        """
        Resolve a substituted token against the registry

        Unrecognized or inactive names pass through unchanged. A macro is
        called and its output pushed as a new token list.

        Raises:
            MacroRecursionError: Macro already in the call chain
            DepthLimitError: Call chain at max_depth
        """
        base = commandBase_get(trimmed)
        entry = self.macro_active(base)
        if entry is None:
            out.append(trimmed)
            return

        self.recursion_validate(base, frame.stack, frame.ctx)

        remainder = remainder_get(trimmed)
        call_args = frame.args.copy()
        if frame.had_placeholders:
            call_payload = frame.payload
        else:
            call_payload = remainder or frame.payload or ""
            if remainder:
                call_args.positional[1] = remainder

        result = entry.handler(call_payload, trimmed, call_args, frame.ctx)
        if not isinstance(result, list):
            LOG(f"Macro '{base}' returned {type(result).__name__}, treating as no output", level=2)
            result = []

        work.append(TokenListFrame(result, call_payload, call_args, frame.ctx, frame.stack + [base], base))

    def eachLineTemplate_build(self, tokens: List[Any], start_index: int, trimmed: str) -> List[str]:
        """Text after the each-line macro name plus all following tokens"""
        template = []
        remainder = remainder_get(trimmed)
        if remainder:
            template.append(remainder)
        for raw in tokens[start_index + 1:]:
            following = "" if raw is None else str(raw).strip()
            if following:
                template.append(following)
        return template

    def eachLineFrame_make(
        self,
        template: List[str],
        payload: str,
        args: ArgumentBindings,
        ctx: ExpansionContext,
        stack: List[str],
        block_base: Optional[str],
    ) -> Optional[EachLineFrame]:
        """
        Prepare a template for expansion once per non-blank line

        Lines are split on newlines only. Each iteration binds the line as
        both `$1` and `$*`.
        """
        text = args.greedy if args.greedy is not None else (payload or "")
        if not text:
            return None
        lines = [line for line in text_split(text) if line.strip()]
        return EachLineFrame(template, lines, args, replace(ctx, each_line=True), stack, block_base)

    def eachLine_step(self, frame: EachLineFrame, work: List[Frame]) -> None:
        if frame.index >= len(frame.lines):
            return
        line = frame.lines[frame.index]
        frame.index += 1

        line_args = frame.args.copy()
        line_args.greedy = line
        line_args.positional[1] = line

        work.append(frame)
        work.append(TokenListFrame(frame.template, line, line_args, frame.ctx, frame.stack, frame.block_base))

    def limits_check(self, ctx: ExpansionContext, stack: List[str]) -> None:
        if self.state.expansion_steps >= self.max_steps:
            chain = f" (stack: {' -> '.join(stack)})" if stack else ""
            raise StepLimitError(
                f"Macro expansion exceeded {self.max_steps} steps around line {ctx.line_number}{chain}",
                ctx.line_number,
                stack,
            )

    def recursion_validate(self, base: str, stack: List[str], ctx: ExpansionContext) -> None:
        if base in stack:
            raise MacroRecursionError(
                f"Macro recursion detected near line {ctx.line_number}: {' -> '.join(stack + [base])}",
                ctx.line_number,
                stack + [base],
            )
        if len(stack) >= self.max_depth:
            raise DepthLimitError(
                f"Macro expansion depth exceeded {self.max_depth} near line {ctx.line_number}"
                f" (stack: {' -> '.join(stack)})",
                ctx.line_number,
                stack,
            )
