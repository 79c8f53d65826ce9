"""
Transform pipeline for prevhs

Four ordered hook lists, one per TransformPhase. Hooks run in
registration order, each seeing the previous hook's output.

Return conventions:
    header / finalize: a list replaces the current lines, anything else
                       keeps them
    preExpandToken / postExpand: a string replaces the item, a non-empty
                       list fans it out, anything else keeps it
"""

from typing import Any, Callable, Dict, List, Union

from ..models.macros import ExpansionContext, TransformPhase, phase_resolve
from .log import LOG


class TransformPipeline:
    """
    Registry and application of transform hooks

    Attributes:
        transforms: Phase -> ordered list of hook functions
    """

    def __init__(self) -> None:
        self.transforms: Dict[TransformPhase, List[Callable[..., Any]]] = {
            phase: [] for phase in TransformPhase
        }

    def transform_register(self, phase: Union[TransformPhase, str], fn: Callable[..., Any]) -> None:
        """
        Register a hook for a phase

        Unknown phases and non-callable hooks are ignored.
        """
        resolved = phase_resolve(phase)
        if resolved is None or not callable(fn):
            LOG(f"Ignoring transform registration for phase {phase!r}", level=2)
            return
        self.transforms[resolved].append(fn)

    def header_apply(self, tokens: List[str], ctx: ExpansionContext) -> List[str]:
        """Rewrite the full token list of one directive line"""
        current = tokens
        for fn in self.transforms[TransformPhase.HEADER]:
            result = fn(current, ctx)
            if isinstance(result, list):
                current = result
        return current

    def preExpand_apply(self, token: str, ctx: ExpansionContext) -> List[str]:
        """Rewrite one token (after argument substitution), possibly fanning out"""
        return self.bucket_apply(TransformPhase.PRE_EXPAND, [token], ctx)

    def postExpand_apply(self, lines: Union[str, List[str]], ctx: ExpansionContext) -> List[str]:
        """Rewrite expanded output line(s) before emission"""
        bucket = list(lines) if isinstance(lines, list) else [lines]
        return self.bucket_apply(TransformPhase.POST_EXPAND, bucket, ctx)

    def finalize_apply(self, lines: List[str]) -> List[str]:
        """Rewrite the complete output once"""
        current = lines
        for fn in self.transforms[TransformPhase.FINALIZE]:
            result = fn(current)
            if isinstance(result, list):
                current = result
        return current

    def bucket_apply(self, phase: TransformPhase, bucket: List[str], ctx: ExpansionContext) -> List[str]:
        """
        Fan-out/fan-in application of per-item hooks

        Args:
            phase: PRE_EXPAND or POST_EXPAND
            bucket: Items entering the first hook
            ctx: Context passed to each hook

        Returns:
            Items produced by the last hook
        """
        for fn in self.transforms[phase]:
            next_bucket: List[str] = []
            for item in bucket:
                result = fn(item, ctx)
                if isinstance(result, list) and result:
                    next_bucket.extend(result)
                elif isinstance(result, str):
                    next_bucket.append(result)
                else:
                    next_bucket.append(item)
            bucket = next_bucket
        return bucket
