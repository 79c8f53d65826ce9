"""
Expansion guard tests

Recursion detection, depth and step limits.
"""

import pytest

from prevhs.lib.engine import engine_create
from prevhs.lib.errors import (
    DepthLimitError,
    ExpansionError,
    MacroRecursionError,
    StepLimitError,
)
from prevhs.lib.expander import Expander
from prevhs.lib.helpers import macro_mark
from prevhs.lib.registry import MacroRegistry
from prevhs.lib.transforms import TransformPipeline
from prevhs.models.macros import EngineOptions, ExpansionContext, ExpansionState
from prevhs.models.parser import ArgumentBindings


def chain_register(engine, length):
    """Register M1 -> M2 -> ... -> M<length> -> Enter"""
    macros = {}
    for i in range(1, length + 1):
        following = f"M{i + 1}" if i < length else "Enter"
        macros[f"M{i}"] = (lambda nxt: lambda p, r, a, c: [nxt])(following)
    engine.macros_register(macros, require_use=False)


class TestRecursion:
    """Cycles in the macro call chain"""

    def test_mutual_recursion(self, engine):
        """A -> B -> A is reported with the full chain"""
        engine.macros_register({
            "A": lambda p, r, a, c: ["B"],
            "B": lambda p, r, a, c: ["A"],
        }, require_use=False)

        with pytest.raises(MacroRecursionError, match="A -> B -> A") as excinfo:
            engine.text_process("> A")

        assert excinfo.value.stack == ["A", "B", "A"]
        assert excinfo.value.line_number == 1

    def test_recursion_line_number(self, engine):
        """The error names the directive's line"""
        engine.macros_register({
            "A": lambda p, r, a, c: ["B"],
            "B": lambda p, r, a, c: ["A"],
        }, require_use=False)

        with pytest.raises(MacroRecursionError, match="line 3"):
            engine.text_process("Sleep 1s\nShow\n> A")

    def test_recursion_through_alias(self, engine):
        """Aliases referring to each other are caught too"""
        source = "Ping = Pong\nPong = Ping\n\n> Ping"
        with pytest.raises(MacroRecursionError, match="Ping -> Pong -> Ping"):
            engine.text_process(source)

    def test_same_macro_twice_is_not_recursion(self, engine):
        """Sibling calls to the same macro are fine"""
        engine.macros_register({"T": lambda p, r, a, c: ["Tab"]}, require_use=False)
        assert engine.text_process("> T, T") == "Tab\nTab"

    def test_guard_errors_share_base(self):
        """All guard errors derive from ExpansionError"""
        for error in (StepLimitError, MacroRecursionError, DepthLimitError):
            assert issubclass(error, ExpansionError)


class TestDepthLimit:
    """max_expansion_depth"""

    def test_chain_over_limit(self):
        """A chain one longer than the limit fails"""
        engine = engine_create(max_expansion_depth=3)
        chain_register(engine, 4)
        with pytest.raises(DepthLimitError, match="depth exceeded 3") as excinfo:
            engine.text_process("> M1")
        assert excinfo.value.stack == ["M1", "M2", "M3"]

    def test_chain_at_limit(self):
        """A chain as long as the limit succeeds"""
        engine = engine_create(max_expansion_depth=3)
        chain_register(engine, 3)
        assert engine.text_process("> M1") == "Enter"

    def test_default_depth(self, engine):
        """The default limit is 32"""
        chain_register(engine, 33)
        with pytest.raises(DepthLimitError, match="stack: M1 -> M2"):
            engine.text_process("> M1")

    def test_large_configured_depth(self):
        """Deep limits are enforced without exhausting the interpreter stack"""
        engine = engine_create(max_expansion_depth=400)
        chain_register(engine, 401)
        with pytest.raises(DepthLimitError, match="depth exceeded 400") as excinfo:
            engine.text_process("> M1")
        assert len(excinfo.value.stack) == 400

    def test_large_chain_at_limit(self):
        engine = engine_create(max_expansion_depth=2000)
        chain_register(engine, 2000)
        assert engine.text_process("> M1") == "Enter"


class TestStepLimit:
    """max_expansion_steps"""

    def test_too_many_tokens(self):
        """Every token counts as a step"""
        engine = engine_create(max_expansion_steps=5)
        with pytest.raises(StepLimitError, match="exceeded 5 steps around line 1"):
            engine.text_process("> Enter, Enter, Enter, Enter, Enter, Enter")

    def test_exactly_at_limit(self):
        """Reaching the limit exactly is allowed"""
        engine = engine_create(max_expansion_steps=5)
        out = engine.text_process("> Enter, Enter, Enter, Enter, Enter")
        assert out.split("\n") == ["Enter"] * 5

    def test_steps_shared_across_directives(self):
        """The counter spans the whole document"""
        engine = engine_create(max_expansion_steps=3)
        with pytest.raises(StepLimitError, match="line 3"):
            engine.text_process("> Enter, Enter\n> Tab\n> Tab")

    def test_counter_resets_per_document(self):
        """Each document starts with a fresh counter"""
        engine = engine_create(max_expansion_steps=2)
        engine.text_process("> Enter, Enter")
        assert engine.text_process("> Tab, Tab") == "Tab\nTab"

    def test_fan_out_tokens_count(self):
        """Tokens produced by a pre-expand fan-out are counted"""
        engine = engine_create(max_expansion_steps=3)
        engine.transform_register("preExpandToken", lambda tok, ctx: ["Tab"] * 4 if tok == "Many" else None)
        with pytest.raises(StepLimitError):
            engine.text_process("> Many")

    def test_options_validated(self):
        """Limits must be positive"""
        with pytest.raises(ValueError):
            EngineOptions(max_expansion_steps=0)
        with pytest.raises(ValueError):
            EngineOptions(header_validation="loud")


class TestExpanderDirect:
    """Expander used without an engine"""

    @pytest.fixture
    def expander(self):
        @macro_mark(each_line=True)
        def EachLine(payload, raw_token, args, ctx):
            return []

        registry = MacroRegistry()
        registry.macros_register({"EachLine": EachLine}, require_use=False)
        return Expander(
            registry, TransformPipeline(), set(), ExpansionState(), max_steps=100, max_depth=8
        )

    def test_each_line_skips_blank_lines(self, expander):
        """Blank lines inside the greedy text produce no iteration"""
        args = ArgumentBindings(positional={1: "a\n\n  \nb"}, greedy="a\n\n  \nb")
        out = expander.tokens_expand(["EachLine Tab $1"], "a\n\n  \nb", args, ExpansionContext(line_number=1), [])
        assert out == ["Tab a", "Tab b"]

    def test_each_line_splits_on_newlines_only(self, expander):
        """Form feeds and other line-like separators stay inside a line"""
        args = ArgumentBindings(positional={1: "a\x0cb\nc"}, greedy="a\x0cb\nc")
        out = expander.tokens_expand(["EachLine Tab $1"], "a\x0cb\nc", args, ExpansionContext(line_number=1), [])
        assert out == ["Tab a\x0cb", "Tab c"]

    def test_nested_output_order(self, expander):
        """Macro output is emitted depth-first, before the following token"""
        expander.registry.macros_register({
            "Outer": lambda p, r, a, c: ["Inner", "Tab"],
            "Inner": lambda p, r, a, c: ["Enter", "Space"],
        }, require_use=False)
        out = expander.tokens_expand(["Outer", "Escape"], "", ArgumentBindings(), ExpansionContext(), [])
        assert out == ["Enter", "Space", "Tab", "Escape"]

    def test_steps_counted(self, expander):
        """Each considered token increments the shared counter"""
        expander.tokens_expand(["Enter", "Tab"], "", ArgumentBindings(), ExpansionContext(), [])
        assert expander.state.expansion_steps == 2
