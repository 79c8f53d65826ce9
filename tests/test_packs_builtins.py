"""
Built-in pack tests

BackspaceAll, ClearLine, TypeEnter, Gap, WordGap, SentenceGap, EachLine.
"""

import pytest

from prevhs.lib.engine import engine_create
from prevhs.packs import builtins
from prevhs.packs.builtins import sentences_chunk, words_chunk


@pytest.fixture
def engine():
    engine = engine_create()
    builtins.setup(engine.packContext_make())
    return engine


class TestEditingMacros:
    """Macros producing Backspace/Type/Enter"""

    def test_backspace_all(self, engine):
        out = engine.text_process("Use BackspaceAll\n\n> BackspaceAll $1\nhello")
        assert out == "Backspace 5"

    def test_backspace_all_but_one(self, engine):
        out = engine.text_process("Use BackspaceAllButOne\n\n> BackspaceAllButOne $1\nhello")
        assert out == "Backspace 4"

    def test_backspace_all_but_one_empty(self, engine):
        out = engine.text_process("Use BackspaceAllButOne\n\n> BackspaceAllButOne")
        assert out == "Backspace 0"

    def test_clear_line(self, engine):
        out = engine.text_process("Use ClearLine\n\n> ClearLine $1\nabc")
        assert out.split("\n") == ["Backspace 3", "Type ``", "Enter"]

    def test_type_enter(self, engine):
        out = engine.text_process("Use TypeEnter\n\n> TypeEnter $1\necho hi")
        assert out.split("\n") == ["Type `echo hi`", "Enter"]

    def test_type_then_fix(self, engine):
        """Typing a line, erasing it and typing the fix"""
        source = "Use BackspaceAll\n\n> Type $1, BackspaceAll $1, Type $2\ngti\ngit"
        out = engine.text_process(source)
        assert out.split("\n") == ["Type `gti`", "Backspace 3", "Type `git`"]

    def test_requires_use(self, engine):
        out = engine.text_process("> TypeEnter $1\nls")
        assert out == "TypeEnter ls"


class TestGap:
    """Gap switch and Sleep insertion"""

    def test_sleep_between_commands(self, engine):
        source = "Use Gap\n\n> Gap 200ms\n> Type $1, Enter, Type $1, Enter\necho hi"
        out = engine.text_process(source)
        assert out.split("\n") == [
            "Type `echo hi`",
            "Sleep 200ms",
            "Enter",
            "Sleep 200ms",
            "Type `echo hi`",
            "Sleep 200ms",
            "Enter",
        ]

    def test_no_sleep_before_first_command(self, engine):
        out = engine.text_process("Use Gap\n\n> Gap 1s\n> Enter")
        assert out == "Enter"

    def test_no_sleep_around_sleep(self, engine):
        out = engine.text_process("Use Gap\n\n> Gap 1s\nShow\nSleep 3s\nHide")
        assert out.split("\n") == ["Show", "Sleep 3s", "Hide"]

    def test_gap_off(self, engine):
        out = engine.text_process("Use Gap\n\n> Gap 1s\nShow\nHide\n> Gap\nEnter")
        assert out.split("\n") == ["Show", "Sleep 1s", "Hide", "Enter"]

    def test_gap_applies_to_passthrough(self, engine):
        out = engine.text_process("Use Gap\n\n> Gap 50ms\nShow\nHide")
        assert out.split("\n") == ["Show", "Sleep 50ms", "Hide"]

    def test_gap_state_per_engine(self):
        """A gap set on one engine does not affect another"""
        first = engine_create()
        second = engine_create()
        builtins.setup(first.packContext_make())
        builtins.setup(second.packContext_make())
        first.text_process("Use Gap\n\n> Gap 1s")
        assert second.text_process("Show\nHide") == "Show\nHide"


class TestChunkedTyping:
    """WordGap and SentenceGap"""

    def test_word_gap(self, engine):
        out = engine.text_process("Use WordGap\n\n> WordGap 50ms $1\nhello big world")
        assert out.split("\n") == [
            "Type `hello `",
            "Sleep 50ms",
            "Type `big `",
            "Sleep 50ms",
            "Type `world`",
        ]

    def test_sentence_gap(self, engine):
        out = engine.text_process("Use SentenceGap\n\n> SentenceGap 1s $1\nHi Dr. Who. Ready? Go")
        assert out.split("\n") == [
            "Type `Hi Dr. Who. `",
            "Sleep 1s",
            "Type `Ready? `",
            "Sleep 1s",
            "Type `Go`",
        ]

    def test_words_chunk(self):
        assert words_chunk("  one two  three ") == ["one ", "two  ", "three"]
        assert words_chunk("   ") == []

    def test_sentences_chunk(self):
        assert sentences_chunk("One. Two; three!") == ["One. ", "Two; ", "three!"]
        assert sentences_chunk("Ask mr. Smith.") == ["Ask mr. Smith."]
        assert sentences_chunk("v1.2 is out") == ["v1.2 is out"]


class TestEachLine:
    """EachLine from the pack"""

    def test_each_line(self, engine):
        source = "Use EachLine\n\n> EachLine Type $1, Enter\nls\npwd\n\nShow"
        out = engine.text_process(source)
        assert out.split("\n") == ["Type `ls`", "Enter", "Type `pwd`", "Enter", "Show"]

    def test_each_line_keeps_form_feed(self, engine):
        """Only newlines separate iterations"""
        out = engine.text_process("Use EachLine\n\n> EachLine Type $1\na\x0cb\nc")
        assert out.split("\n") == ["Type `a\x0cb`", "Type `c`"]

    def test_each_line_with_type_enter(self, engine):
        source = "Use EachLine TypeEnter\n\n> EachLine TypeEnter $1\nls\npwd"
        out = engine.text_process(source)
        assert out.split("\n") == ["Type `ls`", "Enter", "Type `pwd`", "Enter"]
