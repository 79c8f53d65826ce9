"""
Basic engine tests

Directive expansion with the built-in Type macro, header aliases,
passthrough lines and activation gating.
"""

import pytest

from prevhs.lib.engine import Engine, engine_create, type_macro
from prevhs.lib.helpers import macro_mark, type_format


class TestDirectiveExpansion:
    """Directives using only the always-on Type macro"""

    def test_type_then_enter(self, engine):
        """Type $1 consumes one argument line"""
        out = engine.text_process("> Type $1, Enter\nhello")
        assert out.split("\n") == ["Type `hello`", "Enter"]

    def test_bare_type_consumes_next_line(self, engine):
        """A bare Type token takes the following line as its payload"""
        out = engine.text_process("> Type\nls -la")
        assert out == "Type `ls -la`"

    def test_inline_type_text(self, engine):
        """Inline text after Type needs no argument line"""
        out = engine.text_process("> Type echo hi, Enter\nSleep 1s")
        assert out.split("\n") == ["Type `echo hi`", "Enter", "Sleep 1s"]

    def test_already_quoted_type_passes_through(self, engine):
        """A backtick literal is not escaped twice"""
        out = engine.text_process("> Type `ls -la`")
        assert out == "Type `ls -la`"

    def test_double_quoted_type_is_requoted(self, engine):
        """Simple double quotes are replaced by backticks"""
        out = engine.text_process('> Type "hello"')
        assert out == "Type `hello`"

    def test_backticks_escaped(self, engine):
        """Backticks inside the payload are escaped"""
        out = engine.text_process("> Type $1\necho `date`")
        assert out == "Type `echo \\`date\\``"

    def test_unknown_commands_pass_through(self, engine):
        """Tokens that name no macro are emitted as written"""
        out = engine.text_process("> Ctrl+C, Sleep 500ms, Enter")
        assert out.split("\n") == ["Ctrl+C", "Sleep 500ms", "Enter"]

    def test_whitespace_before_marker(self, engine):
        """Leading whitespace before '>' still marks a directive"""
        out = engine.text_process("   >   Type $1\nhi")
        assert out == "Type `hi`"

    def test_crlf_input(self, engine):
        """Windows line endings split like plain newlines"""
        out = engine.text_process("> Type $1, Enter\r\nhello\r\nShow")
        assert out.split("\n") == ["Type `hello`", "Enter", "Show"]


class TestPassthrough:
    """Non-directive lines"""

    def test_lines_kept_in_order(self, engine):
        """Non-directive body lines are emitted unchanged, in order"""
        source = "Output demo.gif\nSet FontSize 22\n> Type $1\nx\nHide\nShow"
        out = engine.text_process(source)
        assert out.split("\n") == [
            "Output demo.gif",
            "Set FontSize 22",
            "Type `x`",
            "Hide",
            "Show",
        ]

    def test_empty_document(self, engine):
        """Empty input produces empty output"""
        assert engine.text_process("") == ""

    def test_body_comments_pass_through(self, engine):
        """Comments after the header are ordinary body lines"""
        out = engine.text_process("Sleep 1s\n# keep me")
        assert out == "Sleep 1s\n# keep me"


class TestHeaderAliases:
    """Aliases declared in the header"""

    def test_alias_with_argument(self, engine):
        """Alias body is substituted and expanded"""
        out = engine.text_process("Greet = Type $1, Enter\n\n> Greet $1\nhi")
        assert out.split("\n") == ["Type `hi`", "Enter"]

    def test_alias_inline_argument(self, engine):
        """Inline text after an alias name binds as $1"""
        out = engine.text_process("Greet = Type $1, Enter\n\n> Greet world")
        assert out.split("\n") == ["Type `world`", "Enter"]

    def test_bare_alias_consumes_its_arity(self, engine):
        """A bare alias token consumes as many lines as its body references"""
        source = "Pair = Type $1, Tab, Type $2\n\n> Pair\nleft\nright\nShow"
        out = engine.text_process(source)
        assert out.split("\n") == ["Type `left`", "Tab", "Type `right`", "Show"]

    def test_alias_calling_alias(self, engine):
        """Aliases may expand into other aliases"""
        source = "Run = Type $1, Enter\nRunTwice = Run $1, Run $1\n\n> RunTwice $1\nls"
        out = engine.text_process(source)
        assert out.split("\n") == ["Type `ls`", "Enter", "Type `ls`", "Enter"]

    def test_aliases_scoped_to_document(self, engine):
        """An alias from one document is unknown in the next"""
        engine.text_process("Hi = Type $1\n\n> Hi $1\nx")
        out = engine.text_process("> Hi $1\nx")
        assert out == "Hi x"

    def test_alias_shadowing_tape_command_warns(self, engine, warnings_captured):
        """Aliases named like tape commands are reported"""
        engine.text_process("Sleep = Type $1\n\n> Sleep $1\nx")
        assert any("Collision detected" in m and "'Sleep'" in m for m in warnings_captured)


class TestActivation:
    """Use-gated macros"""

    @staticmethod
    def shout(payload, raw_token, args, ctx):
        return [f"Type {payload.upper()}"]

    def test_inactive_macro_is_literal(self, engine):
        """Without Use the invocation passes through as text"""
        engine.macros_register({"Shout": self.shout})
        out = engine.text_process("> Shout $1\nhi")
        assert out == "Shout hi"

    def test_active_macro_expands(self, engine):
        """With Use the same invocation expands"""
        engine.macros_register({"Shout": self.shout})
        out = engine.text_process("Use Shout\n\n> Shout $1\nhi")
        assert out == "Type `HI`"

    def test_always_on_registration(self, engine):
        """require_use=False macros fire without Use"""
        engine.macros_register({"Shout": self.shout}, require_use=False)
        out = engine.text_process("> Shout $1\nhi")
        assert out == "Type `HI`"

    def test_use_is_per_document(self, engine):
        """Activation does not carry over to the next document"""
        engine.macros_register({"Shout": self.shout})
        engine.text_process("Use Shout\n\n> Shout $1\nhi")
        assert engine.text_process("> Shout $1\nhi") == "Shout hi"


class TestMacroResults:
    """Handling of macro return values"""

    def test_recursive_expansion_of_result(self, engine):
        """Tokens returned by a macro are expanded again"""

        @macro_mark(arity=1)
        def Double(payload, raw_token, args, ctx):
            return ["Type $1", "Type $1"]

        engine.macros_register({"Double": Double})
        out = engine.text_process("Use Double\n\n> Double\nfoo")
        assert out.split("\n") == ["Type `foo`", "Type `foo`"]

    def test_unmarked_bare_macro_consumes_nothing(self, engine):
        """Without an arity hint `$N` in a macro's output binds no lines"""

        def Double(payload, raw_token, args, ctx):
            return ["Type $1", "Type $1"]

        engine.macros_register({"Double": Double})
        out = engine.text_process("Use Double\n\n> Double\nfoo")
        assert out.split("\n") == ["Type ``", "Type ``", "foo"]

    def test_own_name_in_result_is_final(self, engine):
        """A result item starting with the macro's name is not re-expanded"""

        def Echo(payload, raw_token, args, ctx):
            return ["Echo done", "Enter"]

        engine.macros_register({"Echo": Echo})
        out = engine.text_process("Use Echo\n\n> Echo")
        assert out.split("\n") == ["Echo done", "Enter"]

    def test_non_list_result_is_empty(self, engine):
        """A macro returning something other than a list emits nothing"""
        engine.macros_register({"Bad": lambda payload, raw, args, ctx: "oops"}, require_use=False)
        assert engine.text_process("> Bad, Enter") == "Enter"

    def test_duplicate_registration_last_wins(self, engine, warnings_captured):
        """Re-registering a name replaces it and warns"""
        engine.macros_register({"M": lambda p, r, a, c: ["Tab"]}, require_use=False)
        engine.macros_register({"M": lambda p, r, a, c: ["Escape"]}, require_use=False)
        assert engine.text_process("> M") == "Escape"
        assert any("Duplicate macro registration for 'M'" in m for m in warnings_captured)

    def test_collision_warning_can_be_disabled(self, warnings_captured):
        """warn_on_macro_collision=False silences duplicate warnings"""
        quiet = engine_create(warn_on_macro_collision=False)
        quiet.macros_register({"Type": type_macro}, require_use=False)
        assert warnings_captured == []

    def test_type_can_be_shadowed(self, engine, warnings_captured):
        """Re-registering Type replaces the built-in and warns"""
        engine.macros_register({"Type": lambda p, r, a, c: ["Type RAW"]}, require_use=False)
        assert engine.text_process("> Type x") == "Type RAW"
        assert any("'Type'" in m for m in warnings_captured)


class TestEngineIsolation:
    """Engines share nothing"""

    def test_registrations_are_per_engine(self):
        """A macro registered on one engine is unknown to another"""
        first = Engine()
        second = Engine()
        first.macros_register({"Only": lambda p, r, a, c: ["Tab"]}, require_use=False)
        assert first.text_process("> Only") == "Tab"
        assert second.text_process("> Only") == "Only"

    def test_helpers_exposed(self, engine):
        """Engine helpers wrap the shared formatting functions"""
        assert engine.helpers.type_format("a") == type_format("a")
        assert engine.helpers.commandBase_get("Sleep 1s") == "Sleep"
