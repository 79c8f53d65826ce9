"""
Test pack loaded by file path

Registers FixtureEcho, which types its payload followed by an optional
suffix taken from the pack options.
"""


def setup(context):
    suffix = context.options.get("suffix", "")

    def FixtureEcho(payload="", raw_token="", args=None, ctx=None):
        return [context.helpers.type_format(f"{payload}{suffix}")]

    context.macros_register({"FixtureEcho": FixtureEcho})
