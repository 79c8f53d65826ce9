"""
First-party packs

Each module exposes `setup(context)` and is loaded through
prevhs.lib.packloader by name (`builtins`, `typingStyles`,
`emojiShortcuts`, `probe`).
"""
