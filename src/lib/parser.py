"""
Header parser for .tape.pre sources

Splits a document into its header and body.

The header is scanned top-down; each line is classified in order:
1. Blank line: skipped
2. Comment (`#` or `//`): skipped
3. `Use Name1 Name2 ...`: macro names to activate
4. `Pack spec1 spec2 ...`: packs to load before the body is expanded
5. `Name = Cmd1, Cmd2, ...`: alias macro definition
6. Anything else: first body line, scanning stops

Example:
    >>> header = HeaderParser(["Use Gap", "Hi = Type $1", "", "> Hi $1", "x"]).header_parse()
    >>> header.use_names
    ['Gap']
    >>> header.body_lines
    ['> Hi $1', 'x']
"""

import re
from typing import Any, Callable, Dict, List

from ..models.parser import AliasDefinition, ParsedHeader, UseStatement
from .helpers import aliasMacro_make, headerIssue_report
from .log import LOG

USE_PATTERN = re.compile(r'^\s*Use\b(.*)$')
PACK_PATTERN = re.compile(r'^\s*Pack\b(.*)$')
ALIAS_PATTERN = re.compile(r'^\s*([A-Za-z_]\w*)\s*=\s*(.+)$')
DIRECTIVE_PATTERN = re.compile(r'^\s*>')


def blankLine_is(line: str) -> bool:
    return not line.strip()


def comment_is(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith('#') or stripped.startswith('//')


def directive_is(line: str) -> bool:
    return bool(DIRECTIVE_PATTERN.match(line))


class HeaderParser:
    """
    Parser for the header region of a .tape.pre document

    Handles:
    - `Use` activation declarations
    - `Pack` declarations
    - Alias definitions
    - Severity-configurable reporting of header anomalies
    """

    def __init__(self, lines: List[str], header_validation: str = "off") -> None:
        """
        Initialize parser with document lines

        Args:
            lines: All lines of the document
            header_validation: "off" | "warn" | "error"

        Attributes:
            lines: Document lines
            header_validation: Validation mode for anomalies
            alias_macros: Accumulated alias name -> macro callable
            use_names: Accumulated activated names
            pack_specs: Accumulated pack specs
            header_content: True once a Use/Pack/alias line has been read
        """
        self.lines = lines
        self.header_validation = header_validation
        self.alias_macros: Dict[str, Callable[..., Any]] = {}
        self.use_names: List[str] = []
        self.pack_specs: List[str] = []
        self.header_content = False

    def header_parse(self) -> ParsedHeader:
        """
        Scan the header and return the parsed result

        Returns:
            ParsedHeader with aliases, activations, pack specs and the body

        Raises:
            HeaderValidationError: On header anomalies when validation is "error"
        """
        body_start = len(self.lines)

        for index, line in enumerate(self.lines):
            line_number = index + 1

            if blankLine_is(line) or comment_is(line):
                continue

            if directive_is(line):
                if self.header_content:
                    headerIssue_report(
                        self.header_validation,
                        line_number,
                        "Directive syntax '>' found in header (should be in body after blank line)",
                        line,
                    )
                body_start = index
                break

            use = self.useStatement_parse(line, line_number)
            if use.matched:
                if use.names:
                    self.use_names.extend(use.names)
                    self.header_content = True
                continue

            if self.packStatement_parse(line, line_number):
                continue

            alias = self.alias_parse(line, line_number)
            if alias.matched:
                if alias.name and alias.macro:
                    self.alias_macros[alias.name] = alias.macro
                    self.header_content = True
                continue

            if '=' in line:
                headerIssue_report(
                    self.header_validation,
                    line_number,
                    "Malformed alias definition (expected: Name = Cmd1, Cmd2, ...)",
                    line,
                )

            # Anything else: header ends here
            body_start = index
            break

        LOG(
            f"Header: {len(self.alias_macros)} aliases, {len(self.use_names)} activations, "
            f"body starts at line {body_start + 1}",
            level=3,
        )

        return ParsedHeader(
            alias_macros=self.alias_macros,
            use_names=self.use_names,
            pack_specs=self.pack_specs,
            body_lines=self.lines[body_start:],
            body_start_index=body_start,
        )

    def useStatement_parse(self, line: str, line_number: int) -> UseStatement:
        """
        Read a `Use Name1 Name2 ...` line

        Args:
            line: Line text
            line_number: 1-based line number for reporting

        Returns:
            UseStatement; matched with no names for an empty `Use`
        """
        match = USE_PATTERN.match(line)
        if not match:
            return UseStatement(matched=False)

        names = match.group(1).split()
        if not names:
            headerIssue_report(
                self.header_validation,
                line_number,
                "'Use' requires at least one macro name",
                line,
            )
        return UseStatement(matched=True, names=names)

    def packStatement_parse(self, line: str, line_number: int) -> bool:
        """Read a `Pack spec ...` line; returns True if the line was one"""
        match = PACK_PATTERN.match(line)
        if not match:
            return False

        specs = match.group(1).split()
        if not specs:
            headerIssue_report(
                self.header_validation,
                line_number,
                "'Pack' requires at least one pack name or path",
                line,
            )
            return True

        self.pack_specs.extend(specs)
        self.header_content = True
        return True

    def alias_parse(self, line: str, line_number: int) -> AliasDefinition:
        """
        Read an alias definition `Name = Cmd1, Cmd2, ...`

        Args:
            line: Line text
            line_number: 1-based line number for reporting

        Returns:
            AliasDefinition; matched with no macro when the body is empty
        """
        match = ALIAS_PATTERN.match(line)
        if not match:
            return AliasDefinition(matched=False)

        name = match.group(1)
        body = [part.strip() for part in match.group(2).split(',') if part.strip()]

        if not body:
            headerIssue_report(
                self.header_validation,
                line_number,
                "Alias has empty body (expected: Name = Cmd1, Cmd2, ...)",
                line,
            )
            return AliasDefinition(matched=True)

        return AliasDefinition(matched=True, name=name, macro=aliasMacro_make(name, body))
