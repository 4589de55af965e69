# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains classes that define:
- Macro definitions read by the tokenizer
- The symbol table that owns macro definitions and indexed tokens
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from cctokenizer.skipper import Skipper

log = logging.getLogger(__name__)


def _representation_string(
    obj: Any,
    *,
    name: str | None = None,
    attrs: list[str] | None = None,
) -> str:
    """
    Helper function to build representation strings of the form:
    Name(attribute={attribute!r},...)
    """
    if not name:
        name = obj.__class__.__name__
    if not attrs:
        attrs = list(obj.__dict__)
    properties = ",".join(f"{a}={getattr(obj, a)!r}" for a in attrs)
    return f"{name}({properties})"


class DefinitionError(ValueError):
    """
    Represents an error encountered while parsing a macro definition.
    """


@dataclass(eq=False)
class MacroDefinition:
    """
    Represents a macro definition.

    Object-like macros have no parameter list (`parameters` is None).
    A trailing "..." parameter makes a function-like macro variadic; an
    unnamed variable argument is renamed to __VA_ARGS__.
    """

    name: str
    parameters: list[str] | None = None
    replacement: str = ""
    variadic: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.parameters:
            last = self.parameters[-1]
            if last.endswith("..."):
                self.variadic = True
                if last == "...":
                    last = "__VA_ARGS__"
                else:
                    last = last[:-3]
                self.parameters = self.parameters[:-1] + [last]

    def __repr__(self) -> str:
        return _representation_string(
            self,
            attrs=["name", "parameters", "replacement"],
        )

    @property
    def is_function_like(self) -> bool:
        return self.parameters is not None

    def spelling(self) -> list[str]:
        """
        Return (a list containing) a string with a lexable representation of
        this macro.
        """
        if self.parameters is None:
            return [f"{self.name}={self.replacement}"]
        args = list(self.parameters)
        if self.variadic:
            if args[-1] == "__VA_ARGS__":
                args[-1] = "..."
            else:
                args[-1] += "..."
        return [f"{self.name}({','.join(args)})={self.replacement}"]


def _valid_parameter(parameter: str) -> bool:
    if parameter == "...":
        return True
    if parameter.endswith("..."):
        parameter = parameter[:-3]
    return parameter.isidentifier()


def macro_from_directive(body: str) -> MacroDefinition:
    """
    Construct a MacroDefinition from the body of a #define directive, i.e.
    the text that follows "define".

    <define-macro>    := <identifier><replacement>?
    <define-function> := <identifier>'('<identifier-list>?')'<replacement>?

    Whitespace is NOT permitted between the name of a function-like macro
    and its opening parenthesis.
    """
    cursor = Skipper(body.strip())
    name = cursor.read_identifier()
    if not name:
        raise DefinitionError(f"Invalid macro name in '{body}'.")

    parameters = None
    if cursor.current_char() == "(":
        end = cursor.buffer.find(")", cursor.pos)
        if end == -1:
            raise DefinitionError(f"Unterminated parameter list in '{body}'.")
        text = cursor.buffer[cursor.pos + 1 : end]
        if text.strip():
            parameters = [p.strip() for p in text.split(",")]
        else:
            parameters = []
        if not all(_valid_parameter(p) for p in parameters):
            raise DefinitionError(f"Invalid parameter list in '{body}'.")
        if any(p.endswith("...") for p in parameters[:-1]):
            raise DefinitionError(
                f"'...' must be the last parameter in '{body}'.",
            )
        cursor.pos = end + 1

    replacement = cursor.buffer[cursor.pos :].strip()
    return MacroDefinition(name, parameters, replacement)


def macro_from_definition_string(string: str) -> MacroDefinition:
    """
    Construct a MacroDefinition by parsing a string of the form
    MACRO=expansion (as passed to a compiler with -D).
    A definition without "=" expands to 1.
    """
    head, sep, value = string.partition("=")
    macro = macro_from_directive(head)
    if macro.replacement:
        raise DefinitionError(f"Invalid definition string '{string}'.")
    if sep:
        macro.replacement = value.strip()
    else:
        macro.replacement = "1"
    return macro


class SymbolTable:
    """
    Represents the symbols known while indexing a code base, including:
    - Active macro definitions
    - Tokens reported by the parser, and their documentation

    The tokenizer only reads macro definitions and reports documentation.
    """

    @dataclass
    class TokenRecord:
        """
        Stores what the symbol table knows about an indexed token.
        """

        name: str
        filename: str
        line: int
        documentation: str = ""

    def __init__(self, *, defines: list[str] | None = None) -> None:
        self._definitions: dict[str, MacroDefinition] = {}
        self._tokens: list[SymbolTable.TokenRecord] = []

        if defines is None:
            return
        if not isinstance(defines, list) or not all(
            [isinstance(d, str) for d in defines],
        ):
            raise TypeError("'defines' must be a list of strings.")
        for definition in defines:
            self.define(macro_from_definition_string(definition))

    def define(self, macro: MacroDefinition) -> None:
        """
        Define a macro, as if the parser encountered #define.
        If the macro is already defined, has no effect.

        Parameters
        ----------
        macro: MacroDefinition
            The macro to define.
        """
        if macro.name not in self._definitions:
            self._definitions[macro.name] = macro
        else:
            log.debug(f"Ignoring redefinition of macro '{macro.name}'")

    def undefine(self, name: str) -> None:
        """
        Undefine a previously defined macro.

        Parameters
        ----------
        name: str
            The name of the macro.
        """
        if name in self._definitions:
            del self._definitions[name]

    def get_macro(self, name: str) -> MacroDefinition | None:
        """
        Returns
        -------
        MacroDefinition | None
            The macro associated with `name`, or None.
        """
        return self._definitions.get(name)

    def has_macro(self, name: str) -> bool:
        """
        Returns
        -------
        bool
            True if `name` is defined and False otherwise.
        """
        return name in self._definitions

    def add_token(self, name: str, filename: str, line: int) -> int:
        """
        Record a token and return its index.
        """
        self._tokens.append(SymbolTable.TokenRecord(name, filename, line))
        return len(self._tokens) - 1

    def token_at(self, index: int) -> SymbolTable.TokenRecord:
        return self._tokens[index]

    def append_documentation(
        self,
        index: int,
        filename: str,
        doc: str,
    ) -> None:
        """
        Attach documentation to the token at `index`.
        Documentation from several comments is separated by a newline.
        """
        if not 0 <= index < len(self._tokens):
            log.debug(f"{filename}: no token #{index} to document")
            return
        record = self._tokens[index]
        if record.documentation:
            record.documentation += "\n" + doc
        else:
            record.documentation = doc

    def get_documentation(self, index: int) -> str:
        """
        Returns
        -------
        str
            The documentation attached to the token at `index`, or "".
        """
        if 0 <= index < len(self._tokens):
            return self._tokens[index].documentation
        return ""
