# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the Tokenizer, which produces one token string at a time from a
C/C++ buffer, expanding macro usages and skipping rejected branches of
conditional preprocessor groups on the way.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from cctokenizer.conditional import ConditionalEvaluator, PreprocessorType
from cctokenizer.cursor import CursorState
from cctokenizer.loader import FileLoader
from cctokenizer.macros import ExpandedMacro, MacroExpander
from cctokenizer.skipper import Skipper, TokenizerState
from cctokenizer.symbols import SymbolTable

log = logging.getLogger(__name__)

# Longest first, so that the first match is the maximal munch.
_OPERATORS = [
    "->*",
    "...",
    "<<=",
    ">>=",
    "::",
    "->",
    "++",
    "--",
    "<<",
    ">>",
    "<=",
    ">=",
    "==",
    "!=",
    "&&",
    "||",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "##",
]


@dataclass
class _Checkpoint:
    """
    The lexing state that a lookahead or an undo must roll back: the
    cursor, the open conditional groups and the live macro expansions.
    """

    cursor: CursorState
    branch_taken: list[bool] = field(default_factory=list)
    expanded: list[ExpandedMacro] = field(default_factory=list)


@dataclass
class TokenizerOptions:
    """
    Options controlling how a Tokenizer treats directives and comments.
    """

    want_preprocessor: bool = True
    store_documentation: bool = False

    def __post_init__(self) -> None:
        for name in ["want_preprocessor", "store_documentation"]:
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"'{name}' must be a bool.")


class Tokenizer(Skipper):
    """
    A lexer for C/C++ source that performs best-effort macro expansion and
    conditional preprocessing.

    The buffer is either loaded from a file (see `init`) or supplied as a
    string (see `init_from_buffer`). The main interface is `get_token`,
    which consumes a token, and `peek_token`, which looks ahead; a peeked
    token is cached until the next `get_token`.
    """

    def __init__(
        self,
        symbols: SymbolTable,
        filename: str | os.PathLike[str] = "",
        *,
        options: TokenizerOptions | None = None,
        loader: Any = None,
    ) -> None:
        super().__init__()
        if symbols is None:
            raise TypeError("'symbols' must be a SymbolTable.")
        if options is None:
            options = TokenizerOptions()
        elif not isinstance(options, TokenizerOptions):
            raise TypeError("'options' must be a TokenizerOptions.")

        self.symbols = symbols
        self.options = options
        self.loader = loader
        self.expander = MacroExpander(self)
        self.conditional = ConditionalEvaluator(self)
        self._filename = str(filename)
        self.__base_init()

        if self._filename:
            self.init()

    def __base_init(self) -> None:
        self.buffer = ""
        self.pos = 0
        self.line_number = 1
        self.nest_level = 0
        self.state = TokenizerState.skip_unwanted()
        self.lexeme = ""
        self.token = ""
        self._ready = False
        self._undo: _Checkpoint | None = None
        self._current: _Checkpoint | None = None
        self._peek: tuple[str, _Checkpoint] | None = None
        self._nesting_checkpoint: CursorState | None = None
        self._next_doc = ""
        self._last_token_index = -1
        self.expander.reset()
        self.conditional.reset()

    @property
    def filename(self) -> str:
        return self._filename

    def is_ready(self) -> bool:
        """
        Return True if the buffer was loaded and tokens can be read.
        """
        return self._ready

    def init(
        self,
        filename: str | os.PathLike[str] | None = None,
        loader: Any = None,
    ) -> bool:
        """
        Load the buffer from `filename` through `loader` (a FileLoader by
        default). The loader's text is copied, so the loader can be dropped
        afterwards.

        Returns
        -------
        bool
            True if the buffer was loaded.
        """
        self.__base_init()
        if filename is not None:
            self._filename = str(filename)
        if loader is not None:
            self.loader = loader
        if not self._filename:
            log.debug("No file to tokenize.")
            return False

        if self.loader is None:
            self.loader = FileLoader()
        text = self.loader.load(self._filename)
        if text is None:
            return False

        self.buffer = text
        self._ready = True
        return True

    def init_from_buffer(
        self,
        text: str,
        filename: str | os.PathLike[str] = "",
        init_line_number: int = 1,
    ) -> bool:
        """
        Use `text` as the buffer.

        Parameters
        ----------
        text: str
            The text to tokenize.

        filename: str, default: ""
            The file the text comes from.

        init_line_number: int, default: 1
            The line number of the first line of `text`, e.g. when parsing
            a function body taken from a larger file.
        """
        if not isinstance(text, str):
            raise TypeError("'text' must be a string.")
        self.__base_init()
        self.buffer = text
        self._filename = str(filename)
        self.line_number = init_line_number
        self._ready = True
        return True

    def set_options(
        self,
        want_preprocessor: bool,
        store_documentation: bool,
    ) -> None:
        self.options = TokenizerOptions(want_preprocessor, store_documentation)

    def is_skipping_unwanted_tokens(self) -> bool:
        return self.state == TokenizerState.skip_unwanted()

    def get_token(self) -> str:
        """
        Consume and return the next token, or "" at the end of the buffer.
        """
        if not self._ready:
            return ""

        self._undo = self.__checkpoint()
        if self._peek is not None:
            self.token, checkpoint = self._peek
            self.__rollback(checkpoint)
            self._peek = None
        else:
            self.token = self.__do_get_token()
        self._current = self.__checkpoint()
        return self.token

    def peek_token(self) -> str:
        """
        Return the next token without consuming it.
        """
        if not self._ready:
            return ""

        if self._peek is None:
            saved = self.__checkpoint()
            token = self.__do_get_token()
            self._peek = (token, self.__checkpoint())
            self.__rollback(saved)
        return self._peek[0]

    def unget_token(self) -> None:
        """
        Undo the last get_token. Only one level of undo is supported; with
        nothing to undo, this has no effect.
        """
        if self._undo is None or self._current is None:
            return
        if self._undo.cursor == self.snapshot():
            return
        # A lookahead may have run directives since, so the state right
        # after the undone token is restored from its checkpoint.
        self._peek = (self.token, self._current)
        self.__rollback(self._undo)
        self._undo = None
        self._current = None

    def __checkpoint(self) -> _Checkpoint:
        return _Checkpoint(
            self.snapshot(),
            list(self.conditional.branch_taken),
            list(self.expander.expanded),
        )

    def __rollback(self, checkpoint: _Checkpoint) -> None:
        self.restore(checkpoint.cursor)
        self.conditional.branch_taken = list(checkpoint.branch_taken)
        self.expander.expanded = list(checkpoint.expanded)

    def save_nesting_level(self) -> None:
        """
        Checkpoint the brace nesting level, e.g. before parsing a function
        body whose braces should not affect the enclosing scope.
        """
        self._nesting_checkpoint = self.snapshot()

    def restore_nesting_level(self) -> None:
        if self._nesting_checkpoint is not None:
            self.nest_level = self._nesting_checkpoint.nest_level

    def set_last_token_index(self, index: int) -> None:
        """
        Report that the last token read was recorded in the symbol table at
        `index` (-1 if it was not recorded).
        Documentation read before the token is attached to it.
        """
        self._last_token_index = index
        if index != -1 and self._next_doc:
            self.symbols.append_documentation(
                index,
                self.filename,
                self._next_doc,
            )
        self._next_doc = ""

    def _want_documentation(self) -> bool:
        return self.options.store_documentation

    def _store_documentation(self, doc: str, trailing: bool) -> None:
        """
        A trailing comment (///< or /**<) documents the last recorded
        token; any other documents the next one.
        """
        if trailing:
            if self._last_token_index != -1:
                self.symbols.append_documentation(
                    self._last_token_index,
                    self.filename,
                    doc,
                )
        elif self._next_doc:
            self._next_doc += "\n" + doc
        else:
            self._next_doc = doc

    def skip_unwanted(self) -> bool:
        """
        Skip blanks, comments, conditional directives and (depending on the
        state) unwanted constructs.
        Return False if the end of the buffer was reached.
        """
        while not self.is_end_of_buffer():
            self.skip_blanks()
            if self.is_end_of_buffer():
                break
            if self.current_char() == "#" and self.options.want_preprocessor:
                kind = self.conditional.classify_directive()
                if kind is not PreprocessorType.OTHER:
                    self.conditional.handle_directive(kind)
                    continue
                return True
            if self.skip_unwanted_construct():
                continue
            return True
        return False

    def __do_get_token(self) -> str:
        """
        Lex the next token, re-lexing as long as macro usages are expanded.
        """
        while True:
            if not self.skip_unwanted():
                return ""
            begin = self.pos
            is_identifier = self.lex()
            self.expander.pop_finished(self.pos)
            if is_identifier and self.expander.check_macro_usage_and_replace(
                self.lexeme,
                begin,
            ):
                continue
            return self.lexeme

    def __read_number(self) -> None:
        """
        Read a preprocessing number.

        <exponent> := ['e'|'E'|'p'|'P']['+'|'-']
        <number> := .?<digit>[<alpha>|<digit>|'_'|'.'|<exponent>]*
        """
        self.pos += 1
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c in "eEpP" and self.next_char() in ("+", "-"):
                self.pos += 2
            elif c.isalnum() or c in ("_", "."):
                self.pos += 1
            elif c == "'" and self.next_char().isalnum():
                # C++14 digit separator
                self.pos += 1
            else:
                break

    def lex(self) -> bool:
        """
        Read one lexeme at the cursor into `self.lexeme`.
        Return True if it is identifier-shaped, and so may be a macro usage.
        """
        begin = self.pos
        c = self.current_char()
        is_identifier = False

        if not c:
            pass
        elif c.isalpha() or c == "_":
            self.read_identifier()
            is_identifier = True
        elif c.isdigit() or (c == "." and self.next_char().isdigit()):
            self.__read_number()
        elif c in ('"', "'"):
            self.skip_string_or_char_literal(c)
        elif c == "(" and TokenizerState.RAW_EXPRESSION not in self.state:
            self.lexeme = self.read_parenthesized_region()
            return False
        elif c == "<" and TokenizerState.SINGLE_ANGLE_BRACE in self.state:
            self.skip_balanced_block("<")
        else:
            for op in _OPERATORS:
                if self.buffer.startswith(op, self.pos):
                    self.pos += len(op)
                    break
            else:
                self.advance()

            if c == "{":
                self.nest_level += 1
            elif c == "}":
                if self.nest_level > 0:
                    self.nest_level -= 1
                else:
                    log.debug(
                        f"{self.filename}:{self.line_number}: "
                        + "unbalanced '}'",
                    )

        self.lexeme = self.buffer[begin : self.pos]
        return is_identifier
