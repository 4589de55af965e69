# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains classes and functions for skipping whitespace, comments, literals
and bracketed blocks in C/C++ source text, as well as reading the remainder
of a directive line.
"""
from __future__ import annotations

import logging
from enum import Flag

from cctokenizer.cursor import Cursor

log = logging.getLogger(__name__)

_WHITESPACE = " \t\f\v"
_MATCHING = {"(": ")", "[": "]", "{": "}", "<": ">"}


class TokenizerState(Flag):
    """
    Selects which constructs the tokenizer skips wholesale.
    Flags combine with |; SKIP_NONE disables every skip flag it is
    combined with.
    """

    SKIP_EQUAL = 0x0001
    SKIP_QUESTION = 0x0002
    SKIP_SUBSCRIPT = 0x0004
    SINGLE_ANGLE_BRACE = 0x0008
    RAW_EXPRESSION = 0x0010
    SKIP_NONE = 0x1000

    @classmethod
    def skip_unwanted(cls) -> TokenizerState:
        """
        Skip initializers, ternary branches and subscripts.
        """
        return cls.SKIP_EQUAL | cls.SKIP_QUESTION | cls.SKIP_SUBSCRIPT

    @classmethod
    def template_argument(cls) -> TokenizerState:
        """
        Skip unwanted constructs and keep <...> together as one lexeme.
        """
        return cls.skip_unwanted() | cls.SINGLE_ANGLE_BRACE


class one_space_line:
    """
    A container that builds a single line of text while merging all
    whitespace into a single space.
    """

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.trailing_space = False

    def append_space(self) -> None:
        """
        Append whitespace, unless the line is empty, already ends in a space
        or ends with an opening parenthesis.
        """
        if self.parts and not self.trailing_space and self.parts[-1] != "(":
            self.parts.append(" ")
            self.trailing_space = True

    def append_nonspace(self, text: str) -> None:
        self.parts.append(text)
        self.trailing_space = False

    def append_closing(self, text: str) -> None:
        """
        Append a closing parenthesis, dropping any space before it.
        """
        if self.trailing_space:
            self.parts.pop()
        self.append_nonspace(text)

    def flush(self) -> str:
        """
        Convert the parts to a string and reset the buffer.
        """
        res = "".join(self.parts).rstrip(" ")
        self.parts = []
        self.trailing_space = False
        return res


class Skipper(Cursor):
    """
    A Cursor that knows how to move over text that is not a token.
    """

    def __init__(
        self,
        text: str = "",
        line_number: int = 1,
        state: TokenizerState | None = None,
    ) -> None:
        super().__init__(text, line_number)
        if state is None:
            state = TokenizerState.skip_unwanted()
        self.state = state

    def _want_documentation(self) -> bool:
        """
        Return True if documentation comments should be captured.
        Return False by default.
        """
        return False

    def _store_documentation(self, doc: str, trailing: bool) -> None:
        """
        Receive the text of a documentation comment.
        Does nothing by default.
        """

    def is_skip_active(self, flag: TokenizerState) -> bool:
        """
        Return True if `flag` is set and not disabled by SKIP_NONE.
        """
        disabled = TokenizerState.SKIP_NONE in self.state
        return flag in self.state and not disabled

    def skip_whitespace(self) -> bool:
        """
        Skip spaces and tabs (not newlines).
        Return True if the cursor moved.
        """
        start = self.pos
        while self.current_char() and self.current_char() in _WHITESPACE:
            self.pos += 1
        return self.pos != start

    def skip_to_char(self, ch: str) -> bool:
        """
        Move the cursor to the next occurrence of `ch`.
        Return False if the end of the buffer was reached instead.
        """
        while not self.is_end_of_buffer() and self.current_char() != ch:
            self.advance()
        return not self.is_end_of_buffer()

    def skip_line_comment(self) -> bool:
        """
        Skip a C++ comment starting at the cursor.
        The cursor stops on the terminating newline, not past it.
        """
        while True:
            self.skip_to_char("\n")
            if self.is_end_of_buffer() or not self.is_backslash_before_eol():
                break
            self.advance()
        return True

    def skip_block_comment(self) -> bool:
        """
        Skip a C comment starting at the cursor.
        The cursor stops just after the closing */.
        """
        self.pos += 2
        while not self.is_end_of_buffer():
            if self.current_char() == "*" and self.next_char() == "/":
                self.pos += 2
                return True
            self.advance()
        log.debug("Unterminated block comment.")
        return True

    def skip_comment(self, store: bool = True) -> bool:
        """
        Skip a C or C++ comment, if there is one at the cursor.
        Return True if a comment was skipped.

        When `store` is True and documentation is wanted, the text of a
        Doxygen comment is passed on to _store_documentation.
        """
        if self.current_char() != "/" or self.next_char() not in ("/", "*"):
            return False
        begin = self.pos
        c_style = self.next_char() == "*"
        if c_style:
            self.skip_block_comment()
        else:
            self.skip_line_comment()

        if store and self._want_documentation():
            comment = self.buffer[begin : self.pos]
            self.__capture_documentation(comment, c_style)
        return True

    def __capture_documentation(self, text: str, c_style: bool) -> None:
        marker = text[2:3]
        if c_style:
            is_doc = marker == "!" or (marker == "*" and text[3:4] != "/")
            body = text[3:-2] if text.endswith("*/") else text[3:]
        else:
            is_doc = marker == "!" or (marker == "/" and text[3:4] != "/")
            body = text[3:]
        if not is_doc:
            return

        trailing = body.startswith("<")
        if trailing:
            body = body[1:]

        lines = []
        for line in body.splitlines():
            line = line.strip()
            if line.startswith("*"):
                line = line[1:].strip()
            lines.append(line)
        doc = "\n".join(lines).strip()
        if doc:
            self._store_documentation(doc, trailing)

    def skip_blanks(self, store: bool = True) -> bool:
        """
        Skip whitespace, newlines and comments.
        Return True if the cursor moved.
        """
        start = self.pos
        while not self.is_end_of_buffer():
            if self.skip_whitespace():
                continue
            if self.current_char() in ("\r", "\n"):
                self.advance()
                continue
            if self.skip_comment(store):
                continue
            break
        return self.pos != start

    def skip_string_or_char_literal(self, quote: str) -> bool:
        """
        Skip a string or character literal opened by `quote` at the cursor.
        The cursor stops just after the closing quote.
        Return False if the literal is unterminated.
        """
        self.advance()
        while not self.is_end_of_buffer():
            if self.current_char() == quote and not self.is_escaped_char():
                self.advance()
                return True
            self.advance()
        log.debug(f"Unterminated literal starting with {quote}")
        return False

    def skip_balanced_block(self, open_char: str) -> bool:
        """
        Skip a bracketed block opened by `open_char` at the cursor, honoring
        nested blocks of the same kind, literals and comments.
        The cursor stops just after the matching closing character.
        Return False if the block is unterminated.
        """
        close_char = _MATCHING[open_char]
        self.advance()
        level = 1
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c in ('"', "'"):
                self.skip_string_or_char_literal(c)
                continue
            if self.skip_comment(store=False):
                continue
            if c == open_char:
                level += 1
            elif c == close_char:
                level -= 1
                if level == 0:
                    self.advance()
                    return True
            self.advance()
        log.debug(f"Unterminated block starting with {open_char}")
        return False

    def skip_to_one_of(self, chars: str) -> bool:
        """
        Move the cursor to the next character in `chars` that is not nested
        inside a bracketed block, literal or comment.
        Return False if the end of the buffer was reached instead.
        """
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c in chars:
                return True
            if c in ('"', "'"):
                self.skip_string_or_char_literal(c)
            elif self.skip_comment(store=False):
                continue
            elif c in ("(", "[", "{"):
                self.skip_balanced_block(c)
            else:
                self.advance()
        return False

    def skip_unwanted_construct(self) -> bool:
        """
        Skip an initializer, ternary branch or subscript at the cursor,
        depending on the active state.
        Return True if something was skipped.
        """
        c = self.current_char()
        if (
            c == "="
            and self.next_char() != "="
            and self.is_skip_active(TokenizerState.SKIP_EQUAL)
        ):
            self.skip_to_one_of(",;}")
            return True
        if c == "?" and self.is_skip_active(TokenizerState.SKIP_QUESTION):
            self.skip_to_one_of(";}")
            return True
        if c == "[" and self.is_skip_active(TokenizerState.SKIP_SUBSCRIPT):
            self.skip_balanced_block("[")
            return True
        return False

    def skip_to_end_of_line(self) -> None:
        """
        Move the cursor to the end of the logical line, honoring backslash
        continuations and comments that span lines.
        Comment markers inside literals are not comments.
        The cursor stops on the terminating newline.
        """
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c == "\n":
                if not self.is_backslash_before_eol():
                    return
                self.advance()
            elif c in ('"', "'"):
                self.__skip_literal_on_line(c)
            elif c == "/" and self.next_char() == "*":
                self.skip_block_comment()
            elif c == "/" and self.next_char() == "/":
                self.skip_line_comment()
            else:
                self.advance()

    def __skip_literal_on_line(self, quote: str) -> None:
        """
        Skip a literal opened by `quote` at the cursor, stopping after the
        closing quote or on the unescaped newline that ends the line.
        A lone quote, e.g. in "#error Don't", does not run past the line.
        """
        self.advance()
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c == "\n" and not self.is_backslash_before_eol():
                return
            if c == quote and not self.is_escaped_char():
                self.advance()
                return
            self.advance()

    def skip_escaped_newline(self) -> bool:
        """
        Skip a backslash followed by a line ending, if there is one.
        """
        if self.current_char() != "\\":
            return False
        end = self.pos + 1
        if self.buffer[end : end + 1] == "\r":
            end += 1
        if self.buffer[end : end + 1] != "\n":
            return False
        while self.pos <= end:
            self.advance()
        return True

    def read_to_end_of_line(self, strip_redundant: bool = True) -> str:
        """
        Return the text from the cursor to the end of the logical line.
        The cursor stops on the terminating newline.

        When `strip_redundant` is True, comments and line continuations are
        removed and runs of whitespace collapse to a single space.
        """
        if not strip_redundant:
            begin = self.pos
            self.skip_to_end_of_line()
            return self.buffer[begin : self.pos]

        self.skip_whitespace()
        line = one_space_line()
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c == "\n":
                break
            if self.skip_escaped_newline() or self.skip_comment(store=False):
                line.append_space()
            elif c in ('"', "'"):
                begin = self.pos
                self.__skip_literal_on_line(c)
                line.append_nonspace(self.buffer[begin : self.pos])
            elif c in _WHITESPACE or c == "\r":
                self.advance()
                line.append_space()
            else:
                self.advance()
                line.append_nonspace(c)
        return line.flush()

    def read_parenthesized_region(self) -> str:
        """
        Return the balanced parenthesized region that starts at the next
        non-blank character, including both parentheses.
        Whitespace is collapsed and comments are removed.
        Return "" (and leave the cursor alone) if the region does not start
        with '('.
        """
        saved = self.snapshot()
        while not self.is_end_of_buffer() and self.current_char().isspace():
            self.advance()
        if self.current_char() != "(":
            self.restore(saved)
            return ""

        line = one_space_line()
        level = 0
        while not self.is_end_of_buffer():
            c = self.current_char()
            if c in ('"', "'"):
                begin = self.pos
                self.skip_string_or_char_literal(c)
                line.append_nonspace(self.buffer[begin : self.pos])
            elif self.skip_escaped_newline():
                line.append_space()
            elif self.skip_comment(store=False):
                line.append_space()
            elif c.isspace():
                self.advance()
                line.append_space()
            elif c == ")":
                self.advance()
                line.append_closing(c)
                level -= 1
                if level == 0:
                    break
            else:
                if c == "(":
                    level += 1
                self.advance()
                line.append_nonspace(c)

        if level != 0:
            log.debug("Unterminated parenthesized region.")
        return line.flush()

    def read_identifier(self) -> str:
        """
        Read an identifier at the cursor, and return "" if there is none.
        """
        begin = self.pos
        c = self.current_char()
        if c and (c.isalpha() or c == "_"):
            while not self.is_end_of_buffer():
                c = self.current_char()
                if not (c.isalnum() or c == "_"):
                    break
                self.pos += 1
        return self.buffer[begin : self.pos]
