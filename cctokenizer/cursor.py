# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the character cursor that owns the text buffer being tokenized.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CursorState:
    """
    Represents a snapshot of the cursor, used to roll back tentative
    operations (undo, peek and nesting checkpoints).
    """

    position: int
    line_number: int
    nest_level: int


class Cursor:
    """
    A mutable text buffer with a read position.

    The buffer may be rewritten in place (see `splice`) when macro usages are
    expanded. The position is always between 0 and len(buffer), inclusive.
    """

    def __init__(self, text: str = "", line_number: int = 1) -> None:
        self.buffer = text
        self.pos = 0
        self.line_number = line_number
        self.nest_level = 0

    def current_char(self) -> str:
        """
        Return the character at the cursor, or "" at the end of the buffer.
        """
        if self.pos < len(self.buffer):
            return self.buffer[self.pos]
        return ""

    def next_char(self) -> str:
        """
        Return the character after the cursor, or "" if there is none.
        """
        if self.pos + 1 < len(self.buffer):
            return self.buffer[self.pos + 1]
        return ""

    def previous_char(self) -> str:
        """
        Return the character before the cursor, or "" if there is none.
        """
        if 0 < self.pos <= len(self.buffer):
            return self.buffer[self.pos - 1]
        return ""

    def advance(self) -> str:
        """
        Return the current character and move the cursor past it.
        Crossing a newline increments the line number.
        """
        c = self.current_char()
        if c:
            if c == "\n":
                self.line_number += 1
            self.pos += 1
        return c

    def is_end_of_buffer(self) -> bool:
        """
        Return True when the cursor has reached the end of the buffer.
        """
        return self.pos >= len(self.buffer)

    def snapshot(self) -> CursorState:
        return CursorState(self.pos, self.line_number, self.nest_level)

    def restore(self, state: CursorState) -> None:
        self.pos = min(state.position, len(self.buffer))
        self.line_number = state.line_number
        self.nest_level = state.nest_level

    def splice(self, begin: int, end: int, text: str) -> None:
        """
        Replace the region [begin, end) of the buffer with `text` and move
        the cursor to `begin`.

        Parameters
        ----------
        begin: int
            The first offset of the region to replace.

        end: int
            The offset one past the last character of the region.

        text: str
            The replacement text.
        """
        if not 0 <= begin <= end <= len(self.buffer):
            raise ValueError(
                f"Invalid splice region [{begin}, {end}) for buffer of "
                + f"length {len(self.buffer)}.",
            )
        self.buffer = self.buffer[:begin] + text + self.buffer[end:]
        self.pos = begin

    def is_escaped_char(self) -> bool:
        """
        Return True if the current character is preceded by an odd number
        of backslashes.
        """
        count = 0
        index = self.pos - 1
        while index >= 0 and self.buffer[index] == "\\":
            count += 1
            index -= 1
        return count % 2 == 1

    def is_backslash_before_eol(self) -> bool:
        """
        Return True if the newline at the cursor is escaped, i.e. the line
        ends with a backslash (DOS and Unix line endings).
        """
        last = self.previous_char()
        if last == "\r" and self.pos >= 2:
            return self.buffer[self.pos - 2] == "\\"
        return last == "\\"
