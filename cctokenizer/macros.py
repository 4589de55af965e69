# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the macro expander, which rewrites macro usages in the tokenizer's
buffer so that the expanded text is lexed in their place.
"""
from __future__ import annotations

import logging
import typing
from dataclasses import dataclass

from cctokenizer.search import get_first_token_position
from cctokenizer.skipper import TokenizerState, one_space_line
from cctokenizer.symbols import MacroDefinition

if typing.TYPE_CHECKING:
    from cctokenizer.tokenizer import Tokenizer

log = logging.getLogger(__name__)


@dataclass
class ExpandedMacro:
    """
    Records that the buffer region [begin, end) resulted from expanding
    `macro`.
    """

    begin: int
    end: int
    macro: MacroDefinition


def _flatten(text: str) -> str:
    """
    Join continued lines and replace line endings with spaces, so that
    lexing expanded text does not change the line number.
    """
    for ending in ("\\\r\n", "\\\n", "\r\n", "\n", "\r"):
        text = text.replace(ending, " ")
    return text


class MacroExpander:
    """
    Detects macro usages and performs backward substitution in the buffer
    of a Tokenizer.

    Expansions are recorded most recent first. A macro is never expanded
    again while the cursor is still inside text produced by expanding it,
    which stops recursive definitions such as:

        #define X Y
        #define Y X
    """

    def __init__(self, tokenizer: Tokenizer, *, max_depth: int = 200) -> None:
        self.tokenizer = tokenizer
        self.expanded: list[ExpandedMacro] = []
        # Prevent runaway expansion of long macro chains.
        self.max_depth = max_depth

    def reset(self) -> None:
        self.expanded = []

    def is_expanding(self, macro: MacroDefinition) -> bool:
        """
        Return True if the cursor is inside text produced by `macro`.
        """
        return any(record.macro is macro for record in self.expanded)

    def pop_finished(self, position: int) -> None:
        """
        Forget the expansions that the cursor has moved past.
        """
        while self.expanded and self.expanded[0].end < position:
            self.expanded.pop(0)

    def check_macro_usage_and_replace(self, lexeme: str, begin: int) -> bool:
        """
        Expand `lexeme` if it is a macro usage.

        Parameters
        ----------
        lexeme: str
            An identifier that has just been lexed.

        begin: int
            The offset of the identifier in the buffer.

        Returns
        -------
        bool
            True if the buffer was rewritten and the cursor moved back to
            `begin`, False if the identifier is a plain token.
        """
        macro = self.tokenizer.symbols.get_macro(lexeme)
        if macro is None:
            return False

        if self.is_expanding(macro):
            log.debug(f"Not expanding '{lexeme}' inside its own expansion")
            return False

        if len(self.expanded) >= self.max_depth:
            log.warning(
                f"{self.tokenizer.filename}:{self.tokenizer.line_number}: "
                + f"macro expansion of '{lexeme}' exceeds depth "
                + f"{self.max_depth}",
            )
            return False

        if macro.is_function_like:
            saved = self.tokenizer.snapshot()
            arguments = self.split_arguments()
            if arguments is None:
                self.tokenizer.restore(saved)
                return False
            text = self.get_macro_expanded_text(macro, arguments)
        else:
            text = macro.replacement

        return self.replace_buffer_text(text, macro, begin)

    def split_arguments(self) -> list[str] | None:
        """
        Read the argument list of a function-like macro usage.

        The cursor is expected at the opening '(' or at blanks before it:

            ..... ABC  ( xxx, yyy ) zzz .....
                     ^ cursor

        Arguments are separated by top-level commas only; brackets inside an
        argument are kept. On success the cursor is left after the ')'.
        Within a directive, the list ends at the end of the directive's
        line.

        Returns
        -------
        list[str] | None
            The stripped arguments (["xxx", "yyy"] above), [] for an empty
            list, or None if there is no complete argument list.
        """
        tk = self.tokenizer
        single_line = TokenizerState.RAW_EXPRESSION in tk.state
        if single_line:
            while (
                tk.skip_whitespace()
                or tk.skip_escaped_newline()
                or tk.skip_comment(store=False)
            ):
                pass
        else:
            tk.skip_blanks(store=False)
        if tk.current_char() != "(":
            return None
        tk.advance()

        arguments: list[str] = []
        current = one_space_line()
        level = 0
        while not tk.is_end_of_buffer():
            c = tk.current_char()
            if single_line and c in ("\r", "\n"):
                break
            if tk.skip_escaped_newline():
                current.append_space()
                continue
            if c in ('"', "'"):
                begin = tk.pos
                tk.skip_string_or_char_literal(c)
                current.append_nonspace(tk.buffer[begin : tk.pos])
                continue
            if tk.skip_comment(store=False):
                current.append_space()
                continue

            tk.advance()
            if c.isspace():
                current.append_space()
            elif c == "," and level == 0:
                arguments.append(current.flush())
            elif c == ")" and level == 0:
                arguments.append(current.flush())
                if arguments == [""]:
                    return []
                return arguments
            else:
                if c in "([{":
                    level += 1
                elif c in ")]}":
                    level -= 1
                current.append_nonspace(c)

        log.debug("Unterminated macro argument list.")
        return None

    def get_macro_expanded_text(
        self,
        macro: MacroDefinition,
        arguments: list[str],
    ) -> str:
        """
        Substitute `arguments` for the parameters of `macro` in its
        replacement text.

        Missing arguments are replaced by empty text; surplus arguments of a
        variadic macro are joined into its last parameter.
        """
        parameters = macro.parameters or []
        if len(arguments) != len(parameters) and not (
            macro.variadic and len(arguments) >= len(parameters) - 1
        ):
            log.debug(
                f"Macro '{macro.name}' expects {len(parameters)} "
                + f"argument(s), got {len(arguments)}",
            )

        values = {}
        for index, name in enumerate(parameters):
            if macro.variadic and index == len(parameters) - 1:
                values[name] = ", ".join(arguments[index:])
            elif index < len(arguments):
                values[name] = arguments[index]
            else:
                values[name] = ""

        text = macro.replacement
        out = []
        pos = 0
        while parameters:
            # Substitute the leftmost parameter occurrence first, so that
            # substituted text is never searched again.
            best = None
            for name in parameters:
                found = get_first_token_position(text[pos:], name)
                if found != -1 and (best is None or found < best[0]):
                    best = (found, name)
            if best is None:
                break
            offset, name = best
            out.append(text[pos : pos + offset])
            out.append(values[name])
            pos += offset + len(name)
        out.append(text[pos:])
        return "".join(out)

    def replace_buffer_text(
        self,
        text: str,
        macro: MacroDefinition | None,
        begin: int,
    ) -> bool:
        """
        Replace the macro usage that ends at the cursor and starts at `begin`
        with `text`, and move the cursor back to `begin` so that the new
        text is lexed next:

            xxxxxxxxxAAAA(u,v)yyyyyyyyy
                     ^        ^ cursor (before)
            xxxxxxxxxNNNNNNNNNNNNNNNyyyyyyyyy
                     ^ cursor (after)

        If `macro` is given, the new region is recorded so that `macro` is
        not expanded again inside it.
        """
        tk = self.tokenizer
        end = tk.pos
        text = _flatten(text)
        tk.splice(begin, end, text)

        delta = len(text) - (end - begin)
        new_end = begin + len(text)
        for record in self.expanded:
            if record.end >= end:
                record.end += delta
            elif record.end > begin:
                record.end = new_end

        if macro is not None:
            self.expanded.insert(0, ExpandedMacro(begin, new_end, macro))
        return True
