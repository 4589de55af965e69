# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the classes that select which branch of a conditional
preprocessor group (#if ... #elif ... #else ... #endif) is lexed.
"""
from __future__ import annotations

import logging
import typing
from enum import Enum

from cctokenizer.expression import EvaluationError, ExpressionEvaluator
from cctokenizer.skipper import TokenizerState

if typing.TYPE_CHECKING:
    from cctokenizer.tokenizer import Tokenizer

log = logging.getLogger(__name__)


class PreprocessorType(Enum):
    IF = 1
    IFDEF = 2
    IFNDEF = 3
    ELIF = 4
    ELIFDEF = 5
    ELIFNDEF = 6
    ELSE = 7
    ENDIF = 8
    OTHER = 9

    def is_start(self) -> bool:
        return self in _STARTS

    def is_continuation(self) -> bool:
        return self in _CONTINUATIONS


_DIRECTIVES = {
    "if": PreprocessorType.IF,
    "ifdef": PreprocessorType.IFDEF,
    "ifndef": PreprocessorType.IFNDEF,
    "elif": PreprocessorType.ELIF,
    "elifdef": PreprocessorType.ELIFDEF,
    "elifndef": PreprocessorType.ELIFNDEF,
    "else": PreprocessorType.ELSE,
    "endif": PreprocessorType.ENDIF,
}

_STARTS = (
    PreprocessorType.IF,
    PreprocessorType.IFDEF,
    PreprocessorType.IFNDEF,
)

_CONTINUATIONS = (
    PreprocessorType.ELIF,
    PreprocessorType.ELIFDEF,
    PreprocessorType.ELIFNDEF,
    PreprocessorType.ELSE,
)


class ConditionalEvaluator:
    """
    Handles conditional directives met by a Tokenizer.

    Keeps one boolean per open #if group, recording whether one of the
    group's branches has been taken. Rejected branches are skipped in the
    tokenizer's buffer.
    """

    def __init__(self, tokenizer: Tokenizer) -> None:
        self.tokenizer = tokenizer
        self.branch_taken: list[bool] = []

    def reset(self) -> None:
        self.branch_taken = []

    def classify_directive(self) -> PreprocessorType:
        """
        Classify the directive that starts with '#' at the cursor.

        For a conditional directive the cursor is left after its name.
        For any other directive (OTHER) the cursor is left on the '#'.
        """
        tk = self.tokenizer
        saved = tk.snapshot()
        tk.advance()
        tk.skip_whitespace()
        kind = _DIRECTIVES.get(tk.read_identifier(), PreprocessorType.OTHER)
        if kind is PreprocessorType.OTHER:
            tk.restore(saved)
        return kind

    def handle_directive(self, kind: PreprocessorType) -> None:
        """
        Act on a conditional directive whose name has just been read, and
        leave the cursor at the next text that should be lexed.
        """
        tk = self.tokenizer
        if kind.is_start():
            result = self.evaluate(kind)
            self.branch_taken.append(result)
            if not result:
                self.skip_to_next_conditional_branch()
            return

        if not self.branch_taken:
            log.debug(
                f"{tk.filename}:{tk.line_number}: "
                + f"#{kind.name.lower()} without #if",
            )
            tk.skip_to_end_of_line()
            return

        if kind is PreprocessorType.ENDIF:
            tk.skip_to_end_of_line()
            self.branch_taken.pop()
        elif self.branch_taken[-1]:
            # A previous branch of this group was taken.
            self.skip_to_matching_endif()
        elif kind is PreprocessorType.ELSE:
            tk.skip_to_end_of_line()
            self.branch_taken[-1] = True
        elif self.evaluate(kind):
            self.branch_taken[-1] = True
        else:
            self.skip_to_next_conditional_branch()

    def evaluate(self, kind: PreprocessorType) -> bool:
        """
        Evaluate the condition of an #if-family directive whose name has
        just been read. The cursor is left at the end of the line.
        """
        tk = self.tokenizer
        if kind in (PreprocessorType.IF, PreprocessorType.ELIF):
            return self.calc_condition_expression()

        result = self.is_macro_defined()
        tk.skip_to_end_of_line()
        if kind in (PreprocessorType.IFNDEF, PreprocessorType.ELIFNDEF):
            return not result
        return result

    def is_macro_defined(self) -> bool:
        """
        Read an identifier, optionally in parentheses, and return True if it
        names a known macro.
        """
        tk = self.tokenizer
        tk.skip_whitespace()
        parenthesized = tk.current_char() == "("
        if parenthesized:
            tk.advance()
            tk.skip_whitespace()
        name = tk.read_identifier()
        if parenthesized:
            tk.skip_whitespace()
            if tk.current_char() == ")":
                tk.advance()
        return tk.symbols.has_macro(name)

    def calc_condition_expression(self) -> bool:
        """
        Lex the rest of the directive line, expanding macro usages in the
        buffer, and evaluate it. The cursor is left at the end of the line.

        An expression that cannot be evaluated is treated as false.
        """
        tk = self.tokenizer
        saved_state = tk.state
        tk.state = TokenizerState.RAW_EXPRESSION | TokenizerState.SKIP_NONE

        # Expansion changes the length of the line but not of what follows.
        start = tk.snapshot()
        tk.skip_to_end_of_line()
        tail = len(tk.buffer) - tk.pos
        tk.restore(start)

        tokens = []
        while True:
            tk.skip_whitespace()
            if tk.skip_comment(store=False):
                continue
            if tk.pos >= len(tk.buffer) - tail:
                break
            if tk.current_char() in ("\\", "\r", "\n"):
                # Line continuation
                tk.advance()
                continue

            begin = tk.pos
            is_identifier = tk.lex()
            lexeme = tk.lexeme
            tk.expander.pop_finished(tk.pos)
            if not is_identifier:
                tokens.append(lexeme)
            elif lexeme == "defined":
                tokens.append("1" if self.is_macro_defined() else "0")
            elif not tk.expander.check_macro_usage_and_replace(lexeme, begin):
                tokens.append(lexeme)

        tk.state = saved_state
        tk.pos = len(tk.buffer) - tail

        try:
            return ExpressionEvaluator(tokens).evaluate()
        except EvaluationError as e:
            log.warning(
                f"{tk.filename}:{tk.line_number}: could not evaluate "
                + f"'{' '.join(tokens)}' ({e}); assuming false",
            )
            return False

    def __skip_conditional_lines(self, stop_at_branch: bool) -> None:
        """
        Skip whole lines, tracking nested groups, until a directive of the
        current group is found.

        If `stop_at_branch` is True, stop on the '#' of the next #elif,
        #elifdef, #elifndef, #else or #endif.
        Otherwise, consume the group's #endif and close the group.
        """
        tk = self.tokenizer
        depth = 0
        while not tk.is_end_of_buffer():
            while tk.skip_whitespace() or tk.skip_comment(store=False):
                pass
            if tk.current_char() == "#":
                directive = tk.snapshot()
                kind = self.classify_directive()
                if kind.is_start():
                    depth += 1
                elif depth > 0 and kind is PreprocessorType.ENDIF:
                    depth -= 1
                elif depth == 0 and kind is PreprocessorType.ENDIF:
                    if stop_at_branch:
                        tk.restore(directive)
                    else:
                        tk.skip_to_end_of_line()
                        self.branch_taken.pop()
                    return
                elif depth == 0 and kind.is_continuation() and stop_at_branch:
                    tk.restore(directive)
                    return
            tk.skip_to_end_of_line()
            tk.advance()

        log.debug(f"{tk.filename}: unterminated conditional group")

    def skip_to_next_conditional_branch(self) -> None:
        """
        Skip a rejected branch up to the next #elif, #else or #endif of the
        same group; nested groups are skipped whole.
        """
        self.__skip_conditional_lines(stop_at_branch=True)

    def skip_to_matching_endif(self) -> None:
        """
        Skip the remaining branches of a group whose taken branch has been
        lexed, including the terminating #endif.
        """
        self.__skip_conditional_lines(stop_at_branch=False)
