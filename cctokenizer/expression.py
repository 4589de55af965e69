# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the evaluator for the controlling expressions of #if and #elif.
"""
from __future__ import annotations

import collections
import logging

import numpy as np

log = logging.getLogger(__name__)


class EvaluationError(ValueError):
    """
    Represents an expression that cannot be evaluated.
    """


_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

_MASK = (1 << 64) - 1


def _to_int64(value: int) -> np.int64:
    """
    Convert a Python integer to a 64-bit integer with C wrap-around.
    """
    value &= _MASK
    if value >= 1 << 63:
        value -= 1 << 64
    return np.int64(value)


def _to_uint64(value: int) -> np.uint64:
    """
    Convert a Python integer to an unsigned 64-bit integer modulo 2**64.
    """
    return np.uint64(value & _MASK)


def _is_unsigned(value: np.integer) -> bool:
    return isinstance(value, np.unsignedinteger)


class ExpressionEvaluator:
    """
    Evaluates a preprocessor expression, given as a list of token strings,
    with the shunting-yard algorithm.

    Identifiers are expected to have been replaced already (macro expansion
    and defined()); any that remain evaluate to 0, as do calls of them.
    """

    # Operator precedence and associativity.
    # Higher numbers bind more tightly.
    # Based on:
    # https://en.cppreference.com/w/cpp/language/operator_precedence
    OpInfo = collections.namedtuple("OpInfo", ["prec", "assoc"])
    UnaryOperators = {
        "-": OpInfo(12, "RIGHT"),
        "+": OpInfo(12, "RIGHT"),
        "!": OpInfo(12, "RIGHT"),
        "~": OpInfo(12, "RIGHT"),
    }
    BinaryOperators = {
        "?": OpInfo(1, "RIGHT"),
        "||": OpInfo(2, "LEFT"),
        "&&": OpInfo(3, "LEFT"),
        "|": OpInfo(4, "LEFT"),
        "^": OpInfo(5, "LEFT"),
        "&": OpInfo(6, "LEFT"),
        "==": OpInfo(7, "LEFT"),
        "!=": OpInfo(7, "LEFT"),
        "<": OpInfo(8, "LEFT"),
        "<=": OpInfo(8, "LEFT"),
        ">": OpInfo(8, "LEFT"),
        ">=": OpInfo(8, "LEFT"),
        "<<": OpInfo(9, "LEFT"),
        ">>": OpInfo(9, "LEFT"),
        "+": OpInfo(10, "LEFT"),
        "-": OpInfo(10, "LEFT"),
        "*": OpInfo(11, "LEFT"),
        "/": OpInfo(11, "LEFT"),
        "%": OpInfo(11, "LEFT"),
    }

    def __init__(self, tokens: list[str]) -> None:
        self.tokens = tokens

    @staticmethod
    def value(token: str) -> np.integer:
        """
        Convert an integer constant, character constant or identifier to
        its value. Constants with a 'u' suffix are unsigned.

        <term> := [<integer-constant>|<character-constant>|<identifier>]
        """
        if token.startswith("'"):
            if len(token) < 3 or not token.endswith("'"):
                raise EvaluationError(f"Invalid character constant {token}")
            body = token[1:-1]
            if body.startswith("\\"):
                body = _ESCAPES.get(body[1:2], body[1:2])
            return np.int64(ord(body[0]))

        if token[0].isdigit():
            # Strip suffix (if present)
            value = token.rstrip("uUlL")
            suffix = token[len(value) :]

            # Use prefix (if present) to determine base
            bases = {"0x": 16, "0X": 16, "0b": 2, "0B": 2}
            base = bases.get(value[0:2], 10)
            if base != 10:
                value = value[2:]
            elif len(value) > 1 and value[0] == "0":
                base = 8
            try:
                int_value = int(value, base)
            except ValueError:
                raise EvaluationError(f"Invalid integer constant {token}")
            if "u" in suffix.lower():
                return _to_uint64(int_value)
            return _to_int64(int_value)

        if token == "true":
            return np.int64(1)
        if token.isidentifier():
            return np.int64(0)
        raise EvaluationError(f"Unexpected token '{token}'")

    @staticmethod
    def __precedence(entry: tuple[str, str]) -> int:
        kind, op = entry
        if kind == "unary":
            return ExpressionEvaluator.UnaryOperators[op].prec
        return ExpressionEvaluator.BinaryOperators[op].prec

    def __skip_call(self, index: int) -> int:
        """
        Return the index of the ')' closing the argument list that opens at
        `index`.
        """
        depth = 0
        for i in range(index, len(self.tokens)):
            if self.tokens[i] == "(":
                depth += 1
            elif self.tokens[i] == ")":
                depth -= 1
                if depth == 0:
                    return i
        raise EvaluationError("Unterminated function call.")

    def to_postfix(self) -> list[tuple[str, str | np.integer]]:
        """
        Convert the infix token list to postfix order.
        Each entry is a (kind, item) pair where kind is "value", "unary",
        "binary" or "ternary".

        The ternary conditional operator is treated as a special case of a
        right-associative binary operator: "?" is held on the stack until
        its ":" is found, and then becomes a "ternary" entry.
        """
        output: list[tuple[str, str | np.integer]] = []
        stack: list[tuple[str, str]] = []
        expect_operand = True

        i = 0
        while i < len(self.tokens):
            token = self.tokens[i]
            i += 1

            if token == "(":
                if not expect_operand:
                    raise EvaluationError("Unexpected '('.")
                stack.append(("(", token))
                continue

            if token == ")":
                if expect_operand:
                    raise EvaluationError("Unexpected ')'.")
                while stack and stack[-1][0] != "(":
                    if stack[-1][0] == "?":
                        raise EvaluationError("Expected ':'.")
                    output.append(stack.pop())
                if not stack:
                    raise EvaluationError("Mismatched ')'.")
                stack.pop()
                continue

            if expect_operand:
                if token in ExpressionEvaluator.UnaryOperators:
                    stack.append(("unary", token))
                    continue
                if (
                    token.isidentifier()
                    and i < len(self.tokens)
                    and self.tokens[i] == "("
                ):
                    # Any function call that still exists after
                    # substitution evaluates to false
                    i = self.__skip_call(i) + 1
                    output.append(("value", np.int64(0)))
                else:
                    output.append(("value", self.value(token)))
                expect_operand = False
                continue

            if token == ":":
                while stack and stack[-1][0] not in ("(", "?"):
                    output.append(stack.pop())
                if not stack or stack[-1][0] != "?":
                    raise EvaluationError("Unexpected ':'.")
                stack[-1] = ("ternary", "?")
                expect_operand = True
                continue

            if token not in ExpressionEvaluator.BinaryOperators:
                raise EvaluationError(f"Expected an operator, got '{token}'.")

            (prec, assoc) = ExpressionEvaluator.BinaryOperators[token]
            while stack and stack[-1][0] not in ("(", "?"):
                top_prec = self.__precedence(stack[-1])
                if top_prec > prec or (top_prec == prec and assoc == "LEFT"):
                    output.append(stack.pop())
                else:
                    break
            stack.append(("?", token) if token == "?" else ("binary", token))
            expect_operand = True

        if expect_operand:
            raise EvaluationError("Expression ends with an operator.")
        while stack:
            entry = stack.pop()
            if entry[0] == "(":
                raise EvaluationError("Mismatched '('.")
            if entry[0] == "?":
                raise EvaluationError("Expected ':'.")
            output.append(entry)
        return output

    @staticmethod
    def __apply_unary_op(op: str, operand: np.integer) -> np.integer:
        """
        Apply the specified unary operator: op operand
        """
        if op == "-":
            if _is_unsigned(operand):
                return _to_uint64(-int(operand))
            return -operand
        elif op == "+":
            return +operand
        elif op == "!":
            return np.int64(not operand)
        elif op == "~":
            return ~operand
        else:
            raise ValueError("Not a valid unary operator.")

    @staticmethod
    def __divide(lhs: np.int64, rhs: np.int64) -> tuple[np.int64, np.int64]:
        """
        Return the C quotient and remainder (truncated towards zero).
        """
        a, b = int(lhs), int(rhs)
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
        return _to_int64(quotient), _to_int64(a - b * quotient)

    @staticmethod
    def __apply_binary_op(
        op: str,
        lhs: np.integer,
        rhs: np.integer,
    ) -> np.integer:
        """
        Apply the specified binary operator: lhs op rhs

        If either operand is unsigned, both are converted to unsigned
        first, as in C.
        """
        unsigned = _is_unsigned(lhs) or _is_unsigned(rhs)
        wrap = _to_uint64 if unsigned else _to_int64
        if unsigned:
            lhs, rhs = _to_uint64(int(lhs)), _to_uint64(int(rhs))

        if op == "||":
            return np.int64(bool(lhs) or bool(rhs))
        elif op == "&&":
            return np.int64(bool(lhs) and bool(rhs))
        elif op == "|":
            return lhs | rhs
        elif op == "^":
            return lhs ^ rhs
        elif op == "&":
            return lhs & rhs
        elif op == "==":
            return np.int64(lhs == rhs)
        elif op == "!=":
            return np.int64(lhs != rhs)
        elif op == "<":
            return np.int64(lhs < rhs)
        elif op == "<=":
            return np.int64(lhs <= rhs)
        elif op == ">":
            return np.int64(lhs > rhs)
        elif op == ">=":
            return np.int64(lhs >= rhs)
        elif op == "<<":
            return wrap(int(lhs) << (int(rhs) & 63))
        elif op == ">>":
            return wrap(int(lhs) >> (int(rhs) & 63))
        elif op == "+":
            return wrap(int(lhs) + int(rhs))
        elif op == "-":
            return wrap(int(lhs) - int(rhs))
        elif op == "*":
            return wrap(int(lhs) * int(rhs))
        elif op in ("/", "%"):
            # Division by zero is only an error if it is evaluated, and we
            # evaluate both sides of && and ||.
            if rhs == 0:
                log.debug("Division by zero in preprocessor expression.")
                return wrap(0)
            if unsigned:
                quotient, remainder = divmod(int(lhs), int(rhs))
                return wrap(quotient if op == "/" else remainder)
            quotient, remainder = ExpressionEvaluator.__divide(lhs, rhs)
            return quotient if op == "/" else remainder
        else:
            raise ValueError("Not a binary operator.")

    @staticmethod
    def __apply_ternary_op(
        condition: np.integer,
        true_result: np.integer,
        false_result: np.integer,
    ) -> np.integer:
        """
        Apply the conditional operator: condition ? true_result : false_result
        """
        result = true_result if condition else false_result
        if _is_unsigned(true_result) or _is_unsigned(false_result):
            return _to_uint64(int(result))
        return result

    def calculate(self) -> np.integer:
        """
        Evaluate the expression and return its value.
        """
        values: list[np.integer] = []
        with np.errstate(over="ignore"):
            for kind, item in self.to_postfix():
                if kind == "value":
                    values.append(item)  # type: ignore
                elif kind == "unary":
                    if not values:
                        raise EvaluationError("Missing operand.")
                    operand = values.pop()
                    values.append(self.__apply_unary_op(item, operand))  # type: ignore # noqa: E501
                elif kind == "ternary":
                    if len(values) < 3:
                        raise EvaluationError("Missing operand.")
                    false_result = values.pop()
                    true_result = values.pop()
                    condition = values.pop()
                    values.append(
                        self.__apply_ternary_op(
                            condition,
                            true_result,
                            false_result,
                        ),
                    )
                else:
                    if len(values) < 2:
                        raise EvaluationError("Missing operand.")
                    rhs = values.pop()
                    lhs = values.pop()
                    values.append(self.__apply_binary_op(item, lhs, rhs))  # type: ignore # noqa: E501
        if len(values) != 1:
            raise EvaluationError("Could not evaluate expression.")
        return values[0]

    def evaluate(self) -> bool:
        """
        Evaluate a preprocessor expression.
        Return True/False or raise an EvaluationError if the expression is
        not recognized.
        """
        if not self.tokens:
            raise EvaluationError("Empty expression.")
        return bool(self.calculate() != 0)
