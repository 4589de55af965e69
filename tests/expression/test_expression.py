# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import unittest

import numpy as np

from cctokenizer.expression import EvaluationError, ExpressionEvaluator


def evaluate(text):
    return ExpressionEvaluator(text.split()).evaluate()


def calculate(text):
    return int(ExpressionEvaluator(text.split()).calculate())


class TestExpressionEvaluator(unittest.TestCase):
    """
    Test ExpressionEvaluator class.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def test_values(self):
        """Check integer and character constants"""
        self.assertEqual(ExpressionEvaluator.value("10"), 10)
        self.assertEqual(ExpressionEvaluator.value("0x1F"), 31)
        self.assertEqual(ExpressionEvaluator.value("0b101"), 5)
        self.assertEqual(ExpressionEvaluator.value("017"), 15)
        self.assertEqual(ExpressionEvaluator.value("42UL"), 42)
        self.assertEqual(ExpressionEvaluator.value("'a'"), 97)
        self.assertEqual(ExpressionEvaluator.value("'\\n'"), 10)
        self.assertEqual(ExpressionEvaluator.value("true"), 1)
        self.assertEqual(ExpressionEvaluator.value("UNKNOWN"), 0)

        with self.assertRaises(EvaluationError):
            ExpressionEvaluator.value("1.5")

        with self.assertRaises(EvaluationError):
            ExpressionEvaluator.value("@")

    def test_precedence(self):
        """Check operator precedence and associativity"""
        self.assertEqual(calculate("1 + 2 * 3"), 7)
        self.assertEqual(calculate("( 1 + 2 ) * 3"), 9)
        self.assertEqual(calculate("10 - 4 - 3"), 3)
        self.assertEqual(calculate("1 << 2 + 1"), 8)
        self.assertEqual(calculate("- 2 * 3"), -6)
        self.assertEqual(calculate("! 0 + 1"), 2)
        self.assertEqual(calculate("~ 0"), -1)
        self.assertEqual(calculate("1 | 2 ^ 3 & 1"), 3)

    def test_comparisons(self):
        """Check comparison and logical operators"""
        self.assertTrue(evaluate("2 > 1 && 1 >= 1"))
        self.assertTrue(evaluate("1 < 2 || 0"))
        self.assertFalse(evaluate("1 == 2"))
        self.assertTrue(evaluate("1 != 2"))
        self.assertTrue(evaluate("- 1 < 0"))

    def test_division(self):
        """Check C semantics of division"""
        self.assertEqual(calculate("7 / 2"), 3)
        self.assertEqual(calculate("- 7 / 2"), -3)
        self.assertEqual(calculate("- 7 % 2"), -1)
        self.assertEqual(calculate("1 / 0"), 0)
        self.assertFalse(evaluate("0 && 1 / 0"))

    def test_overflow(self):
        """Check 64-bit wrap-around"""
        self.assertEqual(calculate("0x7FFFFFFFFFFFFFFF + 1"), -(2**63))
        self.assertEqual(calculate("0xFFFFFFFFFFFFFFFF"), -1)

    def test_conditional_operator(self):
        """Check the conditional operator"""
        self.assertEqual(calculate("1 ? 2 : 3"), 2)
        self.assertEqual(calculate("0 ? 2 : 3"), 3)
        self.assertEqual(calculate("0 ? 1 : 0 ? 2 : 3"), 3)
        self.assertEqual(calculate("1 ? 0 ? 4 : 5 : 6"), 5)
        self.assertEqual(calculate("1 || 0 ? 7 : 8 + 1"), 7)
        self.assertEqual(calculate("( 0 ? 1 : 2 ) * 3"), 6)

        for text in ["1 ? 2", "1 : 2", "( 1 ? 2 ) : 3", "1 ? : 2"]:
            with self.subTest(text=text):
                with self.assertRaises(EvaluationError):
                    evaluate(text)

    def test_calls(self):
        """Check calls of unknown functions evaluate to 0"""
        self.assertEqual(calculate("__has_feature ( x ) + 1"), 1)
        self.assertTrue(evaluate("! __has_builtin ( f ( a , b ) )"))
        with self.assertRaises(EvaluationError):
            evaluate("f ( 1")

    def test_unsigned(self):
        """Check unsigned constants and conversions"""
        self.assertIsInstance(ExpressionEvaluator.value("1u"), np.uint64)
        self.assertIsInstance(ExpressionEvaluator.value("1ULL"), np.uint64)
        self.assertIsInstance(ExpressionEvaluator.value("1L"), np.int64)
        self.assertTrue(evaluate("- 1 > 0u"))
        self.assertFalse(evaluate("- 1 > 0"))
        self.assertEqual(calculate("0u - 1"), 2**64 - 1)
        self.assertEqual(calculate("- 1u"), 2**64 - 1)
        self.assertEqual(calculate("0xFFFFFFFFFFFFFFFFu / 2"), 2**63 - 1)
        self.assertEqual(calculate("1 ? 1u : - 1"), 1)
        self.assertEqual(calculate("0 ? 1u : - 1"), 2**64 - 1)

    def test_invalid(self):
        """Check malformed expressions"""
        for text in ["", "1 +", "( 1", "1 )", "1 2", "* 1", "( )"]:
            with self.subTest(text=text):
                with self.assertRaises(EvaluationError):
                    evaluate(text)


if __name__ == "__main__":
    unittest.main()
