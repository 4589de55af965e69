# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import unittest

from cctokenizer.skipper import Skipper, TokenizerState, one_space_line


class DocumentingSkipper(Skipper):
    """
    Skipper that records the documentation it is given.
    """

    def __init__(self, text):
        super().__init__(text)
        self.docs = []

    def _want_documentation(self):
        return True

    def _store_documentation(self, doc, trailing):
        self.docs.append((doc, trailing))


class TestSkipper(unittest.TestCase):
    """
    Test Skipper class.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def test_state(self):
        """Check state presets and SKIP_NONE"""
        skipper = Skipper("x")
        self.assertEqual(skipper.state, TokenizerState.skip_unwanted())
        self.assertTrue(skipper.is_skip_active(TokenizerState.SKIP_EQUAL))
        self.assertFalse(
            skipper.is_skip_active(TokenizerState.SINGLE_ANGLE_BRACE),
        )

        skipper.state = TokenizerState.template_argument()
        self.assertTrue(
            skipper.is_skip_active(TokenizerState.SINGLE_ANGLE_BRACE),
        )

        skipper.state = (
            TokenizerState.skip_unwanted() | TokenizerState.SKIP_NONE
        )
        self.assertFalse(skipper.is_skip_active(TokenizerState.SKIP_EQUAL))

    def test_whitespace(self):
        """Check skip_whitespace stops at newlines"""
        skipper = Skipper(" \t\f\v\nx")
        self.assertTrue(skipper.skip_whitespace())
        self.assertEqual(skipper.current_char(), "\n")
        self.assertFalse(skipper.skip_whitespace())

    def test_line_comment(self):
        """Check skip_line_comment stops on the newline"""
        skipper = Skipper("// comment\nx")
        self.assertTrue(skipper.skip_line_comment())
        self.assertEqual(skipper.current_char(), "\n")
        self.assertEqual(skipper.line_number, 1)

        skipper = Skipper("// comment \\\n continued\nx")
        skipper.skip_line_comment()
        self.assertEqual(skipper.buffer[skipper.pos + 1], "x")
        self.assertEqual(skipper.line_number, 2)

        skipper = Skipper("// no newline")
        skipper.skip_line_comment()
        self.assertTrue(skipper.is_end_of_buffer())

    def test_block_comment(self):
        """Check skip_block_comment stops after */"""
        skipper = Skipper("/* a\n * b */x")
        self.assertTrue(skipper.skip_block_comment())
        self.assertEqual(skipper.current_char(), "x")
        self.assertEqual(skipper.line_number, 2)

        skipper = Skipper("/**/x")
        skipper.skip_block_comment()
        self.assertEqual(skipper.current_char(), "x")

        skipper = Skipper("/* unterminated")
        skipper.skip_block_comment()
        self.assertTrue(skipper.is_end_of_buffer())

    def test_skip_comment(self):
        """Check skip_comment only skips comments"""
        skipper = Skipper("/ 2")
        self.assertFalse(skipper.skip_comment())
        self.assertEqual(skipper.pos, 0)

        skipper = Skipper("/* a */ // b\nx")
        self.assertTrue(skipper.skip_blanks())
        self.assertEqual(skipper.current_char(), "x")
        self.assertEqual(skipper.line_number, 2)

    def test_literals(self):
        """Check string and character literals"""
        skipper = Skipper('"a\\"b" x')
        self.assertTrue(skipper.skip_string_or_char_literal('"'))
        self.assertEqual(skipper.current_char(), " ")

        skipper = Skipper("'\\\\' x")
        self.assertTrue(skipper.skip_string_or_char_literal("'"))
        self.assertEqual(skipper.current_char(), " ")

        skipper = Skipper('"unterminated')
        self.assertFalse(skipper.skip_string_or_char_literal('"'))
        self.assertTrue(skipper.is_end_of_buffer())

    def test_balanced_block(self):
        """Check nested blocks, literals and comments inside blocks"""
        skipper = Skipper("[a[1] + ']' /* ] */] x")
        self.assertTrue(skipper.skip_balanced_block("["))
        self.assertEqual(skipper.current_char(), " ")
        self.assertEqual(skipper.next_char(), "x")

        skipper = Skipper("<vector<int>> x")
        skipper.skip_balanced_block("<")
        self.assertEqual(skipper.buffer[: skipper.pos], "<vector<int>>")

        skipper = Skipper("(a")
        self.assertFalse(skipper.skip_balanced_block("("))

    def test_unwanted_construct(self):
        """Check initializers, ternary branches and subscripts"""
        skipper = Skipper("= f(a, b), c;")
        self.assertTrue(skipper.skip_unwanted_construct())
        self.assertEqual(skipper.buffer[skipper.pos :], ", c;")

        skipper = Skipper("== 1")
        self.assertFalse(skipper.skip_unwanted_construct())

        skipper = Skipper("? a : b;")
        self.assertTrue(skipper.skip_unwanted_construct())
        self.assertEqual(skipper.current_char(), ";")

        skipper = Skipper("[N][M];")
        self.assertTrue(skipper.skip_unwanted_construct())
        self.assertEqual(skipper.current_char(), "[")

        skipper = Skipper("= 1;", state=TokenizerState.SKIP_NONE)
        self.assertFalse(skipper.skip_unwanted_construct())

    def test_end_of_line(self):
        """Check continuations and comments at the end of a line"""
        skipper = Skipper("a \\\n b /* \n */ c // d\nx")
        skipper.skip_to_end_of_line()
        self.assertEqual(skipper.current_char(), "\n")
        self.assertEqual(skipper.next_char(), "x")
        self.assertEqual(skipper.line_number, 3)

        skipper = Skipper("a  \\\n  b /* c */  \"d  e\" // f\nx")
        self.assertEqual(skipper.read_to_end_of_line(), 'a b "d  e"')
        self.assertEqual(skipper.current_char(), "\n")

        skipper = Skipper("a  b\nx")
        self.assertEqual(skipper.read_to_end_of_line(False), "a  b")

    def test_end_of_line_literals(self):
        """Check comment markers inside literals at the end of a line"""
        for text in ['s = "/*";\nx', "c = '/'; // d\nx", '"a // b"\nx']:
            with self.subTest(text=text):
                skipper = Skipper(text)
                skipper.skip_to_end_of_line()
                self.assertEqual(skipper.current_char(), "\n")
                self.assertEqual(skipper.next_char(), "x")
                self.assertEqual(skipper.line_number, 1)

        # A lone quote ends with the line.
        skipper = Skipper("Don't /* stop\nx */")
        skipper.skip_to_end_of_line()
        self.assertEqual(skipper.next_char(), "x")
        self.assertEqual(skipper.line_number, 1)

        skipper = Skipper('"x" "a  /* b */"  c // d\nx')
        self.assertEqual(skipper.read_to_end_of_line(), '"x" "a  /* b */" c')
        self.assertEqual(skipper.current_char(), "\n")

    def test_parenthesized_region(self):
        """Check reading a parenthesized region"""
        skipper = Skipper("  ( a,\n  (b ) /* c */ ) x")
        self.assertEqual(skipper.read_parenthesized_region(), "(a, (b))")
        self.assertEqual(skipper.current_char(), " ")
        self.assertEqual(skipper.line_number, 2)

        skipper = Skipper("x (a)")
        self.assertEqual(skipper.read_parenthesized_region(), "")
        self.assertEqual(skipper.pos, 0)

    def test_identifier(self):
        """Check reading identifiers"""
        skipper = Skipper("_a1+b")
        self.assertEqual(skipper.read_identifier(), "_a1")
        self.assertEqual(skipper.read_identifier(), "")
        self.assertEqual(skipper.current_char(), "+")

    def test_documentation(self):
        """Check Doxygen comments are captured"""
        skipper = DocumentingSkipper(
            "/** block */ /*! bang */ /// line\n//! line bang\n"
            + "///< trailing\n/* plain */ // plain\n/***/ //// rule\n",
        )
        skipper.skip_blanks()
        self.assertTrue(skipper.is_end_of_buffer())
        self.assertEqual(
            skipper.docs,
            [
                ("block", False),
                ("bang", False),
                ("line", False),
                ("line bang", False),
                ("trailing", True),
            ],
        )

        skipper = DocumentingSkipper("/**\n * first\n * second\n */")
        skipper.skip_blanks()
        self.assertEqual(skipper.docs, [("first\nsecond", False)])

        skipper = DocumentingSkipper("/// ignored\n")
        skipper.skip_blanks(store=False)
        self.assertEqual(skipper.docs, [])


class TestOneSpaceLine(unittest.TestCase):
    """
    Test one_space_line class.
    """

    def test_spaces(self):
        """Check whitespace is merged"""
        line = one_space_line()
        line.append_space()
        line.append_nonspace("f")
        line.append_space()
        line.append_space()
        line.append_nonspace("(")
        line.append_space()
        line.append_nonspace("a")
        line.append_space()
        line.append_closing(")")
        line.append_space()
        self.assertEqual(line.flush(), "f (a)")
        self.assertEqual(line.flush(), "")


if __name__ == "__main__":
    unittest.main()
