# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

import logging
import tempfile
import unittest
from pathlib import Path

from cctokenizer.scan import ScannedToken, scan, scan_files
from cctokenizer.symbols import SymbolTable
from cctokenizer.tokenizer import Tokenizer, TokenizerOptions


class TestScan(unittest.TestCase):
    """
    Test scan and scan_files.
    """

    @classmethod
    def setUpClass(self):
        logging.disable()

    def test_definitions(self):
        """Check #define and #undef update the symbol table"""
        symbols = SymbolTable()
        tokenizer = Tokenizer(symbols)
        tokenizer.init_from_buffer(
            "#define TYPE unsigned \\\n  long\n"
            + "#define MAX(a, b) ((a) > (b) ? (a) : (b))\n"
            + "#include <stdio.h>\n"
            + "TYPE x;\n"
            + "#undef TYPE\n"
            + "TYPE y;\n",
        )
        tokens = scan(tokenizer)
        self.assertEqual(
            [t.text for t in tokens],
            ["unsigned", "long", "x", ";", "TYPE", "y", ";"],
        )
        self.assertEqual(tokens[0], ScannedToken("unsigned", 5, 0))
        self.assertEqual(tokens[-1].line, 7)
        self.assertFalse(symbols.has_macro("TYPE"))
        self.assertEqual(symbols.get_macro("MAX").parameters, ["a", "b"])

    def test_invalid_definition(self):
        """Check invalid definitions are skipped"""
        symbols = SymbolTable()
        tokenizer = Tokenizer(symbols)
        tokenizer.init_from_buffer("#define 1X 2\nint a;\n")
        tokens = scan(tokenizer)
        self.assertEqual([t.text for t in tokens], ["int", "a", ";"])

    def test_conditional_definitions(self):
        """Check definitions in rejected branches are ignored"""
        symbols = SymbolTable(defines=["LINUX"])
        tokenizer = Tokenizer(symbols)
        tokenizer.init_from_buffer(
            "#ifdef LINUX\n#define OS 1\n#else\n#define OS 2\n#endif\n"
            + "#if OS == 1\nlinux\n#endif\n",
        )
        tokens = scan(tokenizer)
        self.assertEqual([t.text for t in tokens], ["linux"])
        self.assertEqual(symbols.get_macro("OS").replacement, "1")

    def test_directive_literals(self):
        """Check comment markers in directive literals"""
        symbols = SymbolTable()
        tokenizer = Tokenizer(symbols)
        tokenizer.init_from_buffer(
            '#include "a/*b"\nint x;\n'
            + '#error "x // y" /* c */\nint y;\n'
            + '#define OPEN "/*"\nint z;\n',
        )
        tokens = scan(tokenizer)
        self.assertEqual(
            [t.text for t in tokens],
            ["int", "x", ";", "int", "y", ";", "int", "z", ";"],
        )
        self.assertEqual(tokens[-1].line, 6)
        self.assertEqual(symbols.get_macro("OPEN").replacement, '"/*"')

    def test_nest_level(self):
        """Check the nesting level is reported with each token"""
        tokenizer = Tokenizer(SymbolTable())
        tokenizer.init_from_buffer("struct A {\n  int x;\n};\n")
        tokens = scan(tokenizer)
        self.assertEqual(
            [(t.text, t.nest_level) for t in tokens],
            [
                ("struct", 0),
                ("A", 0),
                ("{", 1),
                ("int", 1),
                ("x", 1),
                (";", 1),
                ("}", 0),
                (";", 0),
            ],
        )

    def test_documentation(self):
        """Check documentation is attached to identifiers"""
        symbols = SymbolTable()
        options = TokenizerOptions(store_documentation=True)
        tokenizer = Tokenizer(symbols, options=options)
        tokenizer.init_from_buffer("/** Counter. */\ncounter; ///< Unused.\n")
        scan(tokenizer)
        record = symbols.token_at(0)
        self.assertEqual(record.name, "counter")
        self.assertEqual(record.line, 2)
        self.assertEqual(record.documentation, "Counter.\nUnused.")

    def test_scan_files(self):
        """Check macros are shared between files"""
        with tempfile.TemporaryDirectory() as tmp:
            header = Path(tmp) / "config.h"
            source = Path(tmp) / "main.c"
            missing = Path(tmp) / "missing.c"
            with open(header, "w") as f:
                f.write("#define REAL double\n")
            with open(source, "w") as f:
                f.write("REAL value;\n")

            results = scan_files([header, missing, source])
            self.assertEqual(list(results), [str(header), str(source)])
            self.assertEqual(results[str(header)], [])
            self.assertEqual(
                [t.text for t in results[str(source)]],
                ["double", "value", ";"],
            )


if __name__ == "__main__":
    unittest.main()
