# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
A best-effort tokenizer for C/C++ source code, for use by code indexers.

The tokenizer expands macro usages in place and skips branches of
conditional preprocessor groups that are not taken, so that a parser built
on top of it sees the code that a compiler would.
"""
from cctokenizer.scan import ScannedToken, scan, scan_files
from cctokenizer.skipper import TokenizerState
from cctokenizer.symbols import (
    DefinitionError,
    MacroDefinition,
    SymbolTable,
    macro_from_definition_string,
)
from cctokenizer.tokenizer import Tokenizer, TokenizerOptions

__version__ = "0.1.0"

__all__ = [
    "DefinitionError",
    "MacroDefinition",
    "ScannedToken",
    "SymbolTable",
    "Tokenizer",
    "TokenizerOptions",
    "TokenizerState",
    "macro_from_definition_string",
    "scan",
    "scan_files",
]
