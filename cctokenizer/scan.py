# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains functions that drive a Tokenizer over whole files, recording
macro definitions and identifiers in a SymbolTable.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass

from tqdm import tqdm

from cctokenizer.symbols import (
    DefinitionError,
    SymbolTable,
    macro_from_directive,
)
from cctokenizer.tokenizer import Tokenizer, TokenizerOptions

log = logging.getLogger(__name__)


@dataclass
class ScannedToken:
    """
    A token returned by the tokenizer, with the line it ends on and the
    brace nesting level after it.
    """

    text: str
    line: int
    nest_level: int


def _handle_directive(tokenizer: Tokenizer) -> None:
    """
    Handle a directive whose '#' has just been read. Definitions update the
    symbol table; any other directive line is skipped.
    """
    name = tokenizer.get_token()
    if name == "define":
        body = tokenizer.read_to_end_of_line()
        try:
            tokenizer.symbols.define(macro_from_directive(body))
        except DefinitionError as e:
            log.warning(f"{tokenizer.filename}:{tokenizer.line_number}: {e}")
    elif name == "undef":
        tokenizer.skip_whitespace()
        tokenizer.symbols.undefine(tokenizer.read_identifier())
        tokenizer.skip_to_end_of_line()
    elif name:
        tokenizer.skip_to_end_of_line()


def scan(tokenizer: Tokenizer) -> list[ScannedToken]:
    """
    Read every token of an initialized Tokenizer.

    Identifiers are recorded in the tokenizer's symbol table, so that
    documentation comments are attached to them.

    Returns
    -------
    list[ScannedToken]
        The tokens, excluding directives.
    """
    tokens = []
    last_line = 0
    while True:
        token = tokenizer.get_token()
        if not token:
            break

        line = tokenizer.line_number
        starts_line = line != last_line
        last_line = line

        if token == "#" and starts_line:
            _handle_directive(tokenizer)
            last_line = tokenizer.line_number
            continue

        if token.isidentifier():
            index = tokenizer.symbols.add_token(
                token,
                tokenizer.filename,
                line,
            )
            tokenizer.set_last_token_index(index)
        tokens.append(ScannedToken(token, line, tokenizer.nest_level))
    return tokens


def scan_files(
    filenames: Iterable[str | os.PathLike[str]],
    *,
    symbols: SymbolTable | None = None,
    options: TokenizerOptions | None = None,
    show_progress: bool = False,
) -> dict[str, list[ScannedToken]]:
    """
    Scan each file in turn with a shared symbol table, so that macros
    defined in one file are expanded in the files that follow it.

    Parameters
    ----------
    filenames: Iterable[str | os.PathLike[str]]
        The files to scan.

    symbols: SymbolTable, optional
        The symbol table to populate. A new one is used by default.

    options: TokenizerOptions, optional
        The options passed to each Tokenizer.

    show_progress: bool, default: False
        Whether to display a progress bar.

    Returns
    -------
    dict[str, list[ScannedToken]]
        The tokens of each file that could be read.
    """
    if symbols is None:
        symbols = SymbolTable()
    filenames = [str(f) for f in filenames]

    results = {}
    for filename in tqdm(
        filenames,
        desc="Scanning",
        unit=" file",
        leave=False,
        disable=not show_progress,
    ):
        tokenizer = Tokenizer(symbols, options=options)
        if not tokenizer.init(filename):
            continue
        results[filename] = scan(tokenizer)
        log.debug(f"Scanned {filename}: {len(results[filename])} token(s)")
    return results
