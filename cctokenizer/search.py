# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains linear-time substring search helpers (Knuth-Morris-Pratt).
"""
from __future__ import annotations


def _is_identifier_char(c: str) -> bool:
    return c.isalnum() or c == "_"


def kmp_get_next_val(pattern: str) -> list[int]:
    """
    Build the partial-match table of `pattern`.

    The table uses the "nextval" form: entry j is the position in the
    pattern to resume from after a mismatch at j, or -1 to advance the text.
    """
    next_val = [-1] * len(pattern)
    j = 0
    k = -1
    while j < len(pattern) - 1:
        if k == -1 or pattern[j] == pattern[k]:
            j += 1
            k += 1
            if pattern[j] != pattern[k]:
                next_val[j] = k
            else:
                next_val[j] = next_val[k]
        else:
            k = next_val[k]
    return next_val


def kmp_find(text: str, pattern: str, start: int = 0) -> int:
    """
    Return the offset of the first occurrence of `pattern` in `text` at or
    after `start`, or -1 if there is none.
    """
    if not pattern:
        return start if start <= len(text) else -1

    next_val = kmp_get_next_val(pattern)
    i = start
    j = 0
    while i < len(text) and j < len(pattern):
        if j == -1 or text[i] == pattern[j]:
            i += 1
            j += 1
        else:
            j = next_val[j]

    if j == len(pattern):
        return i - len(pattern)
    return -1


def get_first_token_position(text: str, key: str) -> int:
    """
    Return the offset of the first occurrence of `key` in `text` that is
    not part of a longer identifier, or -1 if there is none.

    Parameters
    ----------
    text: str
        The text to search, e.g. the replacement list of a macro.

    key: str
        The identifier to look for, e.g. a macro parameter name.

    Returns
    -------
    int
        The zero-based offset of the match, or -1.
    """
    if not key:
        return -1

    start = 0
    while True:
        found = kmp_find(text, key, start)
        if found == -1:
            return -1

        end = found + len(key)
        if found > 0 and _is_identifier_char(text[found - 1]):
            start = found + 1
            continue
        if end < len(text) and _is_identifier_char(text[end]):
            start = found + 1
            continue
        return found
