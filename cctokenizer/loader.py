# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the loader used to obtain the text of a source file.
"""
from __future__ import annotations

import logging
import os

log = logging.getLogger(__name__)


class FileLoader:
    """
    Loads source text from disk.

    Any object with a compatible `load` method can be passed to a Tokenizer
    instead, e.g. to read from an editor buffer.
    """

    def __init__(self, encoding: str | None = None) -> None:
        self.encoding = encoding

    def load(self, filename: str | os.PathLike[str]) -> str | None:
        """
        Return the contents of `filename`, or None if it cannot be read.
        Undecodable bytes are replaced rather than treated as failures.
        """
        try:
            with open(
                filename,
                encoding=self.encoding,
                errors="replace",
            ) as fp:
                return fp.read()
        except OSError as e:
            log.warning(f"{filename}: could not be read ({e.strerror})")
            return None
