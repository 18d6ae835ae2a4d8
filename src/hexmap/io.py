# Copyright (c) 2020-2022, Andrea Zoppi.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""File loading utilities."""

import logging
import os
from typing import Sequence
from typing import Union

from .base import DEFAULT_BLOCK_SIZE
from .base import Address
from .ihex import looks_like_ihex
from .ihex import parse
from .memory import SparseMemory

logger = logging.getLogger(__name__)

PathLike = Union[str, 'os.PathLike[str]']

HEX_FILE_EXTENSIONS: Sequence[str] = ('.hex', '.ihex', '.ihx')
r"""Accepted file name extensions, lower case."""

SAMPLE_SIZE: int = 4096
r"""Characters read by :func:`is_ihex_file`."""


class InputError(ValueError):
    r"""Unusable input file."""


def _read_text(path: PathLike, size: int = -1) -> str:

    with open(path, 'rt', encoding='ascii', errors='replace', newline='') as stream:
        return stream.read(size)


def is_ihex_file(
    path: PathLike,
    sample_size: int = SAMPLE_SIZE,
) -> bool:
    r"""Tells whether a file looks like Intel HEX.

    Only the first `sample_size` characters are read.

    Arguments:
        path (str):
            Path of the file to inspect.

        sample_size (int):
            Number of characters to inspect.

    Returns:
        bool: The file starts with record lines.

    See Also:
        :func:`hexmap.ihex.looks_like_ihex`
    """

    return looks_like_ihex(_read_text(path, sample_size))


def load(
    path: PathLike,
    extensions: Sequence[str] = HEX_FILE_EXTENSIONS,
    block_size: Address = DEFAULT_BLOCK_SIZE,
) -> SparseMemory:
    r"""Loads an Intel HEX file.

    Arguments:
        path (str):
            Path of the file to load.

        extensions (list of str):
            Accepted file name extensions, lower case; empty to accept any.

        block_size (int):
            Block size of the returned memory.

    Returns:
        :obj:`SparseMemory`: The decoded memory image, never empty.

    Raises:
        InputError: Wrong extension, not Intel HEX, or no data records.
        hexmap.ihex.FormatError: Malformed record.
        hexmap.ihex.ChecksumError: Checksum mismatch.
    """

    name = os.fspath(path)
    if extensions:
        ext = os.path.splitext(name)[1].lower()
        if ext not in extensions:
            raise InputError(f'invalid file type: {name!r}')

    text = _read_text(path)
    if not looks_like_ihex(text):
        raise InputError(f'not an Intel HEX file: {name!r}')

    memory = parse(text, block_size)
    if memory.is_empty():
        raise InputError(f'no data records: {name!r}')

    logger.debug('loaded %r: %d bytes', name, memory.get_data_size())
    return memory
