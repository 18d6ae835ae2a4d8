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

r"""Intel HEX record decoding.

Each record line reads ``:CCAAAATTDD...DDKK``, where ``CC`` is the data byte
count, ``AAAA`` the big-endian 16-bit address, ``TT`` the record type,
``DD`` the data bytes, and ``KK`` the two's complement checksum of all the
previous bytes.
Lines not starting with ``:`` are ignored.
"""

import binascii
import logging
from enum import IntEnum
from typing import Optional

from .base import ADDRESS_MAX
from .base import DEFAULT_BLOCK_SIZE
from .base import Address
from .base import AnyBytes
from .memory import SparseMemory

logger = logging.getLogger(__name__)

RECORD_MARK: str = ':'
r"""Leading character of a record line."""

MIN_RECORD_LENGTH: int = 11
r"""Characters of a record without data bytes, mark included."""


class RecordType(IntEnum):
    r"""Intel HEX record types."""

    DATA = 0
    END_OF_FILE = 1
    EXTENDED_SEGMENT_ADDRESS = 2
    START_SEGMENT_ADDRESS = 3
    EXTENDED_LINEAR_ADDRESS = 4
    START_LINEAR_ADDRESS = 5


class RecordError(ValueError):
    r"""Record decoding error.

    Arguments:
        message (str):
            Short description of the problem.

        line (str):
            Offending record line.

        line_number (int):
            One-based index of the offending line, if known.
    """

    def __init__(
        self,
        message: str,
        line: str,
        line_number: Optional[int] = None,
    ):

        super().__init__(message, line, line_number)
        self.message: str = message
        self.line: str = line
        self.line_number: Optional[int] = line_number

    def __str__(self) -> str:

        if self.line_number is None:
            return f'{self.message} in line: {self.line}'
        else:
            return f'{self.message} in line {self.line_number}: {self.line}'


class FormatError(RecordError):
    r"""Malformed record."""


class ChecksumError(RecordError):
    r"""Checksum mismatch."""


def compute_checksum(record: AnyBytes) -> int:
    r"""Computes the checksum of a record.

    Arguments:
        record (bytes):
            Record bytes, from the count byte to the last data byte.

    Returns:
        int: Two's complement of the byte sum, truncated to 8 bits.

    Examples:
        >>> compute_checksum(bytes.fromhex('00000001'))
        255
        >>> hex(compute_checksum(bytes.fromhex('020000040800')))
        '0xf2'
    """

    return (0x100 - (sum(record) & 0xFF)) & 0xFF


def looks_like_ihex(
    text: str,
    max_lines: int = 5,
) -> bool:
    r"""Tells whether some text looks like Intel HEX.

    Only the first few non-blank lines are inspected, each must start with
    the record mark.
    This is an advisory check; it does not validate any records.

    Arguments:
        text (str):
            Text to inspect, possibly just the beginning of a file.

        max_lines (int):
            Maximum number of non-blank lines to inspect.

    Returns:
        bool: All the inspected lines look like records.

    Examples:
        >>> looks_like_ihex(':00000001FF\n')
        True
        >>> looks_like_ihex('\n\n')
        False
        >>> looks_like_ihex('S00600004844521B\n')
        False
    """

    checked = 0
    for line in text.split('\n'):
        if line.strip():
            if not line.startswith(RECORD_MARK):
                return False
            checked += 1
            if checked >= max_lines:
                break
    return checked > 0


def parse(
    text: str,
    block_size: Address = DEFAULT_BLOCK_SIZE,
) -> SparseMemory:
    r"""Parses Intel HEX text into a memory image.

    Parsing stops at the first *end of file* record; a missing one is
    tolerated.
    *Extended segment address*, *start* and unknown records are ignored.

    Arguments:
        text (str):
            Whole record text; either ``\n`` or ``\r\n`` line endings.

        block_size (int):
            Block size of the returned memory.

    Returns:
        :obj:`SparseMemory`: The decoded memory image.

    Raises:
        FormatError: Malformed record.
        ChecksumError: Checksum mismatch.

    Examples:
        >>> memory = parse(':0300100041424327\n:00000001FF\n')
        >>> memory.get_start_address(), memory.get_end_address()
        (16, 18)
        >>> bytes(memory.get_byte(a) for a in range(16, 19))
        b'ABC'

        >>> parse(':0300100041424328\n')
        Traceback (most recent call last):
            ...
        hexmap.ihex.ChecksumError: checksum mismatch in line 1: :0300100041424328
    """

    memory = SparseMemory(block_size)
    extended_offset = 0
    records = 0

    for line_number, line in enumerate(text.split('\n'), 1):
        if not line.startswith(RECORD_MARK):
            continue

        line = line.rstrip()
        if len(line) < MIN_RECORD_LENGTH:
            raise FormatError('invalid record length', line, line_number)

        try:
            record = binascii.unhexlify(line[1:])
        except ValueError:
            raise FormatError('invalid hexadecimal digits', line, line_number) from None

        count = record[0]
        if len(record) != count + 5:
            raise FormatError('record length mismatch', line, line_number)

        if compute_checksum(record[:-1]) != record[-1]:
            raise ChecksumError('checksum mismatch', line, line_number)

        address = (record[1] << 8) | record[2]
        tag = record[3]
        data = record[4:-1]
        records += 1

        if tag == RecordType.DATA:
            start = extended_offset + address
            if start + count - 1 > ADDRESS_MAX:
                raise FormatError('address overflow', line, line_number)

            for index, value in enumerate(data):
                memory.set_byte(start + index, value)

        elif tag == RecordType.END_OF_FILE:
            logger.debug('end of file at line %d, %d records', line_number, records)
            return memory

        elif tag == RecordType.EXTENDED_LINEAR_ADDRESS:
            if count != 2:
                raise FormatError('invalid extended linear address record', line, line_number)
            extended_offset = (data[0] << 24) | (data[1] << 16)

        else:
            logger.debug('ignoring record type 0x%02X at line %d', tag, line_number)

    if records:
        logger.warning('end of file record missing, %d records decoded', records)
    return memory


parse_ihex = parse
