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

r"""Sparse memory image.

The 32-bit address space is split into fixed-size blocks, allocated lazily
on the first write falling within them.
Each cell of a block is either ``None`` (never written) or a byte value;
a written zero is never confused with an absent byte.
"""

from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional

from .base import DEFAULT_BLOCK_SIZE
from .base import Address
from .base import BlockData
from .base import BlockKey
from .base import MemoryStats
from .base import OptionalValue
from .base import SegmentList
from .base import Value
from .base import check_address
from .base import check_value
from .segments import extract_segments


class SparseMemory:
    r"""Sparse byte-addressable memory.

    Arguments:
        block_size (int):
            Size of the allocation unit; must be positive.

    Attributes:
        _blocks (dict):
            Block cells, keyed by the address of their first cell.

        _block_size (int):
            Size of the allocation unit.

        _sorted_keys (list of int):
            Memoized ascending block keys, ``None`` when stale.

    Examples:
        >>> memory = SparseMemory()
        >>> memory.is_empty()
        True
        >>> memory.set_byte(0x1234, 0x00)
        >>> memory.get_byte(0x1234)
        0
        >>> memory.get_byte(0x1235) is None
        True
        >>> memory.is_empty()
        False
    """

    def __init__(
        self: 'SparseMemory',
        block_size: Address = DEFAULT_BLOCK_SIZE,
    ):

        if block_size <= 0:
            raise ValueError('block size must be positive')

        self._block_size: Address = block_size
        self._blocks: Dict[BlockKey, BlockData] = {}
        self._sorted_keys: Optional[List[BlockKey]] = None

    def __repr__(
        self: 'SparseMemory',
    ) -> str:

        return (f'<{type(self).__name__} block_size=0x{self._block_size:X} '
                f'blocks={len(self._blocks)}>')

    @property
    def block_size(
        self: 'SparseMemory',
    ) -> Address:
        r"""int: Size of the allocation unit."""

        return self._block_size

    def block_keys(
        self: 'SparseMemory',
    ) -> List[BlockKey]:
        r"""Sorted block keys.

        The list is memoized until a new block gets allocated, and must not
        be altered by the caller.

        Returns:
            list of int: Allocated block keys, in ascending order.

        Examples:
            >>> memory = SparseMemory(block_size=0x100)
            >>> memory.set_byte(0x345, 1)
            >>> memory.set_byte(0x123, 2)
            >>> memory.set_byte(0x1FF, 3)
            >>> memory.block_keys()
            [256, 768]
        """

        sorted_keys = self._sorted_keys
        if sorted_keys is None:
            sorted_keys = sorted(self._blocks)
            self._sorted_keys = sorted_keys
        return sorted_keys

    def get_memory_blocks(
        self: 'SparseMemory',
    ) -> Mapping[BlockKey, BlockData]:
        r"""Raw block mapping.

        Meant for read-only scans by derived views; altering the returned
        mapping or its blocks breaks the memory invariants.

        Returns:
            dict: Block cells, keyed by the address of their first cell.
        """

        return self._blocks

    def set_byte(
        self: 'SparseMemory',
        address: Address,
        value: Value,
    ) -> None:
        r"""Writes a byte.

        The containing block is allocated on the first write within it, with
        all of its other cells absent.

        Arguments:
            address (int):
                Target address.

            value (int):
                Byte value, within ``0..255``.

        Raises:
            ValueError: Address or value out of range.

        Examples:
            >>> memory = SparseMemory(block_size=16)
            >>> memory.set_byte(0x21, 0xAB)
            >>> memory.get_byte(0x21)
            171
            >>> memory.get_byte(0x20) is None
            True
            >>> memory.set_byte(0x22, 0x100)
            Traceback (most recent call last):
                ...
            ValueError: byte value out of range: 256
        """

        check_address(address)
        check_value(value)

        block_size = self._block_size
        offset = address % block_size
        block_key = address - offset
        block_data = self._blocks.get(block_key)

        if block_data is None:
            block_data = [None] * block_size
            self._blocks[block_key] = block_data
            self._sorted_keys = None

        block_data[offset] = value

    def get_byte(
        self: 'SparseMemory',
        address: Address,
    ) -> OptionalValue:
        r"""Reads a byte.

        It never allocates any blocks.

        Arguments:
            address (int):
                Address to read.

        Returns:
            int: The byte value, ``None`` if absent.
        """

        block_size = self._block_size
        offset = address % block_size
        block_data = self._blocks.get(address - offset)

        if block_data is None:
            return None
        return block_data[offset]

    def is_empty(
        self: 'SparseMemory',
    ) -> bool:
        r"""Tells whether no writes ever happened.

        Returns:
            bool: No blocks allocated.
        """

        return not self._blocks

    def get_start_address(
        self: 'SparseMemory',
    ) -> Address:
        r"""Lowest address holding a byte.

        Returns:
            int: Lowest present address, ``0`` if empty.

        Examples:
            >>> memory = SparseMemory()
            >>> memory.get_start_address()
            0
            >>> memory.set_byte(0x08000010, 0xFF)
            >>> memory.set_byte(0x20000000, 0x00)
            >>> hex(memory.get_start_address())
            '0x8000010'
        """

        if self._blocks:
            block_key = self.block_keys()[0]
            block_data = self._blocks[block_key]

            for offset, value in enumerate(block_data):
                if value is not None:
                    return block_key + offset
        return 0

    def get_end_address(
        self: 'SparseMemory',
    ) -> Address:
        r"""Highest address holding a byte.

        Returns:
            int: Highest present address, ``0`` if empty.

        Examples:
            >>> memory = SparseMemory()
            >>> memory.set_byte(0x08000010, 0xFF)
            >>> memory.set_byte(0x20000000, 0x00)
            >>> hex(memory.get_end_address())
            '0x20000000'
        """

        if self._blocks:
            block_key = self.block_keys()[-1]
            block_data = self._blocks[block_key]

            for offset in range(self._block_size - 1, -1, -1):
                if block_data[offset] is not None:
                    return block_key + offset
        return 0

    def get_data_size(
        self: 'SparseMemory',
    ) -> Address:
        r"""Counts the present bytes.

        Returns:
            int: Number of present bytes, across all blocks.
        """

        return sum(self._block_size - block_data.count(None)
                   for block_data in self._blocks.values())

    def get_data_segments(
        self: 'SparseMemory',
    ) -> SegmentList:
        r"""Extracts the data segments.

        Returns:
            list of :obj:`hexmap.base.DataSegment`: Segments of meaningful
            data, see :func:`hexmap.segments.extract_segments`.
        """

        return extract_segments(self)

    def get_stats(
        self: 'SparseMemory',
    ) -> Optional[MemoryStats]:
        r"""Summarizes the memory.

        Returns:
            :obj:`hexmap.base.MemoryStats`: Start address, end address, and
            data size; ``None`` if empty.

        Examples:
            >>> memory = SparseMemory()
            >>> memory.get_stats() is None
            True
            >>> memory.set_byte(0x10, 1)
            >>> memory.set_byte(0x20, 2)
            >>> memory.get_stats()
            MemoryStats(start_address=16, end_address=32, data_size=2)
        """

        if not self._blocks:
            return None

        return MemoryStats(
            self.get_start_address(),
            self.get_end_address(),
            self.get_data_size(),
        )

    def clear(
        self: 'SparseMemory',
    ) -> None:
        r"""Drops all the blocks."""

        self._blocks.clear()
        self._sorted_keys = None
