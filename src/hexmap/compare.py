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

r"""Memory comparison.

Two memory images are compared address by address over the union of their
blocks.
Only addresses holding a byte in at least one image get a diff entry.
"""

import logging
from bisect import bisect_left
from bisect import bisect_right
from typing import Dict
from typing import List
from typing import Optional

from .base import BYTES_PER_ROW
from .base import COMPARE_VISUAL_GAP_THRESHOLD
from .base import SEGMENT_GAP_THRESHOLD
from .base import Address
from .base import DataRow
from .base import DataSegment
from .base import DiffEntry
from .base import DiffStats
from .base import DiffType
from .base import SegmentList
from .base import VirtualRowList
from .memory import SparseMemory
from .rows import align_row
from .rows import build_rows
from .rows import index_rows

logger = logging.getLogger(__name__)

UNCHANGED_ENTRY: DiffEntry = DiffEntry(DiffType.UNCHANGED, None, None)
r"""Entry of an address absent from both images."""


class ComparisonMemory:
    r"""Byte-level comparison of two memory images.

    The comparison is computed once on creation; both memories must not be
    altered afterwards.

    Arguments:
        memory_a (:obj:`SparseMemory`):
            Reference memory image.

        memory_b (:obj:`SparseMemory`):
            Memory image compared against the reference one.

    Raises:
        ValueError: Memories with different block sizes.

    Examples:
        >>> a = SparseMemory()
        >>> b = SparseMemory()
        >>> a.set_byte(0, 0x11); b.set_byte(0, 0x22)
        >>> a.set_byte(1, 0x33)
        >>> b.set_byte(2, 0x44)
        >>> a.set_byte(3, 0x55); b.set_byte(3, 0x55)
        >>> comparison = ComparisonMemory(a, b)
        >>> comparison.get_stats()
        DiffStats(modified=1, added=1, removed=1)
        >>> comparison.get_diff_addresses()
        [0, 1, 2]
        >>> comparison.get_diff_entry(2)
        DiffEntry(type=<DiffType.ADDED: 2>, byte_a=None, byte_b=68)
    """

    def __init__(
        self: 'ComparisonMemory',
        memory_a: SparseMemory,
        memory_b: SparseMemory,
    ):

        block_size = memory_a.block_size
        if memory_b.block_size != block_size:
            raise ValueError('block size mismatch')

        blocks_a = memory_a.get_memory_blocks()
        blocks_b = memory_b.get_memory_blocks()
        diff_map: Dict[Address, DiffEntry] = {}
        modified = added = removed = 0

        for block_key in sorted(set(blocks_a).union(blocks_b)):
            block_a = blocks_a.get(block_key)
            block_b = blocks_b.get(block_key)

            for offset in range(block_size):
                byte_a = None if block_a is None else block_a[offset]
                byte_b = None if block_b is None else block_b[offset]

                if byte_a == byte_b:
                    if byte_a is None:
                        continue
                    diff_type = DiffType.UNCHANGED
                elif byte_a is None:
                    diff_type = DiffType.ADDED
                    added += 1
                elif byte_b is None:
                    diff_type = DiffType.REMOVED
                    removed += 1
                else:
                    diff_type = DiffType.MODIFIED
                    modified += 1

                diff_map[block_key + offset] = DiffEntry(diff_type, byte_a, byte_b)

        self._diff_map: Dict[Address, DiffEntry] = diff_map
        self._stats: DiffStats = DiffStats(modified, added, removed)
        self._diff_addresses: Optional[List[Address]] = None
        self._virtual_rows: VirtualRowList = self._build_virtual_rows()

        logger.debug('compared %d addresses: %d modified, %d added, %d removed',
                     len(diff_map), modified, added, removed)

    def _build_virtual_rows(
        self: 'ComparisonMemory',
    ) -> VirtualRowList:

        # Keys were inserted in ascending address order
        row_addresses = []
        last_row = None
        for address in self._diff_map:
            row = align_row(address)
            if row != last_row:
                row_addresses.append(row)
                last_row = row

        indexed_rows = index_rows(row_addresses, SEGMENT_GAP_THRESHOLD)
        return build_rows(indexed_rows, COMPARE_VISUAL_GAP_THRESHOLD)

    def get_diff_entry(
        self: 'ComparisonMemory',
        address: Address,
    ) -> DiffEntry:
        r"""Gets the comparison of an address.

        Arguments:
            address (int):
                Address to look up.

        Returns:
            :obj:`DiffEntry`: The stored entry, or an unchanged entry with
            both bytes absent.
        """

        return self._diff_map.get(address, UNCHANGED_ENTRY)

    def get_stats(
        self: 'ComparisonMemory',
    ) -> DiffStats:
        r"""Difference counters.

        Returns:
            :obj:`DiffStats`: Modified, added, and removed byte counts.
        """

        return self._stats

    def get_diff_addresses(
        self: 'ComparisonMemory',
    ) -> List[Address]:
        r"""Addresses of all the differences.

        The list is computed once, and must not be altered by the caller.

        Returns:
            list of int: Ascending addresses of non-unchanged entries.
        """

        diff_addresses = self._diff_addresses
        if diff_addresses is None:
            unchanged = DiffType.UNCHANGED
            diff_addresses = [address for address, entry in self._diff_map.items()
                              if entry.type != unchanged]
            diff_addresses.sort()
            self._diff_addresses = diff_addresses
        return diff_addresses

    def next_diff_address(
        self: 'ComparisonMemory',
        current: Optional[Address] = None,
    ) -> Optional[Address]:
        r"""Finds the difference following an address.

        Arguments:
            current (int):
                Current address; ``None`` to get the first difference.

        Returns:
            int: Address of the next difference, ``None`` if none.

        Examples:
            >>> a = SparseMemory()
            >>> b = SparseMemory()
            >>> for address in (0x10, 0x20):
            ...     b.set_byte(address, 0)
            >>> comparison = ComparisonMemory(a, b)
            >>> comparison.next_diff_address()
            16
            >>> comparison.next_diff_address(0x10)
            32
            >>> comparison.next_diff_address(0x20) is None
            True
        """

        diff_addresses = self.get_diff_addresses()
        if current is None:
            index = 0
        else:
            index = bisect_right(diff_addresses, current)

        if index < len(diff_addresses):
            return diff_addresses[index]
        return None

    def previous_diff_address(
        self: 'ComparisonMemory',
        current: Optional[Address] = None,
    ) -> Optional[Address]:
        r"""Finds the difference preceding an address.

        Arguments:
            current (int):
                Current address; ``None`` to get the last difference.

        Returns:
            int: Address of the previous difference, ``None`` if none.
        """

        diff_addresses = self.get_diff_addresses()
        if current is None:
            index = len(diff_addresses) - 1
        else:
            index = bisect_left(diff_addresses, current) - 1

        if index >= 0:
            return diff_addresses[index]
        return None

    def get_virtual_rows(
        self: 'ComparisonMemory',
    ) -> VirtualRowList:
        r"""Virtual rows of the touched addresses.

        Rows holding no touched addresses are collapsed into gap rows.

        Returns:
            list of virtual rows: Data and gap rows, in address order.
        """

        return self._virtual_rows

    def get_data_segments(
        self: 'ComparisonMemory',
    ) -> SegmentList:
        r"""Segments of the touched rows.

        Returns:
            list of :obj:`DataSegment`: One segment per segment index,
            from its first row to the end of its last row.
        """

        segments = []
        start = end = None
        current_index = None

        for row in self._virtual_rows:
            if isinstance(row, DataRow):
                if row.segment_index != current_index:
                    if current_index is not None:
                        segments.append(DataSegment(start, end + BYTES_PER_ROW - 1))
                    current_index = row.segment_index
                    start = row.address
                end = row.address

        if current_index is not None:
            segments.append(DataSegment(start, end + BYTES_PER_ROW - 1))
        return segments

    def is_empty(
        self: 'ComparisonMemory',
    ) -> bool:
        r"""Tells whether nothing was compared.

        Returns:
            bool: No rows and no differences.
        """

        return not self._virtual_rows and not self._stats.total


def compare_memory(
    memory_a: SparseMemory,
    memory_b: SparseMemory,
) -> ComparisonMemory:
    r"""Compares two memory images.

    See Also:
        :class:`ComparisonMemory`
    """

    return ComparisonMemory(memory_a, memory_b)
