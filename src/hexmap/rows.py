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

r"""Virtual rows.

A virtual row is either a :obj:`hexmap.base.DataRow`, showing
:data:`hexmap.base.BYTES_PER_ROW` bytes, or a :obj:`hexmap.base.GapRow`,
standing for a whole range of rows without data.
Every row carries the index of the segment it belongs to, so that a
scrolling view can tell which segment is being shown.
"""

from typing import Iterable
from typing import Iterator
from typing import Optional

from .base import BYTES_PER_ROW
from .base import SEGMENT_GAP_THRESHOLD
from .base import SINGLE_VIEW_GAP_THRESHOLD
from .base import Address
from .base import DataRow
from .base import GapRow
from .base import IndexedRow
from .base import SegmentIterable
from .base import VirtualRowList


def align_row(address: Address) -> Address:
    r"""Aligns an address to the start of its row.

    Examples:
        >>> hex(align_row(0x1234))
        '0x1230'
    """

    return address - (address % BYTES_PER_ROW)


def index_rows(
    row_addresses: Iterable[Address],
    threshold: Address = SEGMENT_GAP_THRESHOLD,
) -> Iterator[IndexedRow]:
    r"""Assigns segment indices to rows.

    The segment index is incremented whenever the distance between
    consecutive rows reaches `threshold`.

    Arguments:
        row_addresses (iterable of int):
            Row addresses, strictly ascending.

        threshold (int):
            Minimum row distance separating two segments.

    Yields:
        tuple of int: Row address and segment index.

    Examples:
        >>> list(index_rows([0x00, 0x10, 0x410, 0x810], threshold=0x400))
        [(0, 0), (16, 0), (1040, 1), (2064, 2)]
    """

    segment_index = 0
    previous = None

    for address in row_addresses:
        if previous is not None and address - previous >= threshold:
            segment_index += 1
        yield address, segment_index
        previous = address


def iter_segment_rows(segments: SegmentIterable) -> Iterator[IndexedRow]:
    r"""Iterates over the rows covering segments.

    Arguments:
        segments (iterable of :obj:`hexmap.base.DataSegment`):
            Segments in ascending order.

    Yields:
        tuple of int: Row address and index of the covering segment.

    Examples:
        >>> from hexmap.base import DataSegment
        >>> list(iter_segment_rows([DataSegment(0x08, 0x18), DataSegment(0x800, 0x801)]))
        [(0, 0), (16, 0), (2048, 1)]
    """

    for segment_index, segment in enumerate(segments):
        for address in range(align_row(segment.start), segment.end + 1, BYTES_PER_ROW):
            yield address, segment_index


def build_rows(
    indexed_rows: Iterable[IndexedRow],
    visual_gap_threshold: Address,
) -> VirtualRowList:
    r"""Builds the virtual row sequence.

    Between two consecutive rows, a single gap row is emitted if their
    distance exceeds `visual_gap_threshold`; otherwise all the intervening
    rows are emitted as data rows.
    Both gap rows and intervening rows take the segment index of the
    following row.

    Arguments:
        indexed_rows (iterable of tuple):
            Row address and segment index couples, ascending by address.
            Repeated addresses are emitted once.

        visual_gap_threshold (int):
            Row distance above which rows are collapsed into a gap row.

    Returns:
        list of virtual rows: Data and gap rows, in address order.

    Examples:
        >>> rows = build_rows([(0x00, 0), (0x30, 0), (0x1000, 1)], 0x40)
        >>> for row in rows:
        ...     print(row)
        DataRow(address=0, segment_index=0)
        DataRow(address=16, segment_index=0)
        DataRow(address=32, segment_index=0)
        DataRow(address=48, segment_index=0)
        GapRow(start_address=64, end_address=4095, skipped_bytes=4032, segment_index=1)
        DataRow(address=4096, segment_index=1)
    """

    rows = []
    previous = None

    for address, segment_index in indexed_rows:
        if previous is not None:
            if address <= previous:
                continue
            distance = address - previous

            if distance > visual_gap_threshold:
                rows.append(GapRow(previous + BYTES_PER_ROW, address - 1,
                                   distance - BYTES_PER_ROW, segment_index))
            else:
                for filler in range(previous + BYTES_PER_ROW, address, BYTES_PER_ROW):
                    rows.append(DataRow(filler, segment_index))

        rows.append(DataRow(address, segment_index))
        previous = address

    return rows


def build_memory_rows(
    source,
    visual_gap_threshold: Address = SINGLE_VIEW_GAP_THRESHOLD,
) -> VirtualRowList:
    r"""Builds the virtual rows of a single memory.

    Arguments:
        source (:obj:`hexmap.base.SegmentProvider`):
            Provider of the segments to show.

        visual_gap_threshold (int):
            Row distance above which rows are collapsed into a gap row.

    Returns:
        list of virtual rows: Data and gap rows, in address order.
    """

    if source.is_empty():
        return []
    return build_rows(iter_segment_rows(source.get_data_segments()), visual_gap_threshold)


def find_row_index(
    rows: VirtualRowList,
    address: Address,
) -> Optional[int]:
    r"""Finds the row showing an address.

    Arguments:
        rows (list of virtual rows):
            Rows, in address order.

        address (int):
            Address to look for.

    Returns:
        int: Index of the data row containing `address`, or of the gap row
        covering it; ``None`` if not shown at all.

    Examples:
        >>> rows = build_rows([(0x00, 0), (0x1000, 1)], 0x10)
        >>> find_row_index(rows, 0x0F)
        0
        >>> find_row_index(rows, 0x800)
        1
        >>> find_row_index(rows, 0x1005)
        2
        >>> find_row_index(rows, 0x2000) is None
        True
    """

    lo, hi = 0, len(rows)
    while lo < hi:
        mid = (lo + hi) // 2
        row = rows[mid]

        if isinstance(row, GapRow):
            start, end = row.start_address, row.end_address
        else:
            start = row.address
            end = start + BYTES_PER_ROW - 1

        if address < start:
            hi = mid
        elif address > end:
            lo = mid + 1
        else:
            return mid
    return None
