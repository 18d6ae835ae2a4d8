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

r"""Data segment extraction.

A byte is *meaningful* when it is present and different from
:data:`hexmap.base.FILL_VALUE`.
Absent bytes and fill bytes both interrupt a run of meaningful bytes; runs
closer than a threshold are then merged into the same segment.
"""

from typing import Iterable
from typing import Iterator
from typing import Mapping
from typing import Optional

from .base import FILL_VALUE
from .base import SEGMENT_GAP_THRESHOLD
from .base import Address
from .base import BlockData
from .base import BlockKey
from .base import DataSegment
from .base import SegmentIterable
from .base import SegmentList
from .base import Value


def is_meaningful(value: Optional[Value]) -> bool:
    r"""Tells whether a byte counts as data.

    Examples:
        >>> is_meaningful(0x00)
        True
        >>> is_meaningful(0xFF)
        False
        >>> is_meaningful(None)
        False
    """

    return value is not None and value != FILL_VALUE


def iter_block_runs(
    block_key: BlockKey,
    block_data: BlockData,
) -> Iterator[DataSegment]:
    r"""Iterates over meaningful runs within a block.

    Arguments:
        block_key (int):
            Address of the first cell of the block.

        block_data (list of int):
            Block cells, ``None`` if absent.

    Yields:
        :obj:`DataSegment`: Maximal runs of meaningful bytes.

    Examples:
        >>> cells = [None, 1, 2, 0xFF, 3, None, None, 4]
        >>> list(iter_block_runs(0x100, cells))
        [DataSegment(start=257, end=258), DataSegment(start=260, end=260), DataSegment(start=263, end=263)]
    """

    run_start = None
    offset = 0

    for offset, value in enumerate(block_data):
        if is_meaningful(value):
            if run_start is None:
                run_start = offset
        elif run_start is not None:
            yield DataSegment(block_key + run_start, block_key + offset - 1)
            run_start = None

    if run_start is not None:
        yield DataSegment(block_key + run_start, block_key + offset)


def iter_runs(
    blocks: Mapping[BlockKey, BlockData],
    block_keys: Optional[Iterable[BlockKey]] = None,
) -> Iterator[DataSegment]:
    r"""Iterates over meaningful runs of a block mapping.

    Blocks are scanned in ascending address order; runs never cross a block
    boundary.

    Arguments:
        blocks (dict):
            Block mapping, as returned by
            :meth:`hexmap.memory.SparseMemory.get_memory_blocks`.

        block_keys (list of int):
            Keys of `blocks` in ascending order, as returned by
            :meth:`hexmap.memory.SparseMemory.block_keys`.
            If ``None``, they are sorted here.

    Yields:
        :obj:`DataSegment`: Meaningful runs, in ascending order.
    """

    if block_keys is None:
        block_keys = sorted(blocks)

    for block_key in block_keys:
        yield from iter_block_runs(block_key, blocks[block_key])


def merge_runs(
    runs: SegmentIterable,
    threshold: Address = SEGMENT_GAP_THRESHOLD,
) -> SegmentList:
    r"""Merges close runs into segments.

    Two consecutive runs belong to the same segment when the count of
    addresses between them is less than `threshold`.

    Arguments:
        runs (iterable of :obj:`DataSegment`):
            Runs sorted by ascending address, never overlapping.

        threshold (int):
            Minimum gap size separating two segments.

    Returns:
        list of :obj:`DataSegment`: The merged segments.

    Examples:
        >>> runs = [DataSegment(0, 3), DataSegment(8, 9), DataSegment(20, 29)]
        >>> merge_runs(runs, threshold=5)
        [DataSegment(start=0, end=9), DataSegment(start=20, end=29)]
        >>> merge_runs(runs, threshold=4)
        [DataSegment(start=0, end=3), DataSegment(start=8, end=9), DataSegment(start=20, end=29)]
        >>> merge_runs([])
        []
    """

    segments = []
    current = None

    for run in runs:
        if current is None:
            current = run
        elif run.start - current.end - 1 < threshold:
            current = DataSegment(current.start, run.end)
        else:
            segments.append(current)
            current = run

    if current is not None:
        segments.append(current)
    return segments


def extract_segments(
    source,
    threshold: Address = SEGMENT_GAP_THRESHOLD,
) -> SegmentList:
    r"""Extracts the data segments of a memory.

    Arguments:
        source (:obj:`hexmap.memory.SparseMemory`):
            Memory to segment.

        threshold (int):
            Minimum gap size separating two segments.

    Returns:
        list of :obj:`DataSegment`: Segments in ascending order.

    Examples:
        >>> from hexmap.memory import SparseMemory
        >>> memory = SparseMemory(block_size=0x100)
        >>> for address in (0x10, 0x11, 0x1F0, 0x5000):
        ...     memory.set_byte(address, 0xA5)
        >>> memory.set_byte(0x12, 0xFF)
        >>> extract_segments(memory)
        [DataSegment(start=16, end=496), DataSegment(start=20480, end=20480)]
    """

    if source.is_empty():
        return []
    runs = iter_runs(source.get_memory_blocks(), source.block_keys())
    return merge_runs(runs, threshold)
