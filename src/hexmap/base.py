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

r"""Common stuff, shared across modules."""

from enum import IntEnum
from typing import Iterable
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Protocol
from typing import Sequence
from typing import Tuple
from typing import Union
from typing import runtime_checkable

Address = int
Value = int
OptionalValue = Optional[Value]
AnyBytes = Union[bytes, bytearray, memoryview, Sequence[Value]]

BlockKey = Address
BlockData = List[OptionalValue]

ClosedInterval = Tuple[Address, Address]
IndexedRow = Tuple[Address, int]

ADDRESS_MAX: Address = 0xFFFFFFFF
r"""Highest address of the 32-bit address space."""

VALUE_MAX: Value = 0xFF
r"""Highest byte value."""

DEFAULT_BLOCK_SIZE: Address = 0x10000
r"""Default allocation unit of :class:`hexmap.memory.SparseMemory`."""

FILL_VALUE: Value = 0xFF
r"""Erased flash value, not meaningful when segmenting."""

SEGMENT_GAP_THRESHOLD: Address = 1024
r"""Minimum empty span separating two data segments."""

BYTES_PER_ROW: Address = 16
r"""Width of a virtual row."""

COMPARE_VISUAL_GAP_THRESHOLD: Address = BYTES_PER_ROW
r"""Row distance above which a comparison collapses rows into a gap row."""

SINGLE_VIEW_GAP_THRESHOLD: Address = 0x100000
r"""Row distance above which a single memory collapses rows into a gap row."""


class DataSegment(NamedTuple):
    r"""Contiguous data segment.

    Both bounds are inclusive.

    Examples:
        >>> segment = DataSegment(0x100, 0x1FF)
        >>> segment.size
        256
        >>> 0x1FF in segment
        True
        >>> 0x200 in segment
        False
    """

    start: Address
    end: Address

    @property
    def size(self) -> Address:
        r"""int: Number of addresses covered."""

        return self.end - self.start + 1

    def __contains__(self, address: object) -> bool:
        return isinstance(address, int) and self.start <= address <= self.end


class MemoryStats(NamedTuple):
    r"""Summary of a memory image."""

    start_address: Address
    end_address: Address
    data_size: Address


class DiffType(IntEnum):
    r"""Byte comparison outcome."""

    UNCHANGED = 0
    MODIFIED = 1
    ADDED = 2
    REMOVED = 3


class DiffEntry(NamedTuple):
    r"""Comparison of one address between two memories."""

    type: DiffType
    byte_a: OptionalValue
    byte_b: OptionalValue


class DiffStats(NamedTuple):
    r"""Difference counters of a comparison."""

    modified: int = 0
    added: int = 0
    removed: int = 0

    @property
    def total(self) -> int:
        r"""int: Number of differing addresses."""

        return self.modified + self.added + self.removed


class DataRow(NamedTuple):
    r"""Virtual row showing :data:`BYTES_PER_ROW` bytes from `address`."""

    address: Address
    segment_index: int


class GapRow(NamedTuple):
    r"""Virtual row standing for a collapsed empty range.

    `segment_index` refers to the segment following the gap.
    """

    start_address: Address
    end_address: Address
    skipped_bytes: Address
    segment_index: int


VirtualRow = Union[DataRow, GapRow]
VirtualRowList = List[VirtualRow]
SegmentList = List[DataSegment]
SegmentIterable = Iterable[DataSegment]


@runtime_checkable
class SegmentProvider(Protocol):
    r"""Anything able to list its data segments.

    Both :class:`hexmap.memory.SparseMemory` and
    :class:`hexmap.compare.ComparisonMemory` provide this interface.
    """

    def get_data_segments(self) -> SegmentList:
        ...

    def is_empty(self) -> bool:
        ...


def check_address(address: Address) -> None:
    r"""Checks that an address fits the 32-bit address space.

    Raises:
        ValueError: Address out of range.
    """

    if not 0 <= address <= ADDRESS_MAX:
        raise ValueError(f'address out of range: {address!r}')


def check_value(value: Value) -> None:
    r"""Checks that a value fits a byte.

    Raises:
        ValueError: Value out of range.
    """

    if not 0 <= value <= VALUE_MAX:
        raise ValueError(f'byte value out of range: {value!r}')
