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

import logging

from _common import *

from hexmap.base import BYTES_PER_ROW
from hexmap.base import DataRow
from hexmap.base import DataSegment
from hexmap.base import DiffEntry
from hexmap.base import DiffStats
from hexmap.base import DiffType
from hexmap.base import GapRow
from hexmap.base import SegmentProvider
from hexmap.compare import UNCHANGED_ENTRY
from hexmap.compare import ComparisonMemory
from hexmap.compare import compare_memory
from hexmap.memory import SparseMemory


def create_pair():
    values_a = create_template_values()
    values_b = dict(values_a)

    values_b[0x0001] = 0x99  # modified
    values_b[0x0002] = 0x00  # modified
    del values_b[0x0003]  # removed
    values_b[0x0100] = 0x00  # added, inside an allocated block
    values_b[0x20000000] = 0x42  # added, new block
    del values_a[0xFFFFFFFF]  # added, top of memory
    values_b[0x0040] = 0x00  # modified, fill to zero

    return values_a, values_b


def classify(a, b):
    if a is None and b is not None:
        return DiffType.ADDED
    if a is not None and b is None:
        return DiffType.REMOVED
    if a != b:
        return DiffType.MODIFIED
    return DiffType.UNCHANGED


class TestComparisonMemory:

    def test___init___doctest(self):
        a = SparseMemory()
        b = SparseMemory()
        a.set_byte(0, 0x11)
        b.set_byte(0, 0x22)
        a.set_byte(1, 0x33)
        b.set_byte(2, 0x44)
        a.set_byte(3, 0x55)
        b.set_byte(3, 0x55)
        comparison = ComparisonMemory(a, b)
        assert comparison.get_stats() == DiffStats(modified=1, added=1, removed=1)
        assert comparison.get_diff_addresses() == [0, 1, 2]
        assert comparison.get_diff_entry(2) == DiffEntry(DiffType.ADDED, None, 0x44)
        assert comparison.get_diff_entry(1) == DiffEntry(DiffType.REMOVED, 0x33, None)
        assert comparison.get_diff_entry(0) == DiffEntry(DiffType.MODIFIED, 0x11, 0x22)
        assert comparison.get_diff_entry(3) == DiffEntry(DiffType.UNCHANGED, 0x55, 0x55)

    def test___init___block_size_mismatch(self):
        with pytest.raises(ValueError, match='block size mismatch'):
            ComparisonMemory(SparseMemory(0x100), SparseMemory(0x200))

    def test_compare_memory(self):
        comparison = compare_memory(SparseMemory(), SparseMemory())
        assert isinstance(comparison, ComparisonMemory)

    def test_is_segment_provider(self):
        assert isinstance(compare_memory(SparseMemory(), SparseMemory()), SegmentProvider)

    def test_get_diff_entry_untouched(self):
        memory = create_template_memory()
        comparison = ComparisonMemory(memory, memory)
        entry = comparison.get_diff_entry(0x12345678)
        assert entry == UNCHANGED_ENTRY == DiffEntry(DiffType.UNCHANGED, None, None)

    def test_get_diff_entry_template(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))

        for address in set(values_a) | set(values_b) | {0x50, 0x1000, 0x08000123}:
            a = values_a.get(address)
            b = values_b.get(address)
            entry = comparison.get_diff_entry(address)
            assert entry.byte_a == a
            assert entry.byte_b == b
            assert entry.type == classify(a, b)

    def test_get_stats_template(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        assert comparison.get_stats() == DiffStats(modified=3, added=3, removed=1)
        assert comparison.get_stats().total == 7

    def test_get_stats_cardinalities(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        types = [classify(values_a.get(address), values_b.get(address))
                 for address in set(values_a) | set(values_b)]
        stats = comparison.get_stats()
        assert stats.modified == types.count(DiffType.MODIFIED)
        assert stats.added == types.count(DiffType.ADDED)
        assert stats.removed == types.count(DiffType.REMOVED)

    def test_get_diff_addresses_template(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        addresses = comparison.get_diff_addresses()
        assert addresses == [0x0001, 0x0002, 0x0003, 0x0040, 0x0100, 0x20000000, 0xFFFFFFFF]
        assert addresses is comparison.get_diff_addresses()

    def test_identity(self):
        memory = create_template_memory()
        comparison = ComparisonMemory(memory, memory)
        assert comparison.get_stats() == DiffStats(0, 0, 0)
        assert comparison.get_diff_addresses() == []
        assert comparison.is_empty() is False

    def test_identity_equal_copies(self):
        comparison = ComparisonMemory(create_template_memory(), create_template_memory())
        assert comparison.get_stats() == DiffStats(0, 0, 0)
        assert comparison.get_diff_addresses() == []

    def test_symmetry(self):
        values_a, values_b = create_pair()
        memory_a = create_memory(values_a)
        memory_b = create_memory(values_b)
        forward = ComparisonMemory(memory_a, memory_b)
        backward = ComparisonMemory(memory_b, memory_a)

        assert forward.get_stats().modified == backward.get_stats().modified
        assert forward.get_stats().added == backward.get_stats().removed
        assert forward.get_stats().removed == backward.get_stats().added
        assert forward.get_diff_addresses() == backward.get_diff_addresses()

    def test_absent_versus_zero(self):
        a = SparseMemory()
        b = SparseMemory()
        b.set_byte(0x10, 0x00)
        comparison = ComparisonMemory(a, b)
        assert comparison.get_diff_entry(0x10) == DiffEntry(DiffType.ADDED, None, 0)

    def test_fill_versus_absent(self):
        a = SparseMemory()
        b = SparseMemory()
        a.set_byte(0x10, 0xFF)
        comparison = ComparisonMemory(a, b)
        assert comparison.get_diff_entry(0x10) == DiffEntry(DiffType.REMOVED, 0xFF, None)
        assert comparison.get_data_segments() == [DataSegment(0x10, 0x1F)]

    def test_both_absent_skipped(self):
        a = SparseMemory(0x100)
        b = SparseMemory(0x100)
        a.set_byte(0x00, 1)
        b.set_byte(0xFF, 2)
        comparison = ComparisonMemory(a, b)
        assert comparison._diff_map.keys() == {0x00, 0xFF}

    def test_is_empty(self):
        comparison = ComparisonMemory(SparseMemory(), SparseMemory())
        assert comparison.is_empty() is True
        assert comparison.get_virtual_rows() == []
        assert comparison.get_data_segments() == []
        assert comparison.get_stats() == DiffStats()

    def test_next_diff_address_doctest(self):
        a = SparseMemory()
        b = SparseMemory()
        for address in (0x10, 0x20):
            b.set_byte(address, 0)
        comparison = ComparisonMemory(a, b)
        assert comparison.next_diff_address() == 16
        assert comparison.next_diff_address(0x10) == 32
        assert comparison.next_diff_address(0x20) is None

    def test_next_diff_address_between(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        assert comparison.next_diff_address(0x0000) == 0x0001
        assert comparison.next_diff_address(0x0041) == 0x0100
        assert comparison.next_diff_address(0x0100) == 0x20000000
        assert comparison.next_diff_address(0xFFFFFFFF) is None

    def test_previous_diff_address(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        assert comparison.previous_diff_address() == 0xFFFFFFFF
        assert comparison.previous_diff_address(0xFFFFFFFF) == 0x20000000
        assert comparison.previous_diff_address(0x0041) == 0x0040
        assert comparison.previous_diff_address(0x0001) is None

    def test_navigation_empty(self):
        memory = create_template_memory()
        comparison = ComparisonMemory(memory, memory)
        assert comparison.next_diff_address() is None
        assert comparison.previous_diff_address() is None

    def test_get_virtual_rows_simple(self):
        a = SparseMemory()
        b = SparseMemory()
        for address in (0x00, 0x1F, 0x100, 0x5000):
            b.set_byte(address, 1)
        comparison = ComparisonMemory(a, b)
        assert comparison.get_virtual_rows() == [
            DataRow(0x00, 0),
            DataRow(0x10, 0),
            GapRow(0x20, 0xFF, 0xE0, 0),
            DataRow(0x100, 0),
            GapRow(0x110, 0x4FFF, 0x4EF0, 1),
            DataRow(0x5000, 1),
        ]

    def test_get_virtual_rows_segment_threshold(self):
        a = SparseMemory()
        b = SparseMemory()
        b.set_byte(0x000, 1)
        b.set_byte(0x3F0, 1)
        b.set_byte(0x7F0, 1)
        comparison = ComparisonMemory(a, b)
        rows = [row for row in comparison.get_virtual_rows() if isinstance(row, DataRow)]
        assert rows == [DataRow(0x000, 0), DataRow(0x3F0, 0), DataRow(0x7F0, 1)]

    def test_get_virtual_rows_template(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        rows = comparison.get_virtual_rows()
        data_rows = [row.address for row in rows if isinstance(row, DataRow)]
        assert data_rows == touched_rows(set(values_a) | set(values_b))

        for previous, current in zip(rows, rows[1:]):
            if isinstance(previous, DataRow) and isinstance(current, DataRow):
                assert current.address - previous.address == BYTES_PER_ROW
            if isinstance(current, GapRow):
                assert isinstance(previous, DataRow)
                assert current.start_address == previous.address + BYTES_PER_ROW

    def test_get_virtual_rows_reproducible(self):
        values_a, values_b = create_pair()
        rows1 = ComparisonMemory(create_memory(values_a), create_memory(values_b)).get_virtual_rows()
        rows2 = ComparisonMemory(create_memory(values_a, 0x10), create_memory(values_b, 0x10)).get_virtual_rows()
        assert rows1 == rows2

    def test_get_data_segments_template(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        assert comparison.get_data_segments() == [
            DataSegment(0x00000000, 0x0000020F),
            DataSegment(0x0000FFF0, 0x0001000F),
            DataSegment(0x08000000, 0x0800012F),
            DataSegment(0x20000000, 0x2000000F),
            DataSegment(0xFFFFFFF0, 0xFFFFFFFF),
        ]

    def test_get_data_segments_properties(self):
        values_a, values_b = create_pair()
        comparison = ComparisonMemory(create_memory(values_a), create_memory(values_b))
        segments = comparison.get_data_segments()
        for segment in segments:
            assert segment.start % BYTES_PER_ROW == 0
            assert segment.size % BYTES_PER_ROW == 0
        for previous, current in zip(segments, segments[1:]):
            assert previous.end < current.start
        for address in comparison.get_diff_addresses():
            assert sum(address in segment for segment in segments) == 1

    def test_logging(self, caplog):
        values_a, values_b = create_pair()
        with caplog.at_level(logging.DEBUG, logger='hexmap.compare'):
            ComparisonMemory(create_memory(values_a), create_memory(values_b))
        assert '3 modified, 3 added, 1 removed' in caplog.text
