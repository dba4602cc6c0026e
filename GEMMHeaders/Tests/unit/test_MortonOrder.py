################################################################################
#
# Copyright (C) 2024 Advanced Micro Devices, Inc. All rights reserved.
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
################################################################################

import pytest

from GEMMHeaders.MortonOrder import mortonOrder, laneLayout, laneLayoutComment, \
    mortonOrderFunction, SimdgroupWidth, FragmentSize

def test_knownLanes():
    assert mortonOrder(0) == (0, 0)
    assert mortonOrder(1) == (2, 0)
    assert mortonOrder(2) == (0, 1)
    assert mortonOrder(7) == (2, 3)
    assert mortonOrder(8) == (4, 0)
    assert mortonOrder(16) == (0, 4)
    assert mortonOrder(26) == (4, 5)
    assert mortonOrder(31) == (6, 7)

def test_distinctBases():
    bases = [mortonOrder(lane) for lane in range(SimdgroupWidth)]
    assert len(set(bases)) == SimdgroupWidth
    for (col, row) in bases:
        assert col % 2 == 0
        assert 0 <= col < FragmentSize
        assert 0 <= row < FragmentSize

def test_coversFragment():
    grid = laneLayout()
    owners = [lane for row in grid for lane in row]
    assert None not in owners
    for lane in range(SimdgroupWidth):
        assert owners.count(lane) == 2

    # the two elements of a lane are adjacent in one row
    for row in grid:
        for col in range(0, FragmentSize, 2):
            assert row[col] == row[col + 1]

def test_layout():
    grid = laneLayout()
    assert grid[0] == [0, 0, 1, 1, 8, 8, 9, 9]
    assert grid[3] == [6, 6, 7, 7, 14, 14, 15, 15]
    assert grid[4] == [16, 16, 17, 17, 24, 24, 25, 25]
    assert grid[7] == [22, 22, 23, 23, 30, 30, 31, 31]

@pytest.mark.parametrize("lane", [-1, 32, 100])
def test_outOfRange(lane):
    with pytest.raises(ValueError):
        mortonOrder(lane)

def test_emittedText():
    comment = laneLayoutComment()
    assert "//  0  0  1  1  8  8  9  9\n" in comment
    assert "// 22 22 23 23 30 30 31 31\n" in comment

    function = mortonOrderFunction()
    assert function.startswith("METAL_FUNC static ushort2 morton_order(ushort thread_index_in_simdgroup) {\n")
    assert "  ushort N_floor_of_quadrant = (quad_id & 2) * 2; // 0 or 4\n" in function
    assert function.endswith("  return ushort2(N_in_simd, M_in_simd);\n}\n")
