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

import itertools

import numpy as np
import pytest

from GEMMHeaders.HeaderWriterSimdgroupEvent import ClampMode
from GEMMHeaders.MemoryAccess import AccessPath
from GEMMHeaders.ReferenceModel import MatrixStorageLane, asyncCopyElements, asyncCopyToDevice, \
    asyncCopyToThreadgroup, bfloat16Bits, floatFromBFloat16Bits, loadFragment, multiply, storeFragment

BFloatPatterns = [0x0000, 0x8000, 0x0001, 0x007F, 0x0080, 0x3F80, 0x7F7F, 0xFF7F, 0x4049]

def laneWithWords(word0, word1):
    return MatrixStorageLane(np.array([word0, word1], dtype=np.uint32).view(np.float32))

def laneWords(lane):
    return [int(w) for w in lane.registers.view(np.uint32)]

########################################
# simdgroup_event
########################################
def test_elementwiseCopy():
    src = np.arange(10, dtype=np.float32)
    dst = np.full(10, -1, dtype=np.float32)
    asyncCopyElements(dst, src, 6)
    assert list(dst) == [0, 1, 2, 3, 4, 5, -1, -1, -1, -1]

def test_copyToThreadgroupClampToEdge():
    src = np.arange(6, dtype=np.float32)
    dst = np.full(12, -1, dtype=np.float32)
    asyncCopyToThreadgroup(dst, 4, (4, 3), src, 3, (3, 2), clampMode=ClampMode.clamp_to_edge)
    assert dst.reshape(3, 4).tolist() == [
        [0, 1, 2, 2],
        [3, 4, 5, 5],
        [3, 4, 5, 5]]

def test_copyToThreadgroupClampToZero():
    src = np.arange(6, dtype=np.float32)
    dst = np.full(12, -1, dtype=np.float32)
    asyncCopyToThreadgroup(dst, 4, (4, 3), src, 3, (3, 2))
    assert dst.reshape(3, 4).tolist() == [
        [0, 1, 2, 0],
        [3, 4, 5, 0],
        [0, 0, 0, 0]]

@pytest.mark.parametrize("clampMode", list(ClampMode))
def test_copyToThreadgroupEmptySource(clampMode):
    src = np.arange(6, dtype=np.float32)
    dst = np.full(4, -1, dtype=np.float32)
    asyncCopyToThreadgroup(dst, 2, (2, 2), src, 3, (0, 2), clampMode=clampMode)
    assert dst.tolist() == [0, 0, 0, 0]

def test_copyToThreadgroupTransposed():
    src = np.arange(6, dtype=np.float32)
    expected = np.full(12, -1, dtype=np.float32)
    asyncCopyToThreadgroup(expected, 4, (4, 3), src, 3, (3, 2), clampMode=ClampMode.clamp_to_edge)

    dst = np.full(12, -1, dtype=np.float32)
    asyncCopyToThreadgroup(dst, 4, (3, 4), src, 3, (2, 3), transposeMatrix=True, \
        clampMode=ClampMode.clamp_to_edge)
    assert dst.tolist() == expected.tolist()

def test_copyToDeviceTruncates():
    src = np.arange(6, dtype=np.float32)
    dst = np.full(16, -1, dtype=np.float32)
    asyncCopyToDevice(dst, 4, (4, 4), src, 2, (2, 3))
    assert dst.reshape(4, 4).tolist() == [
        [0, 1, -1, -1],
        [2, 3, -1, -1],
        [4, 5, -1, -1],
        [-1, -1, -1, -1]]

def test_copyToDeviceSmallerDestination():
    src = np.arange(9, dtype=np.float32)
    dst = np.full(4, -1, dtype=np.float32)
    asyncCopyToDevice(dst, 2, (2, 2), src, 3, (3, 3))
    assert dst.tolist() == [0, 1, 3, 4]

@pytest.mark.parametrize("clampMode,expected", [
    (ClampMode.clamp_to_edge, [[1, 2, 2, 2], [3, 4, 4, 4], [3, 4, 4, 4], [3, 4, 4, 4]]),
    (ClampMode.clamp_to_zero, [[1, 2, 0, 0], [3, 4, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])])
def test_copyToThreadgroupPadsLargerTile(clampMode, expected):
    src = np.array([1, 2, 3, 4], dtype=np.float32)
    dst = np.full(16, -1, dtype=np.float32)
    asyncCopyToThreadgroup(dst, 4, (4, 4), src, 2, (2, 2), clampMode=clampMode)
    assert dst.reshape(4, 4).tolist() == expected

def test_copyToDeviceFromLargerTile():
    src = np.arange(16, dtype=np.float32)
    dst = np.full(4, -1, dtype=np.float32)
    asyncCopyToDevice(dst, 2, (2, 2), src, 4, (4, 4))
    assert dst.tolist() == [0, 1, 4, 5]

########################################
# simdgroup_matrix_storage
########################################
def test_lanePaths():
    src = np.arange(64, dtype=np.float32)
    lane = MatrixStorageLane()
    assert lane.load(src, 8, (2, 1)) == AccessPath.OnePart
    assert lane.registers.tolist() == [10, 11]
    assert lane.load(src, 7, (2, 1)) == AccessPath.TwoPart
    assert lane.registers.tolist() == [9, 10]
    assert lane.load(src, 8, (2, 1), True) == AccessPath.TwoPartTransposed
    assert lane.registers.tolist() == [17, 25]

    dst = np.zeros(64, dtype=np.float32)
    assert lane.store(dst, 8, (0, 0)) == AccessPath.OnePart
    assert lane.store(dst, 7, (0, 1)) == AccessPath.TwoPart
    assert lane.store(dst, 8, (4, 4), True) == AccessPath.TwoPartTransposed
    assert dst[0:2].tolist() == [17, 25]
    assert dst[7:9].tolist() == [17, 25]
    assert dst[36] == 17 and dst[44] == 25

    bits = np.zeros(64, dtype=np.uint16)
    assert lane.loadBFloat(bits, 7, (0, 0)) == AccessPath.OnePart
    assert lane.loadBFloat(bits, 8, (0, 0), True) == AccessPath.TwoPartTransposed
    assert lane.storeBFloat(bits, 8, (0, 0)) == AccessPath.TwoPart
    assert lane.storeBFloat(bits, 7, (0, 0), True) == AccessPath.TwoPartTransposed

def test_fragmentIdentity():
    src = np.arange(64, dtype=np.float32)
    (lanes, fragment) = loadFragment(src, 8)
    assert fragment.tolist() == src.reshape(8, 8).tolist()

    (lanes, fragment) = loadFragment(src, 8, transposeMatrix=True)
    assert fragment.tolist() == src.reshape(8, 8).T.tolist()

def test_fragmentOddStride():
    src = np.arange(9 * 9, dtype=np.float32)
    (lanes, fragment) = loadFragment(src, 9, (1, 1))
    assert fragment.tolist() == src.reshape(9, 9)[1:, 1:].tolist()

@pytest.mark.parametrize("elementsPerRow,transposeMatrix", itertools.product([8, 9], [False, True]))
def test_fragmentStoreRoundTrip(elementsPerRow, transposeMatrix):
    src = np.arange(8 * elementsPerRow, dtype=np.float32) + 1
    (lanes, fragment) = loadFragment(src, elementsPerRow, transposeMatrix=transposeMatrix)

    dst = np.zeros_like(src)
    storeFragment(lanes, dst, elementsPerRow, transposeMatrix=transposeMatrix)
    for row in range(8):
        for col in range(8):
            address = row * elementsPerRow + col
            assert dst[address] == src[address]
    # columns past the fragment are untouched
    for row in range(8):
        assert dst[row * elementsPerRow + 8:(row + 1) * elementsPerRow].tolist() == \
            [0] * (elementsPerRow - 8)

########################################
# BF16
########################################
def test_bfloatBits():
    assert bfloat16Bits([1.0, -2.0, 0.0]).tolist() == [0x3F80, 0xC000, 0x0000]
    assert floatFromBFloat16Bits([0x3F80, 0x4049]).tolist() == [1.0, 3.140625]
    values = floatFromBFloat16Bits(BFloatPatterns)
    assert bfloat16Bits(values).tolist() == BFloatPatterns

@pytest.mark.parametrize("elementsPerRow,transposeMatrix", itertools.product([4, 5], [False, True]))
def test_bfloatRoundTrip(elementsPerRow, transposeMatrix):
    for (first, second) in itertools.product(BFloatPatterns, BFloatPatterns):
        src = np.zeros(16, dtype=np.uint16)
        if transposeMatrix:
            addresses = [0, elementsPerRow]
        else:
            addresses = [0, 1]
        src[addresses[0]] = first
        src[addresses[1]] = second

        lane = laneWithWords(0x1234ABCD, 0x5678EF01)
        lane.loadBFloat(src, elementsPerRow, (0, 0), transposeMatrix)
        # the loaded pair reads back as the bfloats of the two registers
        assert bfloat16Bits(lane.registers).tolist() == [first, second]

        dst = np.zeros(16, dtype=np.uint16)
        lane.storeBFloat(dst, elementsPerRow, (0, 0), transposeMatrix)
        assert [int(dst[a]) for a in addresses] == [first, second]
        assert np.count_nonzero(np.delete(dst, addresses)) == 0

def test_bfloatTwoPartLoadKeepsLowHalves():
    src = np.array([0x3F80, 0, 0, 0, 0x4049, 0, 0, 0], dtype=np.uint16)
    lane = laneWithWords(0x1234ABCD, 0x5678EF01)
    assert lane.loadBFloat(src, 4, (0, 0), True) == AccessPath.TwoPartTransposed
    assert laneWords(lane) == [0x3F80ABCD, 0x4049EF01]

def test_bfloatPackedLoad():
    src = np.array([0x3F80, 0x4049, 0, 0], dtype=np.uint16)
    lane = laneWithWords(0x1234ABCD, 0x5678EF01)
    assert lane.loadBFloat(src, 4, (0, 0)) == AccessPath.OnePart
    # the whole pair lands in the second register, the first keeps its low half
    assert laneWords(lane) == [0x3F80ABCD, 0x40493F80]

def test_bfloatStoreLeavesRegisters():
    lane = laneWithWords(0x3F80ABCD, 0x4049EF01)
    dst = np.zeros(8, dtype=np.uint16)
    lane.storeBFloat(dst, 4, (0, 0))
    assert dst[0:2].tolist() == [0x3F80, 0x4049]
    assert laneWords(lane) == [0x3F80ABCD, 0x4049EF01]

########################################
# multiply
########################################
def test_multiply():
    a = np.eye(8, dtype=np.float32) * 2
    b = np.arange(64, dtype=np.float32).reshape(8, 8)
    c = np.ones((8, 8), dtype=np.float32)
    assert multiply(a, b, c).tolist() == (b * 2 + 1).tolist()
    assert multiply(a, b, c, accumulate=False).tolist() == (b * 2).tolist()
    assert c.tolist() == np.ones((8, 8)).tolist()
