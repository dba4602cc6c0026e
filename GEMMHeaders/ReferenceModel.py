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

################################################################################
# Reference Model
#
# Host-side numpy model of what the emitted Metal primitives do. Memory is a
# flat numpy array, a lane's registers are a float32 array of two elements.
# The model goes through the same address formula and branch table as the
# generator, so it checks the generated code's contract without a GPU.
#
# BF16 register handling is expressed with shifts and masks on the 32-bit
# words of the registers. Lane i of the bfloat4 register view is:
#   lane 0: word 0 bits 15..0     lane 1: word 0 bits 31..16
#   lane 2: word 1 bits 15..0     lane 3: word 1 bits 31..16
################################################################################

import numpy as np

from .AddressFormula import elementAddress
from .HeaderWriterSimdgroupEvent import ClampMode
from .MemoryAccess import AccessPath, Action, selectAccessPath
from .MortonOrder import ElementsPerLane, FragmentSize, SimdgroupWidth, mortonOrder

LowHalf = np.uint32(0x0000FFFF)
HighHalf = np.uint32(0xFFFF0000)

########################################
# BF16 bit patterns
########################################
def bfloat16Bits(values):
  """Upper half-words of float32 values: the bfloat each register holds."""
  words = np.asarray(values, dtype=np.float32).view(np.uint32)
  return (words >> np.uint32(16)).astype(np.uint16)

def floatFromBFloat16Bits(bits):
  """float32 values whose upper half-words are `bits` and lower half-words zero."""
  words = np.asarray(bits, dtype=np.uint16).astype(np.uint32) << np.uint32(16)
  return words.view(np.float32)


########################################
# simdgroup_event
########################################
def asyncCopyElements(dst, src, nElements):
  for i in range(nElements):
    dst[i] = src[i]

def _tileDimensions(dstTileDimensions, srcTileDimensions, transposeMatrix):
  (dstX, dstY) = dstTileDimensions
  (srcX, srcY) = srcTileDimensions
  if transposeMatrix:
    return ((dstY, dstX), (srcY, srcX))
  return ((dstX, dstY), (srcX, srcY))

def asyncCopyToThreadgroup(dst, dstElementsPerRow, dstTileDimensions, \
    src, srcElementsPerRow, srcTileDimensions, \
    transposeMatrix=False, clampMode=ClampMode.clamp_to_zero):
  """
  device -> threadgroup tile copy. Every destination cell of the tile is
  written; cells outside the source tile are clamped or zeroed.
  """
  ((dstX, dstY), (srcX, srcY)) = _tileDimensions(dstTileDimensions, srcTileDimensions, transposeMatrix)
  clampToEdge = clampMode == ClampMode.clamp_to_edge and srcX > 0 and srcY > 0

  for y in range(dstY):
    for x in range(dstX):
      dstIndex = y * dstElementsPerRow + x
      if x < srcX and y < srcY:
        dst[dstIndex] = src[y * srcElementsPerRow + x]
      elif clampToEdge:
        sx = min(x, srcX - 1)
        sy = min(y, srcY - 1)
        dst[dstIndex] = src[sy * srcElementsPerRow + sx]
      else:
        dst[dstIndex] = 0

def asyncCopyToDevice(dst, dstElementsPerRow, dstTileDimensions, \
    src, srcElementsPerRow, srcTileDimensions, transposeMatrix=False):
  """
  threadgroup -> device tile copy. Only the overlap of the two tiles is
  written; everything else in dst is left alone.
  """
  ((dstX, dstY), (srcX, srcY)) = _tileDimensions(dstTileDimensions, srcTileDimensions, transposeMatrix)
  tileX = min(dstX, srcX)
  tileY = min(dstY, srcY)

  for y in range(tileY):
    for x in range(tileX):
      dst[y * dstElementsPerRow + x] = src[y * srcElementsPerRow + x]


########################################
# simdgroup_matrix_storage, one lane
########################################
class MatrixStorageLane:
  """
  The two elements of an 8x8 fragment held by one lane.
  Plain accessors convert between the memory type and float32; the BF16
  accessors splice half-words without any numeric conversion.
  """

  def __init__(self, registers=None):
    if registers is None:
      registers = np.zeros(ElementsPerLane, dtype=np.float32)
    self.registers = np.array(registers, dtype=np.float32)
    assert self.registers.shape == (ElementsPerLane,)

  def _addresses(self, elementsPerRow, matrixOrigin, transposed):
    return [elementAddress(matrixOrigin, elementsPerRow, i, transposed) for i in range(ElementsPerLane)]

  def _words(self):
    return self.registers.view(np.uint32).copy()

  def _setWords(self, words):
    self.registers = np.asarray(words, dtype=np.uint32).view(np.float32).copy()

  def load(self, src, elementsPerRow, matrixOrigin, transposeMatrix=False):
    path = selectAccessPath(Action.load, False, transposeMatrix, elementsPerRow)
    if path == AccessPath.OnePart:
      address = elementAddress(matrixOrigin, elementsPerRow)
      self.registers = np.asarray(src[address:address + 2], dtype=np.float32).copy()
    else:
      addresses = self._addresses(elementsPerRow, matrixOrigin, path == AccessPath.TwoPartTransposed)
      self.registers = np.array([src[a] for a in addresses], dtype=np.float32)
    return path

  def store(self, dst, elementsPerRow, matrixOrigin, transposeMatrix=False):
    path = selectAccessPath(Action.store, False, transposeMatrix, elementsPerRow)
    values = self.registers.astype(dst.dtype)
    if path == AccessPath.OnePart:
      address = elementAddress(matrixOrigin, elementsPerRow)
      dst[address:address + 2] = values
    else:
      addresses = self._addresses(elementsPerRow, matrixOrigin, path == AccessPath.TwoPartTransposed)
      for (a, value) in zip(addresses, values):
        dst[a] = value
    return path

  def loadBFloat(self, src, elementsPerRow, matrixOrigin, transposeMatrix=False):
    """`src` holds raw bfloat bit patterns (uint16)."""
    path = selectAccessPath(Action.load, True, transposeMatrix, elementsPerRow)
    words = self._words()
    if path == AccessPath.OnePart:
      address = elementAddress(matrixOrigin, elementsPerRow)
      memory0 = np.uint32(src[address])
      memory1 = np.uint32(src[address + 1])
      # packed_bfloat2 as one 32-bit word lands in register word 1 (lanes 2, 3)
      words[1] = memory0 | (memory1 << np.uint32(16))
      # element 0 goes to lane 1
      words[0] = (words[0] & LowHalf) | (memory0 << np.uint32(16))
    else:
      addresses = self._addresses(elementsPerRow, matrixOrigin, path == AccessPath.TwoPartTransposed)
      memory0 = np.uint32(src[addresses[0]])
      memory1 = np.uint32(src[addresses[1]])
      words[0] = (words[0] & LowHalf) | (memory0 << np.uint32(16))
      words[1] = (words[1] & LowHalf) | (memory1 << np.uint32(16))
    self._setWords(words)
    return path

  def storeBFloat(self, dst, elementsPerRow, matrixOrigin, transposeMatrix=False):
    """Writes raw bfloat bit patterns into `dst` (uint16)."""
    path = selectAccessPath(Action.store, True, transposeMatrix, elementsPerRow)
    assert path != AccessPath.OnePart
    words = self._words()
    # lane 2 = lane 1, then lanes 2 and 3 are written out
    words[1] = (words[1] & HighHalf) | (words[0] >> np.uint32(16))
    lane2 = np.uint16(words[1] & LowHalf)
    lane3 = np.uint16(words[1] >> np.uint32(16))
    addresses = self._addresses(elementsPerRow, matrixOrigin, path == AccessPath.TwoPartTransposed)
    dst[addresses[0]] = lane2
    dst[addresses[1]] = lane3
    return path


########################################
# whole simdgroup
########################################
def simdgroupLanes():
  return [MatrixStorageLane() for _ in range(SimdgroupWidth)]

def loadFragment(src, elementsPerRow, matrixOrigin=(0, 0), transposeMatrix=False):
  """
  All 32 lanes load their elements, each at matrixOrigin + morton_order(lane).
  Returns the lanes and the 8x8 fragment they hold together.
  """
  lanes = simdgroupLanes()
  fragment = np.zeros((FragmentSize, FragmentSize), dtype=np.float32)
  for (lane, storage) in enumerate(lanes):
    (col, row) = mortonOrder(lane)
    origin = (matrixOrigin[0] + col, matrixOrigin[1] + row)
    storage.load(src, elementsPerRow, origin, transposeMatrix)
    fragment[row, col:col + ElementsPerLane] = storage.registers
  return (lanes, fragment)

def storeFragment(lanes, dst, elementsPerRow, matrixOrigin=(0, 0), transposeMatrix=False):
  for (lane, storage) in enumerate(lanes):
    (col, row) = mortonOrder(lane)
    origin = (matrixOrigin[0] + col, matrixOrigin[1] + row)
    storage.store(dst, elementsPerRow, origin, transposeMatrix)

def multiply(a, b, c, accumulate=True):
  """8x8 fragments: returns a @ b + c, or a @ b when not accumulating."""
  if not accumulate:
    c = np.zeros_like(c)
  return np.matmul(a, b) + c
