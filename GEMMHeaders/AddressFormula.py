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
# Address Formula
#
# Element (x, y) of a matrix with `elements_per_row` elements per row lives at
#   y * elements_per_row + x        when stored as-is
#   x * elements_per_row + y        when stored transposed
# The same formula backs the host-side functions, the accessor address lines
# and the apply_offset helpers.
################################################################################

def elementAddress(origin, elementsPerRow, offset=0, transposed=False):
  """
  Element offset of the `offset`-th element owned by a lane whose pair starts
  at `origin` = (x, y). Lanes own elements (x, y) and (x+1, y), so `offset` is
  0 or 1 for the accessors; apply_offset uses offset 0.
  """
  (x, y) = origin
  if transposed:
    return (x + offset) * elementsPerRow + y
  else:
    return y * elementsPerRow + (x + offset)

def addressExpression(addressSpace, offset, transposed):
  """
  Metal expression for elementAddress() inside a load/store accessor.
  Origin components are widened to the address space's offset type before
  the multiply so that device addresses do not wrap at 16 bits.
  """
  offsetType = addressSpace.offsetType()
  lineY = "%s(matrix_origin.y)" % offsetType
  lineX = "%s(matrix_origin.x + %u)" % (offsetType, offset)

  if transposed:
    return "%s * elements_per_row + %s" % (lineX, lineY)
  else:
    return "%s * elements_per_row + %s" % (lineY, lineX)

def applyOffsetFunction(addressSpace, indentation=""):
  """
  Static helper that moves a base pointer to the element at a full-width
  origin. Only the row term is widened, and only for device memory.
  """
  def rowTerm(expression):
    if addressSpace.pointerOffsetCast():
      return "%s(%s)" % (addressSpace.pointerOffsetCast(), expression)
    return expression

  keyword = addressSpace.keyword()
  s = ""
  s += "%sMETAL_FUNC static %s T* apply_offset(%s T *src, %s elements_per_row, %s matrix_origin, bool transpose_matrix = false) {\n" \
      % (indentation, keyword, keyword, addressSpace.offsetType(), addressSpace.originType())
  s += "%s  if (transpose_matrix) {\n" % indentation
  s += "%s    return src + %s + matrix_origin.y;\n" % (indentation, rowTerm("matrix_origin.x * elements_per_row"))
  s += "%s  } else {\n" % indentation
  s += "%s    return src + %s + matrix_origin.x;\n" % (indentation, rowTerm("matrix_origin.y * elements_per_row"))
  s += "%s  }\n" % indentation
  s += "%s}\n" % indentation
  return s
