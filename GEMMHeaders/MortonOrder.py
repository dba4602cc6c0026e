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
# Lane layout of an 8x8 simdgroup matrix
#
# Each of the 32 lanes owns two horizontally adjacent elements of the
# fragment. The base coordinate of a lane's pair follows Morton order, which
# keeps neighbouring lanes on neighbouring addresses.
################################################################################

SimdgroupWidth = 32
FragmentSize = 8
ElementsPerLane = 2

QuadrantSpanM = 4
ThreadsPerQuadrant = 8

def mortonOrder(laneIndex):
  """
  Returns the (col, row) base coordinate owned by `laneIndex`.
  The lane also owns (col+1, row).
  """
  if not 0 <= laneIndex < SimdgroupWidth:
    raise ValueError("lane index %s outside of [0, %u)" % (laneIndex, SimdgroupWidth))

  quadId = laneIndex // 4

  mFloorOfQuadrant = (quadId // 4) * QuadrantSpanM
  mInQuadrant = (laneIndex // 2) % (ThreadsPerQuadrant // 2)
  mInSimd = mFloorOfQuadrant + mInQuadrant

  nFloorOfQuadrant = (quadId & 2) * 2
  nInQuadrant = (laneIndex % 2) * 2
  nInSimd = nFloorOfQuadrant + nInQuadrant

  return (nInSimd, mInSimd)

def laneLayout():
  """
  8x8 grid (row-major, list of rows) holding the lane that owns each element.
  """
  grid = [[None] * FragmentSize for _ in range(FragmentSize)]
  for lane in range(SimdgroupWidth):
    (col, row) = mortonOrder(lane)
    for i in range(ElementsPerLane):
      grid[row][col + i] = lane
  return grid

def laneLayoutComment():
  s = "// The layout of threads within a SIMD matrix.\n"
  s += "//\n"
  for row in laneLayout():
    s += "// " + " ".join(["%2u" % lane for lane in row]) + "\n"
  s += "//\n"
  s += "// This is Morton order, a method for coalescing data accesses. It is used\n"
  s += "// in a variety of contexts, from ray tracing acceleration structures, to\n"
  s += "// nodal-point Laplacians, to sorting large lattices of atoms.\n"
  s += "//\n"
  s += "// Source: https://patents.google.com/patent/US11256518B2\n"
  return s

def mortonOrderFunction():
  """Metal definition of morton_order, mirroring mortonOrder() above."""
  s = ""
  s += "METAL_FUNC static ushort2 morton_order(ushort thread_index_in_simdgroup) {\n"
  s += "  ushort lane_id = thread_index_in_simdgroup;\n"
  s += "  ushort quad_id = lane_id / 4;\n"
  s += "  \n"
  s += "  constexpr ushort QUADRANT_SPAN_M = %u;\n" % QuadrantSpanM
  s += "  constexpr ushort THREADS_PER_QUADRANT = %u;\n" % ThreadsPerQuadrant
  s += "  ushort M_floor_of_quadrant = (quad_id / 4) * QUADRANT_SPAN_M;\n"
  s += "  ushort M_in_quadrant = (lane_id / 2) % (THREADS_PER_QUADRANT / 2);\n"
  s += "  ushort M_in_simd = M_floor_of_quadrant + M_in_quadrant;\n"
  s += "  \n"
  s += "  ushort N_floor_of_quadrant = (quad_id & 2) * 2; // 0 or 4\n"
  s += "  ushort N_in_quadrant = (lane_id % 2) * 2; // 0 or 2\n"
  s += "  ushort N_in_simd = N_floor_of_quadrant + N_in_quadrant;\n"
  s += "  \n"
  s += "  return ushort2(N_in_simd, M_in_simd);\n"
  s += "}\n"
  return s
