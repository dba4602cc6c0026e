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

from enum import IntEnum

from .Common import SimdgroupEventHeaderName
from .HeaderWriterBase import HeaderWriterBase

class ClampMode(IntEnum):
  """Fill rule for destination cells that have no in-bounds source cell."""
  clamp_to_zero = 0
  clamp_to_edge = 1

class HeaderWriterSimdgroupEvent(HeaderWriterBase):
  """
  Writes 'metal_simdgroup_event': tile copies between device and threadgroup
  memory behind the simdgroup_event async copy interface.

  Every copy here is synchronous and wait() does nothing. The async shape of
  the interface is kept so kernels written against it compile unchanged; no
  copy overlaps with compute.
  """

  def __init__(self):
    super().__init__()

    self.state["ClampModes"] = [(mode.name, int(mode)) for mode in ClampMode]


  def getHeaderName(self):
    return SimdgroupEventHeaderName


  def clampModeEnum(self):
    kStr = ""
    kStr += "  enum class simdgroup_async_copy_clamp_mode {" + self.endLine
    modes = self.state["ClampModes"]
    for (i, (name, value)) in enumerate(modes):
      separator = "," if i < len(modes) - 1 else ""
      kStr += "    %s = %u%s%s" % (name, value, separator, self.endLine)
    kStr += "  };" + self.endLine
    return kStr


  ##############################################################################
  # Elementwise copy, either direction
  ##############################################################################
  def elementwiseCopy(self, dstSpace, srcSpace):
    kStr = ""
    kStr += "    template <typename T>" + self.endLine
    kStr += "    %s void async_copy(%s" % (self.functionStr, self.endLine)
    kStr += "      %s T *dst,%s" % (dstSpace, self.endLine)
    kStr += "      const %s T *src,%s" % (srcSpace, self.endLine)
    kStr += "      ulong n_elements" + self.endLine
    kStr += "    ) thread {" + self.endLine
    kStr += "      for (ulong i = 0; i < n_elements; ++i) {" + self.endLine
    kStr += "        dst[i] = src[i];" + self.endLine
    kStr += "      }" + self.endLine
    kStr += "    }" + self.endLine
    return kStr


  def transposeTileDimensions(self):
    kStr = ""
    kStr += "      if (transpose_matrix) {" + self.endLine
    kStr += "        src_tile_dimensions = src_tile_dimensions.yx;" + self.endLine
    kStr += "        dst_tile_dimensions = dst_tile_dimensions.yx;" + self.endLine
    kStr += "      }" + self.endLine
    return kStr


  ##############################################################################
  # device -> threadgroup tile, clamped to the source tile
  ##############################################################################
  def tileCopyToThreadgroup(self):
    kStr = ""
    kStr += "    template <typename T>" + self.endLine
    kStr += "    %s void async_copy(%s" % (self.functionStr, self.endLine)
    kStr += "      // Destination" + self.endLine
    kStr += "      threadgroup T *dst," + self.endLine
    kStr += "      ushort dst_elements_per_row," + self.endLine
    kStr += "      ushort2 dst_tile_dimensions," + self.endLine
    kStr += self.endLine
    kStr += "      // Source" + self.endLine
    kStr += "      const device T *src," + self.endLine
    kStr += "      uint src_elements_per_row," + self.endLine
    kStr += "      ushort2 src_tile_dimensions," + self.endLine
    kStr += self.endLine
    kStr += "      // Other" + self.endLine
    kStr += "      bool transpose_matrix = false," + self.endLine
    kStr += "      simdgroup_async_copy_clamp_mode clamp_mode =" + self.endLine
    kStr += "        simdgroup_async_copy_clamp_mode::%s%s" % (ClampMode.clamp_to_zero.name, self.endLine)
    kStr += "    ) thread {" + self.endLine
    kStr += "      // Tile dimensions are logical; a transposed matrix is walked in" + self.endLine
    kStr += "      // memory order, so only the iteration bounds swap." + self.endLine
    kStr += self.transposeTileDimensions()
    kStr += self.endLine
    kStr += "      uint dst_stride = uint(dst_elements_per_row);" + self.endLine
    kStr += "      uint src_stride = uint(src_elements_per_row);" + self.endLine
    kStr += self.endLine
    kStr += "      for (ushort y = 0; y < dst_tile_dimensions.y; ++y) {" + self.endLine
    kStr += "        for (ushort x = 0; x < dst_tile_dimensions.x; ++x) {" + self.endLine
    kStr += "          uint dst_index = uint(y) * dst_stride + uint(x);" + self.endLine
    kStr += self.endLine
    kStr += "          bool in_bounds = (x < src_tile_dimensions.x) && (y < src_tile_dimensions.y);" + self.endLine
    kStr += "          if (in_bounds) {" + self.endLine
    kStr += "            uint src_index = uint(y) * src_stride + uint(x);" + self.endLine
    kStr += "            dst[dst_index] = src[src_index];" + self.endLine
    kStr += "          } else if (clamp_mode == simdgroup_async_copy_clamp_mode::%s &&%s" % (ClampMode.clamp_to_edge.name, self.endLine)
    kStr += "                     src_tile_dimensions.x > 0 && src_tile_dimensions.y > 0) {" + self.endLine
    kStr += "            ushort sx = min(x, ushort(src_tile_dimensions.x - 1));" + self.endLine
    kStr += "            ushort sy = min(y, ushort(src_tile_dimensions.y - 1));" + self.endLine
    kStr += "            uint src_index = uint(sy) * src_stride + uint(sx);" + self.endLine
    kStr += "            dst[dst_index] = src[src_index];" + self.endLine
    kStr += "          } else {" + self.endLine
    kStr += "            dst[dst_index] = T(0);" + self.endLine
    kStr += "          }" + self.endLine
    kStr += "        }" + self.endLine
    kStr += "      }" + self.endLine
    kStr += "    }" + self.endLine
    return kStr


  ##############################################################################
  # threadgroup -> device tile, truncated to the overlap
  ##############################################################################
  def tileCopyToDevice(self):
    kStr = ""
    kStr += "    template <typename T>" + self.endLine
    kStr += "    %s void async_copy(%s" % (self.functionStr, self.endLine)
    kStr += "      // Destination" + self.endLine
    kStr += "      device T *dst," + self.endLine
    kStr += "      uint dst_elements_per_row," + self.endLine
    kStr += "      ushort2 dst_tile_dimensions," + self.endLine
    kStr += self.endLine
    kStr += "      // Source" + self.endLine
    kStr += "      const threadgroup T *src," + self.endLine
    kStr += "      ushort src_elements_per_row," + self.endLine
    kStr += "      ushort2 src_tile_dimensions," + self.endLine
    kStr += self.endLine
    kStr += "      // Other" + self.endLine
    kStr += "      bool transpose_matrix = false" + self.endLine
    kStr += "    ) thread {" + self.endLine
    kStr += self.transposeTileDimensions()
    kStr += self.endLine
    kStr += "      // Only the overlap of both tiles is written." + self.endLine
    kStr += "      ushort tile_x = min(dst_tile_dimensions.x, src_tile_dimensions.x);" + self.endLine
    kStr += "      ushort tile_y = min(dst_tile_dimensions.y, src_tile_dimensions.y);" + self.endLine
    kStr += self.endLine
    kStr += "      uint dst_stride = dst_elements_per_row;" + self.endLine
    kStr += "      uint src_stride = uint(src_elements_per_row);" + self.endLine
    kStr += self.endLine
    kStr += "      for (ushort y = 0; y < tile_y; ++y) {" + self.endLine
    kStr += "        for (ushort x = 0; x < tile_x; ++x) {" + self.endLine
    kStr += "          uint dst_index = uint(y) * dst_stride + uint(x);" + self.endLine
    kStr += "          uint src_index = uint(y) * src_stride + uint(x);" + self.endLine
    kStr += "          dst[dst_index] = src[src_index];" + self.endLine
    kStr += "        }" + self.endLine
    kStr += "      }" + self.endLine
    kStr += "    }" + self.endLine
    return kStr


  def waitFunction(self):
    kStr = ""
    kStr += "    %s static void wait(%s" % (self.functionStr, self.endLine)
    kStr += "      int /*count*/," + self.endLine
    kStr += "      thread simdgroup_event* /*events*/" + self.endLine
    kStr += "    ) {" + self.endLine
    kStr += "      // Copies complete before async_copy returns; nothing to wait for." + self.endLine
    kStr += "    }" + self.endLine
    return kStr


  def getHeaderBodyString(self):
    kStr = ""
    kStr += "namespace %s%s" % (self.namespaceStr, self.endLine)
    kStr += "{" + self.endLine
    kStr += self.clampModeEnum()
    kStr += self.endLine
    kStr += "  // Synchronous implementation of the simdgroup_event interface." + self.endLine
    kStr += "  // async_copy performs the whole copy before returning." + self.endLine
    kStr += "  struct simdgroup_event {" + self.endLine
    kStr += "    %s simdgroup_event() thread {}%s" % (self.functionStr, self.endLine)
    kStr += self.endLine
    kStr += self.elementwiseCopy("threadgroup", "device")
    kStr += self.endLine
    kStr += self.elementwiseCopy("device", "threadgroup")
    kStr += self.endLine
    kStr += self.tileCopyToThreadgroup()
    kStr += self.endLine
    kStr += self.tileCopyToDevice()
    kStr += self.endLine
    kStr += self.waitFunction()
    kStr += "  };" + self.endLine
    kStr += "} // namespace %s%s" % (self.namespaceStr, self.endLine)
    kStr += self.endLine
    return kStr
