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

from .AddressFormula import applyOffsetFunction
from .AddressSpace import AddressSpace
from .Common import globalParameters, SimdgroupMatrixStorageHeaderName
from .HeaderWriterBase import HeaderWriterBase
from .MemoryAccess import Action, MemoryAccessDescriptor, createMemoryAccess
from .MortonOrder import laneLayoutComment, mortonOrderFunction
from .Parallel import ParallelMap

class HeaderWriterMatrixStorage(HeaderWriterBase):
  """
  Writes 'metal_simdgroup_matrix_storage': the per-lane storage of an 8x8
  simdgroup matrix, its load/store accessors and the multiply-accumulate.
  """

  def __init__(self):
    super().__init__()

    self.state["IndentationSpaceCount"] = globalParameters["IndentationSpaceCount"]
    self.state["Actions"] = [Action.load, Action.store]
    self.state["AddressSpaces"] = AddressSpace.all()
    self.state["DecodingBF16"] = [False, True]


  def getHeaderName(self):
    return SimdgroupMatrixStorageHeaderName


  def getHeaderFileString(self):
    # this header ends in a blank line after its include guard
    return super().getHeaderFileString() + self.endLine


  def accessDescriptors(self):
    """
    One descriptor per accessor, action outermost and BF16 innermost.
    The order is part of the header's layout.
    """
    descriptors = []
    for (action, addressSpace, decodingBF16) in itertools.product( \
        self.state["Actions"], self.state["AddressSpaces"], self.state["DecodingBF16"]):
      descriptors.append(MemoryAccessDescriptor( \
          action=action, \
          addressSpace=addressSpace, \
          decodingBF16=decodingBF16, \
          indentationSpaceCount=self.state["IndentationSpaceCount"]))
    return descriptors


  def memoryAccesses(self):
    return ParallelMap(createMemoryAccess, self.accessDescriptors(), \
        "Generating matrix storage accessors", multiArg=False)


  def storageMembers(self):
    kStr = ""
    kStr += "    typedef vec<T, 64> storage_type;" + self.endLine
    kStr += "    " + self.endLine
    kStr += "    storage_type t;" + self.endLine
    kStr += "    " + self.endLine
    kStr += "    %s thread vec<T, 2>* thread_elements() thread {%s" % (self.functionStr, self.endLine)
    kStr += "      return reinterpret_cast<thread vec<T, 2>*>(&t);" + self.endLine
    kStr += "    }" + self.endLine
    kStr += "    " + self.endLine
    kStr += "    %s simdgroup_matrix_storage() thread = default;%s" % (self.functionStr, self.endLine)
    kStr += "    " + self.endLine
    kStr += "    %s simdgroup_matrix_storage(vec<T, 2> thread_elements) thread {%s" % (self.functionStr, self.endLine)
    kStr += "      *(this->thread_elements()) = thread_elements;" + self.endLine
    kStr += "    }" + self.endLine
    kStr += self.endLine
    return kStr


  def applyOffsetFunctions(self):
    kStr = ""
    for (i, addressSpace) in enumerate(self.state["AddressSpaces"]):
      if i > 0:
        kStr += "    " + self.endLine
      kStr += applyOffsetFunction(addressSpace, "    ")
    kStr += self.endLine
    return kStr


  def multiplyFunction(self):
    """
    C += A * B on the hardware 8x8 matrix unit. With accumulate == false the
    accumulator is cleared first, giving C = A * B.
    """
    kStr = ""
    kStr += "    template <typename U, typename V>" + self.endLine
    kStr += "    %s void multiply(simdgroup_matrix_storage<U> a, simdgroup_matrix_storage<V> b, bool accumulate = true) {%s" \
        % (self.functionStr, self.endLine)
    kStr += "      if (!accumulate) {" + self.endLine
    kStr += "        *(thread_elements()) = vec<T, 2>(0);" + self.endLine
    kStr += "      }" + self.endLine
    kStr += "      t = __metal_simdgroup_matrix_8x8_multiply_accumulate(a.t, b.t, t, typename simdgroup_matrix_storage<T>::storage_type());" + self.endLine
    kStr += "    }" + self.endLine
    return kStr


  def getHeaderBodyString(self):
    kStr = ""
    kStr += laneLayoutComment()
    kStr += mortonOrderFunction()
    kStr += self.endLine
    kStr += "#pragma METAL internals : enable" + self.endLine
    kStr += "namespace %s%s" % (self.namespaceStr, self.endLine)
    kStr += "{" + self.endLine
    kStr += "  template <typename T>" + self.endLine
    kStr += "  struct simdgroup_matrix_storage {" + self.endLine
    kStr += self.storageMembers()
    kStr += self.applyOffsetFunctions()

    for memoryAccess in self.memoryAccesses():
      kStr += memoryAccess
      kStr += self.endLine

    kStr += self.multiplyFunction()
    kStr += "  };" + self.endLine
    kStr += "} // namespace %s%s" % (self.namespaceStr, self.endLine)
    kStr += "#pragma METAL internals : disable" + self.endLine
    kStr += self.endLine
    return kStr
