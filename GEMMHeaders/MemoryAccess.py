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
# Matrix Storage Memory Access
#
# Writes the load/store member functions of simdgroup_matrix_storage.
#
# How the variants relate:
# - device takes a 'uint' elements_per_row, threadgroup a 'ushort' one
# - both take a 'ushort2' matrix_origin; the 32-bit part of the address was
#   already applied by apply_offset, the 16-bit part is expected to be a
#   compile-time constant once the GEMM loop is unrolled
# - transposed accesses always touch two separate elements, one per line
# - address fragments are widened to the offset type of the address space
#
# BF16 is stored in memory as 'bfloat' and held in registers as 'float'.
# A float whose low 16 bits are ignored is a bfloat in its high half, so
# decoding is a splice of the bfloat into the upper half-word of each float
# (lanes 1 and 3 of a bfloat4 view of the two floats), and encoding reads
# those same half-words back out.
################################################################################

from enum import Enum

from .AddressFormula import addressExpression
from .AddressSpace import AddressSpace
from .Code import ConditionalChain, Module, PackedAccess, ScalarAccess, Statement
from .Common import InvalidDescriptor

class Action(Enum):
  load = "load"
  store = "store"

class AccessPath(Enum):
  """Code path an accessor takes at runtime."""
  TwoPartTransposed = "TwoPartTransposed"   # two scalar accesses, transposed addresses
  TwoPart = "TwoPart"                       # two scalar accesses
  OnePart = "OnePart"                       # one packed 2-wide access

class MemoryAccessDescriptor:
  """
  Describes one accessor variant. Every field must be set before the
  descriptor reaches createMemoryAccess.
  """
  Fields = ["action", "addressSpace", "decodingBF16", "indentationSpaceCount"]

  def __init__(self, action=None, addressSpace=None, decodingBF16=None, indentationSpaceCount=None):
    self.action = action
    self.addressSpace = addressSpace
    self.decodingBF16 = decodingBF16
    self.indentationSpaceCount = indentationSpaceCount

  def missingFields(self):
    return [field for field in self.Fields if getattr(self, field) is None]

  def isComplete(self):
    return len(self.missingFields()) == 0

  def validate(self):
    missing = self.missingFields()
    if missing:
      raise InvalidDescriptor("Descriptor was incomplete: %s unset." % ", ".join(missing))
    if not isinstance(self.action, Action):
      raise InvalidDescriptor("Descriptor action %r is not an Action." % (self.action,))
    if not isinstance(self.addressSpace, AddressSpace):
      raise InvalidDescriptor("Descriptor addressSpace %r is not an AddressSpace." % (self.addressSpace,))
    if not isinstance(self.decodingBF16, bool):
      raise InvalidDescriptor("Descriptor decodingBF16 %r is not a bool." % (self.decodingBF16,))
    if isinstance(self.indentationSpaceCount, bool) or not isinstance(self.indentationSpaceCount, int):
      raise InvalidDescriptor("Descriptor indentationSpaceCount %r is not an int." % (self.indentationSpaceCount,))
    if self.indentationSpaceCount < 0:
      raise InvalidDescriptor("Descriptor indentationSpaceCount %s is negative." % self.indentationSpaceCount)

  def functionName(self):
    return self.action.value + ("_bfloat" if self.decodingBF16 else "")

  def __str__(self):
    return "%s_%s" % (self.functionName(), self.addressSpace)

  def __repr__(self):
    return "MemoryAccessDescriptor(%s)" % ", ".join( \
        ["%s=%r" % (field, getattr(self, field)) for field in self.Fields])


def selectAccessPath(action, decodingBF16, transpose, elementsPerRow):
  """
  Host-side statement of the branch each accessor takes. The emitted
  conditionals implement exactly this table.

  BF16 stores never take the packed path: writing both bfloats at once
  would need them reordered first, which is not a single store.
  """
  if transpose:
    return AccessPath.TwoPartTransposed
  if decodingBF16:
    if action == Action.load:
      return AccessPath.OnePart
    return AccessPath.TwoPart
  if elementsPerRow % 2 != 0:
    return AccessPath.TwoPart
  return AccessPath.OnePart


class MemoryAccessWriter:

  def __init__(self, descriptor):
    descriptor.validate()
    self.action = descriptor.action
    self.addressSpace = descriptor.addressSpace
    self.decodingBF16 = descriptor.decodingBF16
    self.indentation = " " * descriptor.indentationSpaceCount
    self.functionName = descriptor.functionName()

    self.isLoad = self.action == Action.load
    self.keyword = self.addressSpace.keyword()
    self.offsetType = self.addressSpace.offsetType()


  def arguments(self):
    dataType = "bfloat" if self.decodingBF16 else "U"
    arguments = []
    if self.isLoad:
      arguments.append("const %s %s *src" % (self.keyword, dataType))
    else:
      arguments.append("%s %s *dst" % (self.keyword, dataType))
    arguments.append("%s elements_per_row" % self.offsetType)
    arguments.append("ushort2 matrix_origin")
    arguments.append("bool transpose_matrix = false")
    return arguments


  def functionSignature(self):
    kStr = ""
    if self.decodingBF16:
      kStr += "%s// WARNING: 'T' must be 'float'.\n" % self.indentation
    else:
      kStr += "%stemplate <typename U>\n" % self.indentation
    kStr += "%sMETAL_FUNC void %s(%s) {\n" \
        % (self.indentation, self.functionName, ", ".join(self.arguments()))
    return kStr


  ##############################################################################
  # Two separate element accesses
  ##############################################################################
  def twoPartAccess(self, transposed):
    statements = []
    for laneId in range(0, 2):
      statements.append(Statement("%s address%u = %s" \
          % (self.offsetType, laneId, addressExpression(self.addressSpace, laneId, transposed))))

    if self.isLoad:
      memoryType = "bfloat" if self.decodingBF16 else "U"
      statements.append(ScalarAccess("%s memoryForm0 = src[address0]" % memoryType))
      statements.append(ScalarAccess("%s memoryForm1 = src[address1]" % memoryType))

      if self.decodingBF16:
        # keep the loads visually apart from the decode
        statements.append(Statement(""))
        statements.append(Statement("bfloat4 registerForm = *(thread bfloat4*)(thread_elements())"))
        statements.append(Statement("registerForm[1] = memoryForm0"))
        statements.append(Statement("registerForm[3] = memoryForm1"))
        statements.append(Statement("((thread bfloat4*)thread_elements())[0] = registerForm"))
      else:
        statements.append(Statement("((thread T*)thread_elements())[0] = T(memoryForm0)"))
        statements.append(Statement("((thread T*)thread_elements())[1] = T(memoryForm1)"))
    else:
      if self.decodingBF16:
        statements.append(Statement("bfloat4 registerForm = *(thread bfloat4*)(thread_elements())"))
        statements.append(Statement("registerForm[2] = registerForm[1]"))
        statements.append(ScalarAccess("dst[address0] = registerForm[2]"))
        statements.append(ScalarAccess("dst[address1] = registerForm[3]"))
      else:
        statements.append(Statement("T registerForm0 = ((thread T*)thread_elements())[0]"))
        statements.append(Statement("T registerForm1 = ((thread T*)thread_elements())[1]"))
        statements.append(ScalarAccess("dst[address0] = U(registerForm0)"))
        statements.append(ScalarAccess("dst[address1] = U(registerForm1)"))
    return statements


  ##############################################################################
  # One packed access of both elements
  ##############################################################################
  def onePartAccess(self):
    assert self.isLoad or not self.decodingBF16, "BF16 stores have no packed path"

    statements = []
    statements.append(Statement("auto combinedAddress = %s" \
        % addressExpression(self.addressSpace, 0, False)))

    if self.isLoad:
      if self.decodingBF16:
        statements.append(PackedAccess( \
            "bfloat2 memoryForm = *(const %s packed_bfloat2*)(src + combinedAddress)" % self.keyword))
        # keep the load visually apart from the decode
        statements.append(Statement(""))
        # the raw 32 bits of the pair land in the upper float, then element 0
        # is moved into the upper half of the lower float
        statements.append(Statement("bfloat4 registerForm = *(thread bfloat4*)(thread_elements())"))
        statements.append(Statement("((thread float*)&registerForm)[1] = *(thread float*)(&memoryForm)"))
        statements.append(Statement("((thread bfloat*)&registerForm)[1] = memoryForm[0]"))
        statements.append(Statement("((thread bfloat4*)thread_elements())[0] = registerForm"))
      else:
        statements.append(PackedAccess( \
            "vec<U, 2> memoryForm = *(const %s vec<U, 2>*)(src + combinedAddress)" % self.keyword))
        statements.append(Statement("*(thread_elements()) = vec<T, 2>(memoryForm)"))
    else:
      statements.append(Statement("vec<T, 2> registerForm = *(thread_elements())"))
      statements.append(PackedAccess( \
          "*(%s vec<U, 2>*)(dst + combinedAddress) = vec<U, 2>(registerForm)" % self.keyword))
    return statements


  def accessChain(self):
    chain = ConditionalChain("%s_%s" % (self.functionName, self.addressSpace))
    chain.indentation = self.indentation + "  "

    chain.addBranch("transpose_matrix", \
        lambda transpose_matrix, elements_per_row: transpose_matrix, \
        self.twoPartAccess(True), tag=AccessPath.TwoPartTransposed)

    if self.decodingBF16:
      if self.isLoad:
        chain.addBranch(None, None, self.onePartAccess(), tag=AccessPath.OnePart)
      else:
        chain.addBranch(None, None, self.twoPartAccess(False), tag=AccessPath.TwoPart)
    else:
      chain.addBranch("elements_per_row % 2 != 0", \
          lambda transpose_matrix, elements_per_row: elements_per_row % 2 != 0, \
          self.twoPartAccess(False), tag=AccessPath.TwoPart)
      chain.addBranch(None, None, self.onePartAccess(), tag=AccessPath.OnePart)
    return chain


  def functionModule(self):
    module = Module(self.functionName)
    module.addText(self.functionSignature())
    module.addCode(self.accessChain())
    module.addText("%s}\n" % self.indentation)
    return module


def createMemoryAccessModule(descriptor):
  """Structured form of createMemoryAccess, for callers that inspect it."""
  return MemoryAccessWriter(descriptor).functionModule()

def createMemoryAccess(descriptor):
  """
  Source of one simdgroup_matrix_storage accessor.
  Raises InvalidDescriptor if any descriptor field is unset.
  """
  return str(createMemoryAccessModule(descriptor))
