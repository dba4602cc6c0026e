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

from abc  import ABC
from abc  import abstractmethod

from .Common import globalParameters, headerPreamble, headerPostamble

class HeaderWriterBase(ABC):
  """
  Base of the writers that produce one Metal header each.
  Subclasses provide the body; the preamble (banner, include guard) and the
  closing guard are shared.
  """

  def __init__(self):
    super().__init__()

    self.state = {}

    self.endLine = "\n"
    self.functionStr = "METAL_FUNC"
    self.namespaceStr = "metal"


  @abstractmethod
  def getHeaderName(self):
    pass


  @abstractmethod
  def getHeaderBodyString(self):
    pass


  def getHeaderFileString(self):
    fileString = ""
    fileString += headerPreamble(self.getHeaderName())
    fileString += self.getHeaderBodyString()
    fileString += headerPostamble(self.getHeaderName())
    return fileString


  def getFileName(self):
    return self.getHeaderName() + globalParameters["HeaderExtension"]


  ##########################
  # make class look like dict
  def keys(self):
    return list(self.state.keys())

  def __len__(self):
    return len(self.state)

  def __getitem__(self, key):
    return self.state[key]

  def __setitem__(self, key, value):
    self.state[key] = value

  def __str__(self):
    return self.getHeaderName()

  def __repr__(self):
    return self.__str__()

  def __eq__(self, other):
    return isinstance(other, HeaderWriterBase) and str(self) == str(other) \
        and self.state == other.state

  def __ne__(self, other):
    result = self.__eq__(other)
    if result is NotImplemented:
      return result
    return not result
