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

class Item:
  """
  Base class for Modules, Statements, etc
  Item is an atomic collection of one or more lines of Metal source
  """
  def countType(self,ttype):
    return int(isinstance(self, ttype))


class Module(Item):
  """
  Modules contain lists of text, Statement objects, or additional modules
  They can be easily converted to string that represents all items in the list
  and can be mixed with standard text.
  The intent is to let the header writers express which statements form a
  related block, so tests and later passes can inspect it without parsing text.
  """
  def __init__(self, name=""):
    self.name     = name
    self.itemList = []

  def __str__(self):
    return "".join([str(x) for x in self.itemList])

  def addCode(self, item):
    """
    Add specified item to the list of items in the module.
    Strings are wrapped in a TextBlock.
    All additions to itemList should use this function.

    Returns item to facilitate one-line create/add patterns
    """
    if isinstance(item,Item):
      self.itemList.append(item)
    elif isinstance(item,str):
      self.addCode(TextBlock(item))
    else:
      assert 0, "unknown item type (%s) for Module.addCode. item=%s"%(type(item), item)
    return item

  def addText(self,text):
    """
    Convenience function to construct a TextBlock and add to items
    """
    self.addCode(TextBlock(text))

  def countType(self,ttype):
    """
    Count number of items with specified type in this Module
    Will recursively count occurrences in submodules
    (Overrides Item.countType)
    """
    return sum([item.countType(ttype) for item in self.itemList])

  def items(self):
    """
    Return list of items in the Module
    Items may be other Modules, TextBlock, or Statement
    """
    return self.itemList

  def flatitems(self):
    """
    Return flattened list of items in the Module
    Items in sub-modules will be flattened into single list
    """
    flatitems = []
    for i in self.itemList:
      if isinstance(i, Module):
        flatitems += i.flatitems()
      else:
        flatitems.append(i)
    return flatitems


class TextBlock(Item):
  """
  An unstructured block of text that can contain comments and statements
  """
  def __init__(self,text):
    assert(isinstance(text, str))
    self.text = text
    self.name = text

  def __str__(self):
    return self.text


class Statement(Item):
  """
  One statement of a generated function body, without its terminator.
  A whitespace-only statement is a separator: it renders as an empty
  string and gets no terminator.
  """
  def __init__(self, text):
    assert(isinstance(text, str))
    self.text = text
    self.name = text

  def isSeparator(self):
    return self.text.strip() == ""

  def __str__(self):
    if self.isSeparator():
      return ""
    return self.text + ";"

# uniq type that can be used in Module.countType
class ScalarAccess (Statement):
  """Reads or writes a single element of memory."""
  def __init__(self, text):
    Statement.__init__(self, text)

# uniq type that can be used in Module.countType
class PackedAccess (Statement):
  """Reads or writes two adjacent elements of memory as one vector."""
  def __init__(self, text):
    Statement.__init__(self, text)


class Branch(Module):
  """
  One arm of a ConditionalChain.
  condition: Metal condition, or None for the trailing 'else'
  predicate: host-side equivalent of condition, called with the runtime
             values the condition reads; None for 'else'
  """
  def __init__(self, condition, predicate, name="", tag=None):
    super().__init__(name)
    self.condition = condition
    self.predicate = predicate
    self.tag = tag

  def matches(self, **runtimeValues):
    if self.predicate is None:
      return True
    return bool(self.predicate(**runtimeValues))

  def statements(self):
    return [item for item in self.flatitems() if isinstance(item, Statement)]


class ConditionalChain(Module):
  """
  if / else if / else chain of statement lists.

  Rendering:
    if (c0) {
      s0;
      <separator>
    } else if (c1) {
    } else {
    }
  Each statement is indented two spaces past the chain. Separators keep
  that indentation but carry no terminator.
  """
  def __init__(self, name=""):
    super().__init__(name)
    self.indentation = ""

  def addBranch(self, condition, predicate, statements, name="", tag=None):
    if len(self.itemList) and self.itemList[-1].condition is None:
      assert 0, "ConditionalChain %s already ends in 'else'" % self.name
    if condition is None and len(self.itemList) == 0:
      assert 0, "ConditionalChain %s must start with a condition" % self.name
    branch = Branch(condition, predicate, name, tag)
    for statement in statements:
      branch.addCode(statement)
    return self.addCode(branch)

  def branches(self):
    return list(self.itemList)

  def select(self, **runtimeValues):
    """Branch taken at runtime for the given values, or None."""
    for branch in self.itemList:
      if branch.matches(**runtimeValues):
        return branch
    return None

  def lines(self):
    lines = []
    for (i, branch) in enumerate(self.itemList):
      if i == 0:
        lines.append("if (%s) {" % branch.condition)
      elif branch.condition is None:
        lines.append("} else {")
      else:
        lines.append("} else if (%s) {" % branch.condition)
      for statement in branch.statements():
        lines.append("  " + str(statement))
    lines.append("}")
    return lines

  def __str__(self):
    return "".join(["%s%s\n" % (self.indentation, line) for line in self.lines()])
