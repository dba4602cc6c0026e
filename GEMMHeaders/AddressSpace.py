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

import functools

@functools.total_ordering
class AddressSpace:
    """
    Metal address spaces the generated headers read from and write to.
    Uses a list of dictionaries, one per address space, in the same way the
    data type table is organized. The two spaces differ only in the declared
    types of strides and origins; the address arithmetic is identical.

    device is the wide space: large address range, so strides are 32-bit and
    row offsets are widened to 64-bit before they are added to a pointer.
    threadgroup is the narrow space: small and fast, 16-bit offsets suffice.
    """

    properties = [
        {
            'name': 'device',
            'alias': 'wide',
            'keyword': 'device',
            'offsetType': 'uint',
            'originType': 'uint2',
            'pointerOffsetCast': 'ulong',
        },
        {
            'name': 'threadgroup',
            'alias': 'narrow',
            'keyword': 'threadgroup',
            'offsetType': 'ushort',
            'originType': 'ushort2',
            'pointerOffsetCast': None,
        },
    ]
    lookup = {}

    def __init__(self, value):
        if isinstance(value, int):
            self.value = value
        elif isinstance(value, str):
            if value.lower() not in AddressSpace.lookup:
                raise RuntimeError("Unrecognized address space %s" % value)
            self.value = AddressSpace.lookup[value.lower()]
        elif isinstance(value, AddressSpace):
            self.value = value.value
        else:
            raise RuntimeError("initializing AddressSpace to {0} {1}".format(str(type(value)), str(value)))

        self.properties = AddressSpace.properties[self.value]

    def toName(self):
        return self.properties['name']
    def keyword(self):
        return self.properties['keyword']
    def offsetType(self):
        """Type of elements_per_row and of intermediate address fragments."""
        return self.properties['offsetType']
    def originType(self):
        """Type of the full-width origin taken by apply_offset."""
        return self.properties['originType']
    def pointerOffsetCast(self):
        return self.properties['pointerOffsetCast']

    def isDevice(self):
        return self.value == AddressSpace.device
    def isThreadgroup(self):
        return self.value == AddressSpace.threadgroup

    @classmethod
    def all(cls):
        """Every address space, in emission order."""
        return [AddressSpace(i) for i in range(len(cls.properties))]

    def __str__(self):
        return self.toName()
    def __repr__(self):
        return "AddressSpace(%s)" % self.toName()

    def getAttributes(self):
        return (self.value,)

    def __hash__(self):
        return hash(self.getAttributes())

    def __eq__(self, other):
        if not isinstance(other, AddressSpace):
            return NotImplemented

        return self.getAttributes() == other.getAttributes()

    def __lt__(self, other):
        if not isinstance(other, AddressSpace):
            return NotImplemented

        return self.getAttributes() < other.getAttributes()

def populateLookupTable(properties,lookup):
    """
    Populates Lookup Table with the corresponding row number for each AddressSpace.
    Both the Metal keyword and the wide/narrow alias resolve to the same row.
    """
    for i,e in enumerate(properties):
        setattr(AddressSpace, e['name'], i)
        for k in ['name','alias','keyword']:
            lookupKey = e[k].lower()
            if lookupKey in lookup and lookup[lookupKey] != i:
                raise RuntimeError("Duplicate key {1} in property '{0}'".format(k,lookupKey))
            lookup[lookupKey] = i

populateLookupTable(AddressSpace.properties,AddressSpace.lookup)
