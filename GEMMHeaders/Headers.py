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

import os

from .Common import globalParameters, print1, print2, ensurePath
from .HeaderWriterMatrixStorage import HeaderWriterMatrixStorage
from .HeaderWriterSimdgroupEvent import HeaderWriterSimdgroupEvent
from . import LibraryIO

ManifestName = "GEMMHeadersManifest"

def createMetalSimdgroupEvent():
  """Source of the 'metal_simdgroup_event' header."""
  return HeaderWriterSimdgroupEvent().getHeaderFileString()

def createMetalSimdgroupMatrixStorage():
  """Source of the 'metal_simdgroup_matrix_storage' header."""
  return HeaderWriterMatrixStorage().getHeaderFileString()

def headerWriters():
  return [HeaderWriterSimdgroupEvent(), HeaderWriterMatrixStorage()]

################################################################################
# Write Headers
# writes every header into outputPath and, if enabled, a manifest listing them
################################################################################
def writeHeaders(outputPath):
  ensurePath(outputPath)

  manifest = []
  for writer in headerWriters():
    fileString = writer.getHeaderFileString()
    fileName = writer.getFileName()
    filePath = os.path.join(outputPath, fileName)
    with open(filePath, "w") as f:
      f.write(fileString)
    print1("# Wrote %s" % filePath)
    print2("#   %u lines" % fileString.count("\n"))
    manifest.append({"Name": writer.getHeaderName(),
                     "File": fileName,
                     "Lines": fileString.count("\n")})

  if globalParameters["WriteManifest"]:
    manifestPath = LibraryIO.writeManifest(os.path.join(outputPath, ManifestName), \
        manifest, globalParameters["ManifestFormat"])
    print1("# Wrote %s" % manifestPath)

  return manifest
