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
# Install GEMMHeaders
# - installs the python generator
# - creates an executable that writes the Metal headers
################################################################################
from setuptools import setup

def readRequirementsFromTxt():
  requirements = []
  with open("requirements.txt") as req_file:
    for line in req_file.read().splitlines():
      if line.strip() and not line.strip().startswith("#"):
        requirements.append(line)
  return requirements

def readVersionFromInit():
    import GEMMHeaders
    return GEMMHeaders.__version__

setup(
  name="GEMMHeaders",
  version=readVersionFromInit(),
  description="Generates the Metal simdgroup event and matrix storage headers used by GEMM kernels.",
  license="MIT",
  install_requires=readRequirementsFromTxt(),
  extras_require={"test": ["pytest"]},
  python_requires='>=3.8',
  packages=["GEMMHeaders"],
  include_package_data=True,
  entry_points={"console_scripts": [
    # user writes the headers
    "GEMMHeaders = GEMMHeaders.GEMMHeaders:main",
    "GEMMHeadersGetPath = GEMMHeaders:PrintGEMMHeadersRoot",
    ]}
  )
