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

from . import __version__
from collections import OrderedDict
from copy import deepcopy

import os
import sys

# print level
# 0 - user wants no printing
# 1 - user wants limited prints
# 2 - user wants full prints

################################################################################
# Global Parameters
################################################################################
globalParameters = OrderedDict()

########################################
# common
########################################
globalParameters["MinimumRequiredVersion"] = "0.0.0" # which version of GEMMHeaders is required to handle all the features required by this configuration file
globalParameters["PrintLevel"] = 1                # how much info to print in generator. 0=none, 1=standard, 2=verbose
globalParameters["CpuThreads"] = 1                # number of processes used to generate accessors; 1 = serial, < 1 = all cores
globalParameters["OutputPath"] = "."              # where the headers are written, set by the command line

########################################
# header generation
########################################
globalParameters["IndentationSpaceCount"] = 4     # indentation of the matrix storage accessors inside their struct
globalParameters["HeaderExtension"] = ""          # appended to header file names; Metal includes them without one
globalParameters["WriteManifest"] = True          # write a manifest describing the generated headers
globalParameters["ManifestFormat"] = "yaml"       # one of {yaml, msgpack}

# Save a copy - since pytest doesn't re-run this initialization code and YAML files can override global settings - odd things can happen
defaultGlobalParameters = deepcopy(globalParameters)

validManifestFormats = ("yaml", "msgpack")

# Header file names, shared by the writers and the manifest
SimdgroupEventHeaderName = "metal_simdgroup_event"
SimdgroupMatrixStorageHeaderName = "metal_simdgroup_matrix_storage"

################################################################################
# Errors
################################################################################
class InvalidDescriptor(RuntimeError):
  """
  Raised when a memory access descriptor reaches generation with a field unset.
  This is a defect in the caller; generating again with the same descriptor
  fails the same way.
  """
  pass

################################################################################
# Print Debug
################################################################################
def print1(message):
  if globalParameters["PrintLevel"] >= 1:
    print(message)
    sys.stdout.flush()
def print2(message):
  if globalParameters["PrintLevel"] >= 2:
    print(message)
    sys.stdout.flush()

def printWarning(message):
  print("GEMMHeaders::WARNING: %s" % message)
  sys.stdout.flush()
def printExit(message):
  print("GEMMHeaders::FATAL: %s" % message)
  sys.stdout.flush()
  sys.exit(-1)

def restoreDefaultGlobalParameters():
  """
  Restores `globalParameters` back to defaults.
  """
  global globalParameters
  global defaultGlobalParameters
  # Clear in place; other modules hold references to this dictionary.
  globalParameters.clear()
  for key, value in deepcopy(defaultGlobalParameters).items():
    globalParameters[key] = value

################################################################################
################################################################################
def assignGlobalParameters( config ):
  """
  Assign Global Parameters
  Each global parameter has a default parameter, and the user
  can override them, overriding happens here
  """

  global globalParameters

  # Minimum Required Version
  if "MinimumRequiredVersion" in config:
    if not versionIsCompatible(config["MinimumRequiredVersion"]):
      printExit("Config file requires version=%s is not compatible with current GEMMHeaders version=%s" \
          % (config["MinimumRequiredVersion"], __version__) )

  # User-specified global parameters
  print2("GlobalParameters:")
  for key in globalParameters:
    defaultValue = globalParameters[key]
    if key in config:
      configValue = config[key]
      if configValue == defaultValue:
        print2(" %24s: %8s (same)" % (key, configValue))
      else:
        print2(" %24s: %8s (overridden)" % (key, configValue))
    else:
      print2(" %24s: %8s (unspecified)" % (key, defaultValue))

  for key in config:
    value = config[key]
    if key not in globalParameters:
      printWarning("Global parameter %s = %s unrecognised." % ( key, value ))
    globalParameters[key] = value

  validateGlobalParameters()

def validateGlobalParameters():
  if globalParameters["ManifestFormat"] not in validManifestFormats:
    printExit("ManifestFormat %s must be one of %s" \
        % (globalParameters["ManifestFormat"], validManifestFormats))
  if globalParameters["IndentationSpaceCount"] < 0:
    printExit("IndentationSpaceCount %s must not be negative" \
        % globalParameters["IndentationSpaceCount"])

################################################################################
# Output Path
################################################################################
def ensurePath(path):
  try:
    os.makedirs(path)
  except FileExistsError:
    pass
  except OSError:
    printExit("Failed to create directory \"%s\" " % (path) )
  return path

################################################################################
# Is query version compatible with current version
# a yaml file is compatible with GEMMHeaders if
# GEMMHeaders.major == yaml.major and GEMMHeaders.minor.step >= yaml.minor.step
################################################################################
def versionIsCompatible(queryVersionString):
  (qMajor, qMinor, qStep) = queryVersionString.split(".")
  (tMajor, tMinor, tStep) = __version__.split(".")

  # major version must match exactly
  if qMajor != tMajor:
    return False

  # minor.patch version must be >=
  if int(qMinor) > int(tMinor):
    return False
  if qMinor == tMinor:
    if int(qStep) > int(tStep):
      return False
  return True

################################################################################
# Header Banners
# the emitted headers carry the LLVM-style banner Metal's own headers use
################################################################################
BannerWidth = 80

def headerBanner(headerName):
  title = "//===-- %s " % headerName
  return title + "-" * (BannerWidth - len(title) - len("===//")) + "===//"

def headerPreamble(headerName):
  """
  First lines of every emitted header: mode line, banner, copyright and
  include guard.
  """
  guard = "__" + headerName.upper()
  s = ""
  s += "// -*- Metal -*-\n"
  s += headerBanner(headerName) + "\n"
  s += "// Copyright (c) 2024 Philip Turner. See MIT LICENSE\n"
  s += "//===" + "-" * (BannerWidth - len("//===") - len("===//")) + "===//\n"
  s += "\n"
  s += "#ifndef %s\n" % guard
  s += "#define %s\n" % guard
  s += "\n"
  return s

def headerPostamble(headerName):
  return "#endif // __%s\n" % headerName.upper()

HR = "################################################################################"
