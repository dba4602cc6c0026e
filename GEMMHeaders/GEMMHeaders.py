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
import sys
import argparse
from .Common import globalParameters, print1, ensurePath, validManifestFormats, \
    assignGlobalParameters, restoreDefaultGlobalParameters, validateGlobalParameters, HR
from . import Headers
from . import LibraryIO
from . import __version__

def addCommonArguments(argParser):
  """
  Add a common set of arguments to `argParser`.

  Used by the main GEMMHeaders script and by the unit tests.
  """
  def splitExtraParameters(par):
    """
    Allows the --global-parameters option to specify any parameters from the command line.
    """

    (key, value) = par.split("=")
    value = eval(value)
    return (key, value)

  argParser.add_argument("-v", "--verbose", action="store_true", \
      help="set PrintLevel=2")
  argParser.add_argument("--indentation", dest="IndentationSpaceCount", type=int, \
      help="indentation of the matrix storage accessors")
  argParser.add_argument("--header-extension", dest="HeaderExtension", \
      help="extension appended to the header file names, e.g. '.h'")
  argParser.add_argument("--manifest-format", dest="ManifestFormat", choices=validManifestFormats, \
      help="select which manifest format to use")
  argParser.add_argument("--no-manifest", dest="noManifest", action="store_true", \
      help="do not write a manifest")
  argParser.add_argument("--cpu-threads", dest="CpuThreads", type=int, \
      help="processes used to generate accessors; < 1 uses every core")

  argParser.add_argument("--global-parameters", nargs="+", type=splitExtraParameters, default=[])

def argUpdatedGlobalParameters(args):
  """
  Returns a dictionary with `globalParameters` keys that should be updated based on `args`.
  """
  rv = {}
  # override config with command-line options
  if args.verbose:
    print1("# Command-line override: PrintLevel")
    rv["PrintLevel"] = 2
  if args.IndentationSpaceCount is not None:
    print1("# Command-line override: IndentationSpaceCount")
    rv["IndentationSpaceCount"] = args.IndentationSpaceCount
  if args.HeaderExtension is not None:
    print1("# Command-line override: HeaderExtension")
    rv["HeaderExtension"] = args.HeaderExtension
  if args.ManifestFormat:
    print1("# Command-line override: ManifestFormat")
    rv["ManifestFormat"] = args.ManifestFormat
  if args.noManifest:
    rv["WriteManifest"] = False
  if args.CpuThreads is not None:
    rv["CpuThreads"] = args.CpuThreads

  for key, value in args.global_parameters:
    rv[key] = value

  return rv

################################################################################
# GEMMHeaders
# - below entry points call here
################################################################################
def GEMMHeaders(userArgs):
  global globalParameters

  # setup argument parser
  argParser = argparse.ArgumentParser(description="Writes the Metal headers used by the GEMM kernels.")
  argParser.add_argument("output_path", \
      help="directory where the headers are written")
  argParser.add_argument("--config", dest="config_file", type=os.path.realpath, default=None, \
      help="config.yaml file with a GlobalParameters section")
  argParser.add_argument("--version", action="version", \
      version="%(prog)s {version}".format(version=__version__))
  addCommonArguments(argParser)

  # parse arguments
  args = argParser.parse_args(userArgs)

  restoreDefaultGlobalParameters()

  # read config
  config = {}
  if args.config_file:
    config = LibraryIO.readConfig(args.config_file)

  # assign global parameters
  if "GlobalParameters" in config:
    assignGlobalParameters( config["GlobalParameters"] )
  else:
    assignGlobalParameters({})

  overrideParameters = argUpdatedGlobalParameters(args)
  for key, value in overrideParameters.items():
    globalParameters[key] = value
  validateGlobalParameters()

  # splash
  print1("")
  print1(HR)
  print1("#")
  print1("#  GEMMHeaders v%s" % (__version__) )
  if args.config_file:
    print1("#  Config: %s" % (args.config_file) )
  print1("#")
  print1(HR)
  print1("")

  globalParameters["OutputPath"] = ensurePath(os.path.abspath(args.output_path))

  manifest = Headers.writeHeaders(globalParameters["OutputPath"])
  print1("")
  print1("# Wrote %u headers to %s" % (len(manifest), globalParameters["OutputPath"]))
  return manifest


# installed "GEMMHeaders" command
def main():
  GEMMHeaders(sys.argv[1:])
