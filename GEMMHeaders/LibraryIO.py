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

from .Common import printExit, printWarning, versionIsCompatible
from . import __version__

import msgpack
import yaml


###################
# Writing functions
###################
def write(filename_noExt, data, format="yaml"):
    """Writes data to file with specified format; extension is appended based on format.
    Returns the path written."""
    if format == "yaml":
        filename = filename_noExt + ".yaml"
        writeYAML(filename, data)
    elif format == "msgpack":
        filename = filename_noExt + ".dat"
        writeMsgPack(filename, data)
    else:
        printExit("Unrecognized format {}".format(format))
    return filename


def writeYAML(filename, data, **kwargs):
    """Writes data to file in YAML format."""
    # set default kwags for yaml dump
    if "explicit_start" not in kwargs:
        kwargs["explicit_start"] = True
    if "explicit_end" not in kwargs:
        kwargs["explicit_end"] = True
    if "default_flow_style" not in kwargs:
        kwargs["default_flow_style"] = None

    with open(filename, "w") as f:
        yaml.dump(data, f, **kwargs)


def writeMsgPack(filename, data):
    """Writes data to file in Message Pack format."""
    with open(filename, "wb") as f:
        msgpack.pack(data, f)


###############################
# Reading and parsing functions
###############################
def readYAML(filename):
    """Reads and returns YAML data from file."""
    with open(filename, "r") as f:
        data = yaml.load(f, yaml.SafeLoader)
    return data


def readMsgPack(filename):
    """Reads and returns Message Pack data from file."""
    with open(filename, "rb") as f:
        data = msgpack.unpack(f, raw=False)
    return data


def readConfig(filename):
    """Reads a generator config file. An empty file is an empty config."""
    try:
        config = readYAML(filename)
    except IOError:
        printExit("Cannot open file: %s" % filename)
    if config is None:
        return {}
    if not isinstance(config, dict):
        printExit("Config file %s must contain a mapping, found %s" % (filename, type(config).__name__))
    return config


def readManifest(filename):
    """Reads a manifest written by writeManifest, in either format."""
    if filename.endswith(".dat"):
        manifest = readMsgPack(filename)
    else:
        manifest = readYAML(filename)

    versionString = manifest["MinimumRequiredVersion"]
    if not versionIsCompatible(versionString):
        printWarning("Version = {} in manifest {} does not match GEMMHeaders version = {}" \
                .format(versionString, filename, __version__))
    return manifest


def writeManifest(filename_noExt, headers, format="yaml"):
    """Writes the list of generated headers. `headers` holds one dict per header."""
    data = {"MinimumRequiredVersion": __version__,
            "Headers": headers}
    return write(filename_noExt, data, format)
