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

import pytest
import yaml

from GEMMHeaders.GEMMHeaders import GEMMHeaders
from GEMMHeaders.Headers import ManifestName, createMetalSimdgroupEvent, createMetalSimdgroupMatrixStorage
from GEMMHeaders import LibraryIO

HeaderNames = ["metal_simdgroup_event", "metal_simdgroup_matrix_storage"]

def readFile(path):
    with open(path, "r") as f:
        return f.read()

def test_writesHeaders(tmp_path):
    manifest = GEMMHeaders([str(tmp_path), "--global-parameters", "PrintLevel=0"])

    event = readFile(str(tmp_path / "metal_simdgroup_event"))
    storage = readFile(str(tmp_path / "metal_simdgroup_matrix_storage"))
    assert event == createMetalSimdgroupEvent()
    assert storage == createMetalSimdgroupMatrixStorage()

    assert [h["Name"] for h in manifest] == HeaderNames
    assert [h["Lines"] for h in manifest] == [event.count("\n"), storage.count("\n")]

    written = LibraryIO.readManifest(str(tmp_path / (ManifestName + ".yaml")))
    assert written["Headers"] == manifest

def test_msgpackManifest(tmp_path):
    manifest = GEMMHeaders([str(tmp_path), "--manifest-format", "msgpack", "--header-extension", ".h", \
        "--global-parameters", "PrintLevel=0"])
    assert [h["File"] for h in manifest] == [name + ".h" for name in HeaderNames]
    for name in HeaderNames:
        assert os.path.isfile(str(tmp_path / (name + ".h")))
    assert not os.path.exists(str(tmp_path / (ManifestName + ".yaml")))
    written = LibraryIO.readManifest(str(tmp_path / (ManifestName + ".dat")))
    assert written["Headers"] == manifest

def test_noManifest(tmp_path):
    GEMMHeaders([str(tmp_path), "--no-manifest", "--global-parameters", "PrintLevel=0"])
    assert sorted(os.listdir(str(tmp_path))) == HeaderNames

def test_configFile(tmp_path):
    configPath = tmp_path / "config.yaml"
    with open(str(configPath), "w") as f:
        yaml.dump({"GlobalParameters": {"IndentationSpaceCount": 2, "PrintLevel": 0}}, f)

    outputPath = tmp_path / "out"
    GEMMHeaders([str(outputPath), "--config", str(configPath)])
    storage = readFile(str(outputPath / "metal_simdgroup_matrix_storage"))
    assert "\n  template <typename U>\n  METAL_FUNC void load(const device U *src" in storage

def test_commandLineOverridesConfig(tmp_path):
    configPath = tmp_path / "config.yaml"
    with open(str(configPath), "w") as f:
        yaml.dump({"GlobalParameters": {"IndentationSpaceCount": 2, "PrintLevel": 0}}, f)

    outputPath = tmp_path / "out"
    GEMMHeaders([str(outputPath), "--config", str(configPath), "--indentation", "6"])
    storage = readFile(str(outputPath / "metal_simdgroup_matrix_storage"))
    assert "\n      template <typename U>\n      METAL_FUNC void load(const device U *src" in storage

def test_invalidOverride(tmp_path):
    with pytest.raises(SystemExit):
        GEMMHeaders([str(tmp_path), "--global-parameters", "ManifestFormat='json'", "PrintLevel=0"])
    with pytest.raises(SystemExit):
        GEMMHeaders([str(tmp_path), "--manifest-format", "json"])
