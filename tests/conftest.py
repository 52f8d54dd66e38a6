#################################################################################
# Copyright (c) 2020-2024, NVIDIA CORPORATION & AFFILIATES. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this
# list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
# this list of conditions and the following disclaimer in the documentation
# and/or other materials provided with the distribution.
#
# 3. Neither the name of the copyright holder nor the names of its
# contributors may be used to endorse or promote products derived from
# this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# SPDX-FileCopyrightText: Copyright (c) 2020-2024 NVIDIA CORPORATION & AFFILIATES
# SPDX-License-Identifier: BSD-3-Clause
#################################################################################


import os

# EXR support in OpenCV is opt-in and must be enabled before cv2 is imported
os.environ.setdefault("OPENCV_IO_ENABLE_OPENEXR", "1")

import cv2 as cv
import numpy as np
import pytest

from flipcore.color import color_space_transform

IMAGES_DIR = os.environ.get("FLIP_IMAGES_DIR", os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "images"))

HEIGHT = 20
WIDTH = 24


def image_path(name):
    """ Path to one of the FLIP reference/test images, skipping the test if it is not available """
    path = os.path.join(IMAGES_DIR, name)
    if not os.path.isfile(path):
        pytest.skip("%s not found (set FLIP_IMAGES_DIR to the FLIP images directory)" % path)
    return path


def load_ldr(name):
    """ Loads an sRGB PNG as linear RGB with HxWx3 layout """
    img = cv.imread(image_path(name), cv.IMREAD_COLOR)
    if img is None:
        pytest.skip("OpenCV could not read %s" % name)
    srgb = np.transpose(cv.cvtColor(img, cv.COLOR_BGR2RGB).astype(np.float32) / 255.0, (2, 0, 1))
    return np.ascontiguousarray(np.transpose(color_space_transform(srgb, "srgb2linrgb"), (1, 2, 0)), dtype=np.float32)


def load_hdr(name):
    """ Loads a linear RGB EXR with HxWx3 layout """
    img = cv.imread(image_path(name), cv.IMREAD_UNCHANGED)
    if img is None:
        pytest.skip("OpenCV could not read %s (EXR support may be disabled)" % name)
    return np.ascontiguousarray(cv.cvtColor(img[:, :, :3], cv.COLOR_BGR2RGB), dtype=np.float32)


@pytest.fixture
def rng():
    return np.random.default_rng(2020)


@pytest.fixture
def ldr_images(rng):
    """ Reference and test images (HxWx3, linear RGB in [0,1]). The test image is a noisy, shifted reference """
    y, x = np.mgrid[0:HEIGHT, 0:WIDTH].astype(np.float32)
    reference = np.stack((x / WIDTH, y / HEIGHT, 0.5 + 0.4 * np.sin(x * 0.7)), axis=-1).astype(np.float32)
    test = np.clip(np.roll(reference, 1, axis=1) + rng.normal(0.0, 0.1, reference.shape), 0.0, 1.0).astype(np.float32)
    return reference, test


@pytest.fixture
def hdr_images(rng):
    """ Reference and test images (HxWx3, nonnegative linear RGB) spanning several stops """
    y, x = np.mgrid[0:HEIGHT, 0:WIDTH].astype(np.float32)
    intensity = np.exp2(8.0 * x / WIDTH - 3.0)[..., np.newaxis]
    tint = np.stack((np.ones_like(y), 0.5 + 0.5 * y / HEIGHT, 0.25 + 0.5 * (1 - y / HEIGHT)), axis=-1)
    reference = (intensity * tint).astype(np.float32)
    test = (reference * rng.uniform(0.5, 1.5, reference.shape)).astype(np.float32)
    return reference, test


@pytest.fixture
def ldr_ycxcz(ldr_images):
    """ The LDR image pair with CxHxW layout in YCxCz """
    reference, test = ldr_images
    return (color_space_transform(np.transpose(reference, (2, 0, 1)), "linrgb2ycxcz"),
            color_space_transform(np.transpose(test, (2, 0, 1)), "linrgb2ycxcz"))


@pytest.fixture
def ldr_reference_pair():
    """ The published LDR reference/test pair, skipped if the images are not available """
    return load_ldr("reference.png"), load_ldr("test.png")


@pytest.fixture
def hdr_reference_pair():
    """ The published HDR reference/test pair, skipped if the images are not available """
    return load_hdr("reference.exr"), load_hdr("test.exr")
