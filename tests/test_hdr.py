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


import numpy as np
import pytest

from flipcore.errors import InvalidParameterError
from flipcore.hdr import (LUMINANCE_EPSILON, compute_exposure_map, compute_exposure_params, compute_hdrflip, exposures,
                          set_start_stop_num_exposures)
from flipcore.parameters import DEFAULT_PPD
from flipcore.tonemap import Tonemapper, exposure_limits, tone_map


def gray_ramp(values):
    """ 1xN gray image (with CxHxW layout) """
    return np.tile(np.asarray(values, dtype=np.float32), (3, 1, 1))


def test_exposure_params_follow_max_and_lower_median():
    reference = gray_ramp([0.5, 1.0, 2.0, 4.0])
    x_max, x_min = exposure_limits(Tonemapper.ACES)
    start, stop = compute_exposure_params(reference)
    assert start == pytest.approx(np.log2(x_max / 4.0), rel=1e-5)
    assert stop == pytest.approx(np.log2(x_min / 1.0), rel=1e-5)


def test_start_exposure_maps_brightest_pixel_to_target():
    reference = gray_ramp([0.1, 0.7, 3.0])
    start, _ = compute_exposure_params(reference, tone_mapper=Tonemapper.REINHARD)
    mapped = tone_map(reference, start, Tonemapper.REINHARD)
    assert mapped.max() == pytest.approx(0.85, abs=1e-5)


def test_zero_median_is_clamped_to_epsilon():
    reference = gray_ramp([0.0, 0.0, 0.0, 2.0, 8.0])
    _, x_min = exposure_limits(Tonemapper.ACES)
    _, stop = compute_exposure_params(reference)
    assert stop == pytest.approx(np.log2(x_min / LUMINANCE_EPSILON), rel=1e-6)


def test_mostly_black_reference_sweeps_down_to_epsilon():
    # Bright top rows over a black background, so the lower median luminance is 0
    reference = np.zeros((3, 20, 20), dtype=np.float32)
    reference[:, :5, :] = 1.5
    start, stop, num = set_start_stop_num_exposures(reference)
    x_max, x_min = exposure_limits(Tonemapper.ACES)
    assert start == pytest.approx(np.log2(x_max / 1.5), rel=1e-5)
    assert stop == pytest.approx(np.log2(x_min) + 23.0, rel=1e-6)
    assert num == 24


def test_all_zero_reference_gives_single_exposure():
    assert set_start_stop_num_exposures(gray_ramp([0.0, 0.0])) == (0.0, 0.0, 1)


def test_automatic_number_of_exposures(hdr_images):
    reference = np.transpose(hdr_images[0], (2, 0, 1))
    start, stop = compute_exposure_params(reference)
    _, _, num = set_start_stop_num_exposures(reference)
    assert num == max(2, int(np.ceil(stop - start)))


def test_explicit_exposure_range():
    reference = gray_ramp([1.0, 2.0])
    assert set_start_stop_num_exposures(reference, -2.0, 3.0) == (-2.0, 3.0, 5)
    assert set_start_stop_num_exposures(reference, -2.0, 3.0, 2) == (-2.0, 3.0, 2)


def test_range_of_a_single_stop_uses_two_exposures():
    assert set_start_stop_num_exposures(gray_ramp([1.0]), 0.0, 0.5)[2] == 2


@pytest.mark.parametrize("start, stop, num", [
    (1.0, 1.0, None),
    (2.0, -1.0, None),
    (100.0, None, None),
    (None, None, 0),
])
def test_invalid_exposure_settings_are_rejected(start, stop, num):
    with pytest.raises(InvalidParameterError):
        set_start_stop_num_exposures(gray_ramp([0.5, 1.0, 2.0]), start, stop, num)


def test_exposures_include_start_and_stop():
    assert exposures(-1.0, 1.0, 3) == [-1.0, 0.0, 1.0]
    assert exposures(0.0, 0.0, 1) == [0.0]


def test_identical_hdr_images_give_zero_error(hdr_images):
    reference = np.transpose(hdr_images[0], (2, 0, 1))
    flip, exposure_map = compute_hdrflip(reference, reference, DEFAULT_PPD, start_exposure=-2.0, stop_exposure=2.0, num_exposures=3)
    np.testing.assert_array_equal(flip, 0.0)
    # Ties resolve to the first exposure
    np.testing.assert_array_equal(exposure_map, 0)


def test_hdrflip_maps(hdr_images):
    reference, test = np.transpose(hdr_images[0], (2, 0, 1)), np.transpose(hdr_images[1], (2, 0, 1))
    flip, exposure_map = compute_hdrflip(reference, test, DEFAULT_PPD, start_exposure=-3.0, stop_exposure=3.0, num_exposures=4)
    assert flip.shape == exposure_map.shape == reference.shape[1:]
    assert flip.dtype == np.float32
    assert exposure_map.dtype == np.int32
    assert flip.min() >= 0.0
    assert flip.max() <= 1.0
    assert exposure_map.min() >= 0
    assert exposure_map.max() <= 3


def test_more_exposures_never_decrease_error(hdr_images):
    reference, test = np.transpose(hdr_images[0], (2, 0, 1)), np.transpose(hdr_images[1], (2, 0, 1))
    coarse, _ = compute_hdrflip(reference, test, DEFAULT_PPD, start_exposure=-2.0, stop_exposure=2.0, num_exposures=3)
    fine, _ = compute_hdrflip(reference, test, DEFAULT_PPD, start_exposure=-2.0, stop_exposure=2.0, num_exposures=5)
    assert np.all(fine >= coarse)


def test_concurrent_exposures_match_serial_evaluation(hdr_images):
    reference, test = np.transpose(hdr_images[0], (2, 0, 1)), np.transpose(hdr_images[1], (2, 0, 1))
    serial = compute_hdrflip(reference, test, DEFAULT_PPD, start_exposure=-2.0, stop_exposure=2.0, num_exposures=4)
    concurrent = compute_hdrflip(reference, test, DEFAULT_PPD, start_exposure=-2.0, stop_exposure=2.0, num_exposures=4, workers=3)
    np.testing.assert_array_equal(serial[0], concurrent[0])
    np.testing.assert_array_equal(serial[1], concurrent[1])


def test_exposure_map_colors():
    colors = compute_exposure_map(np.array([[0, 1], [2, 3]], dtype=np.int32), 4)
    assert colors.shape == (2, 2, 3)
    assert not np.array_equal(colors[0, 0], colors[1, 1])
