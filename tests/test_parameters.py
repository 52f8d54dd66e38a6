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


import math

import pytest

from flipcore.errors import InvalidParameterError
from flipcore.parameters import DEFAULT_PPD, Parameters, calculate_ppd, parameters_from_dict
from flipcore.tonemap import Tonemapper


def test_ppd_of_default_viewing_conditions():
    assert calculate_ppd(0.7, 3840, 0.7) == pytest.approx(67.0206, abs=1e-4)
    assert DEFAULT_PPD == pytest.approx(67.0206, abs=1e-4)


def test_default_parameters():
    parameters = Parameters()
    assert parameters.ppd == DEFAULT_PPD
    assert parameters.start_exposure is None
    assert parameters.stop_exposure is None
    assert parameters.num_exposures is None
    assert parameters.tonemapper is Tonemapper.ACES


@pytest.mark.parametrize("kwargs", [
    {"ppd": 0.0},
    {"ppd": -5.0},
    {"ppd": math.inf},
    {"ppd": math.nan},
    {"ppd": "67"},
    {"start_exposure": 1.0, "stop_exposure": 1.0},
    {"start_exposure": 2.0, "stop_exposure": -2.0},
    {"start_exposure": math.nan},
    {"num_exposures": 0},
    {"num_exposures": 2.5},
    {"tonemapper": "linear"},
])
def test_invalid_parameters_are_rejected(kwargs):
    with pytest.raises(InvalidParameterError):
        Parameters(**kwargs)


def test_replace_validates():
    parameters = Parameters(start_exposure=-1.0)
    assert parameters.replace(stop_exposure=2.0).stop_exposure == 2.0
    with pytest.raises(InvalidParameterError):
        parameters.replace(stop_exposure=-3.0)


def test_parameters_from_dict():
    parameters = parameters_from_dict({"ppd": 40, "startExposure": -3, "stopExposure": 2.5, "numExposures": 7, "tonemapper": "Hable"})
    assert parameters == Parameters(40.0, -3.0, 2.5, 7, Tonemapper.HABLE)


def test_viewing_conditions_set_ppd():
    assert parameters_from_dict({"vc": [0.7, 3840, 0.7]}).ppd == pytest.approx(67.0206, abs=1e-4)


@pytest.mark.parametrize("parameters", [
    {"ppd": 67, "vc": [0.7, 3840, 0.7]},
    {"vc": [0.7, 3840]},
    {"vc": [0.7, -3840, 0.7]},
    {"pixelsPerDegree": 67},
])
def test_invalid_dictionaries_are_rejected(parameters):
    with pytest.raises(InvalidParameterError):
        parameters_from_dict(parameters)


def test_dictionary_round_trip():
    parameters = Parameters(ppd=30.0, num_exposures=3, tonemapper=Tonemapper.REINHARD)
    assert parameters_from_dict(parameters.to_dict()) == parameters
