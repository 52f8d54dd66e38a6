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

from flipcore.colormaps import apply_palette, get_magma_map, get_viridis_map, index2color


@pytest.mark.parametrize("get_map", [get_magma_map, get_viridis_map])
def test_color_tables(get_map):
    palette = get_map()
    assert palette.shape == (256, 3)
    assert palette.dtype == np.float32
    assert palette.min() >= 0.0
    assert palette.max() <= 1.0
    with pytest.raises(ValueError):
        palette[0, 0] = 0.5


def test_magma_runs_from_black_to_light_yellow():
    magma = get_magma_map()
    assert magma[0].sum() < 0.1
    assert magma[255].sum() > 2.5


def test_apply_palette_endpoints_and_clamping():
    magma = get_magma_map()
    colors = apply_palette(np.array([0.0, 1.0, -0.5, 2.0], dtype=np.float32))
    np.testing.assert_allclose(colors, [magma[0], magma[255], magma[0], magma[255]], atol=1e-6)


def test_apply_palette_interpolates_between_entries():
    magma = get_magma_map()
    colors = apply_palette(np.array([0.5 / 255], dtype=np.float32))
    np.testing.assert_allclose(colors[0], 0.5 * (magma[0] + magma[1]), atol=1e-5)


def test_apply_palette_keeps_shape_and_nan():
    colors = apply_palette(np.array([[0.2, np.nan]], dtype=np.float32))
    assert colors.shape == (1, 2, 3)
    assert np.all(np.isfinite(colors[0, 0]))
    assert np.all(np.isnan(colors[0, 1]))


def test_index2color_looks_up_entries():
    viridis = get_viridis_map()
    np.testing.assert_array_equal(index2color(np.array([0, 128, 300]), viridis), viridis[[0, 128, 255]])
