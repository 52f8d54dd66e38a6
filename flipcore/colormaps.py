""" Color maps for visualizing FLIP error maps and HDR-FLIP exposure maps """
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


import functools

import numpy as np
from matplotlib import colormaps


@functools.lru_cache(maxsize=None)
def _palette(name):
	table = np.asarray(colormaps[name](np.arange(256))[:, :3], dtype=np.float32)
	table.setflags(write=False)
	return table


def get_magma_map():
	""" The 256-entry magma color map (with 256x3 layout, values in [0,1]) used for FLIP error maps """
	return _palette("magma")


def get_viridis_map():
	""" The 256-entry viridis color map (with 256x3 layout, values in [0,1]) used for HDR-FLIP exposure maps """
	return _palette("viridis")


def index2color(index_map, palette):
	"""
	Looks up integer indices in a color map

	:param index_map: array of integers in [0, len(palette) - 1]
	:param palette: color table (with Nx3 layout)
	:return: array with the shape of index_map plus a trailing RGB axis
	"""
	return palette[np.clip(np.asarray(index_map, dtype=np.int64), 0, len(palette) - 1)]


def apply_palette(scalar_map, palette=None):
	"""
	Maps values in [0,1] to colors, interpolating linearly between neighboring
	entries of the color table. Values outside [0,1] are clamped and NaNs map to NaN

	:param scalar_map: float array of any shape
	:param palette: (optional) color table (with Nx3 layout), magma if not given
	:return: float32 array with the shape of scalar_map plus a trailing RGB axis
	"""
	if palette is None:
		palette = get_magma_map()
	values = np.asarray(scalar_map, dtype=np.float32)
	nan_mask = np.isnan(values)

	position = np.clip(np.nan_to_num(values), 0.0, 1.0) * (len(palette) - 1)
	lower = np.minimum(np.floor(position).astype(np.int64), len(palette) - 2)
	t = (position - lower)[..., np.newaxis]
	colors = ((1.0 - t) * palette[lower] + t * palette[lower + 1]).astype(np.float32)

	colors[nan_mask] = np.nan
	return colors
