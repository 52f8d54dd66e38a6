""" LDR-FLIP: color and feature differences and their combination """
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

# Visualizing and Communicating Errors in Rendered Images
# Ray Tracing Gems II, 2021,
# by Pontus Andersson, Jim Nilsson, and Tomas Akenine-Moller.
# Pointer to the chapter: https://research.nvidia.com/publication/2021-08_Visualizing-and-Communicating.

# Visualizing Errors in Rendered High Dynamic Range Images
# Eurographics 2021,
# by Pontus Andersson, Jim Nilsson, Peter Shirley, and Tomas Akenine-Moller.
# Pointer to the paper: https://research.nvidia.com/publication/2021-05_HDR-FLIP.

# FLIP: A Difference Evaluator for Alternating Images
# High Performance Graphics 2020,
# by Pontus Andersson, Jim Nilsson, Tomas Akenine-Moller,
# Magnus Oskarsson, Kalle Astrom, and Mark D. Fairchild.
# Pointer to the paper: https://research.nvidia.com/publication/2020-07_FLIP.

# Code by Pontus Andersson, Jim Nilsson, and Tomas Akenine-Moller.


import functools

import numpy as np

from .color import perceptually_uniform
from .features import detect_features
from .filters import spatial_filter

# Color and feature exponents
QC = 0.7
QF = 0.5

# Error redistribution parameters
PC = 0.4
PT = 0.95


def hyab(reference, test):
	"""
	Computes the HyAB distance between reference and test images

	:param reference: reference image (with CxHxW layout in the standard or Hunt-adjusted L*A*B* color space)
	:param test: test image (with CxHxW layout in the standard or Hunt-adjusted L*A*B* color space)
	:return: matrix (with 1xHxW layout) containing the per-pixel HyAB distance between reference and test
	"""
	delta = reference - test
	return np.abs(delta[0:1, :, :]) + np.linalg.norm(delta[1:3, :, :], axis=0, keepdims=True)


@functools.lru_cache(maxsize=None)
def max_color_difference(qc=QC):
	""" The exponentiated HyAB distance between Hunt-adjusted green and blue, the largest one in the RGB cube """
	green = np.array([[[0.0]], [[1.0]], [[0.0]]]).astype(np.float32)
	blue = np.array([[[0.0]], [[0.0]], [[1.0]]]).astype(np.float32)
	return float(np.power(hyab(perceptually_uniform(green), perceptually_uniform(blue)), qc).item())


def redistribute_errors(power_deltaE_hyab, cmax, pc=PC, pt=PT):
	"""
	Redistributes exponentiated HyAB errors to the [0,1] range

	:param power_deltaE_hyab: matrix containing the exponentiated HyAB distance
	:param cmax: float containing the exponentiated, maximum HyAB difference between two colors in Hunt-adjusted L*A*B* space
	:param pc: float containing the cmax multiplier p_c
	:param pt: float containing the target value, p_t, for p_c * cmax
	:return: matrix containing redistributed per-pixel HyAB distances (in range [0,1])
	"""
	# Values between 0 and pccmax are mapped to the range [0, pt],
	# while the rest are mapped to the range (pt, 1]
	pccmax = pc * cmax
	return np.where(power_deltaE_hyab < pccmax,
					(pt / pccmax) * power_deltaE_hyab,
					pt + ((power_deltaE_hyab - pccmax) / (cmax - pccmax)) * (1.0 - pt))


def color_difference(filtered_reference, filtered_test):
	"""
	Computes the color difference between spatially filtered images

	:param filtered_reference: reference image (with CxHxW layout in linear RGB, output of spatial_filter)
	:param filtered_test: test image (with CxHxW layout in linear RGB, output of spatial_filter)
	:return: matrix (with 1xHxW layout) containing per-pixel color differences in [0,1]
	"""
	deltaE_hyab = hyab(perceptually_uniform(filtered_reference), perceptually_uniform(filtered_test))
	return redistribute_errors(np.power(deltaE_hyab, QC), max_color_difference())


def feature_difference(edges_reference, points_reference, edges_test, points_test):
	"""
	Computes the feature difference from edge and point magnitudes

	:return: matrix (with the layout of the inputs) containing per-pixel feature differences in [0,1]
	"""
	deltaE_f = np.maximum(np.abs(edges_reference - edges_test), np.abs(points_test - points_reference))
	return np.power((1 / np.sqrt(2)) * deltaE_f, QF)


def combine(deltaE_c, deltaE_f):
	"""
	Combines color and feature differences into the FLIP error. Feature
	differences amplify color differences: the error is deltaE_c ^ (1 - deltaE_f)

	:param deltaE_c: matrix containing per-pixel color differences
	:param deltaE_f: matrix containing per-pixel feature differences
	:return: matrix containing per-pixel FLIP errors in [0,1]
	"""
	return np.clip(np.power(deltaE_c, 1 - deltaE_f), 0.0, 1.0).astype(np.float32)


def compute_ldrflip(reference, test, pixels_per_degree):
	"""
	Computes the FLIP error map between two LDR images,
	assuming the images are observed at a certain number of
	pixels per degree of visual angle

	:param reference: reference image (with CxHxW layout in the YCxCz color space)
	:param test: test image (with CxHxW layout in the YCxCz color space)
	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:return: matrix (with 1xHxW layout on float32 format) containing the per-pixel FLIP errors (in the range [0, 1])
	"""
	# --- Color pipeline ---
	filtered_reference = spatial_filter(reference, pixels_per_degree)
	filtered_test = spatial_filter(test, pixels_per_degree)
	deltaE_c = color_difference(filtered_reference, filtered_test)

	# --- Feature pipeline ---
	# Extract and normalize achromatic component
	reference_y = (reference[0] + 16) / 116
	test_y = (test[0] + 16) / 116

	edges_reference, points_reference = detect_features(reference_y, pixels_per_degree)
	edges_test, points_test = detect_features(test_y, pixels_per_degree)
	deltaE_f = feature_difference(edges_reference, points_reference, edges_test, points_test)

	# --- Final error ---
	return combine(deltaE_c, deltaE_f[np.newaxis, :, :])
