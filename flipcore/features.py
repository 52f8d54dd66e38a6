""" Edge and point detection on the achromatic channel """
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

import cv2 as cv
import numpy as np

# Peak to trough value (2x standard deviations) of the human edge detection filter
EDGE_FILTER_WIDTH = 0.082


@functools.lru_cache(maxsize=32)
def generate_feature_kernels(pixels_per_degree, feature_type):
	"""
	Generates the separable feature detection filter. The 2D filter is
	derivative(x) * gaussian(y), where derivative is the first (edges) or
	second (points) partial derivative of a Gaussian. Positive weights of
	the derivative sum to 1 and negative weights to -1, while the Gaussian sums to 1

	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:param feature_type: string indicating the type of feature to detect ("edge" or "point")
	:return: two float32 kernels, the derivative kernel and the smoothing kernel
	"""
	sd = 0.5 * EDGE_FILTER_WIDTH * pixels_per_degree
	radius = int(np.ceil(3 * sd))

	x = np.arange(-radius, radius + 1)
	g = np.exp(-(x ** 2) / (2 * sd * sd))

	if feature_type == "edge":
		derivative = -x * g
	else:
		derivative = (x ** 2 / (sd * sd) - 1) * g

	negative_weights_sum = -np.sum(derivative[derivative < 0])
	positive_weights_sum = np.sum(derivative[derivative > 0])
	derivative = np.where(derivative < 0, derivative / negative_weights_sum, derivative / positive_weights_sum)

	return derivative.astype(np.float32), (g / np.sum(g)).astype(np.float32)


def feature_detection(img_y, pixels_per_degree, feature_type):
	"""
	Detects edges or points (features) in the achromatic image

	:param img_y: achromatic image (with HxW layout, containing normalized Y-values from YCxCz)
	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:param feature_type: string indicating the type of feature to detect
	:return: array (with 2xHxW layout) containing the filter responses in the x and y directions
	"""
	derivative, smoothing = generate_feature_kernels(pixels_per_degree, feature_type)
	src = np.ascontiguousarray(img_y, dtype=np.float32)

	featuresX = cv.sepFilter2D(src, ddepth=-1, kernelX=derivative, kernelY=smoothing, borderType=cv.BORDER_REPLICATE)
	featuresY = cv.sepFilter2D(src, ddepth=-1, kernelX=smoothing, kernelY=derivative, borderType=cv.BORDER_REPLICATE)

	return np.stack((featuresX, featuresY))


def detect_features(img_y, pixels_per_degree):
	"""
	Computes edge and point response magnitudes of an achromatic image

	:param img_y: achromatic image (with HxW layout, containing normalized Y-values from YCxCz)
	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:return: two nonnegative matrices (with HxW layout), the edge and the point magnitudes
	"""
	edges = np.linalg.norm(feature_detection(img_y, pixels_per_degree, "edge"), axis=0)
	points = np.linalg.norm(feature_detection(img_y, pixels_per_degree, "point"), axis=0)
	return edges, points
