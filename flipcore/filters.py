""" Spatial contrast sensitivity filters """
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

from .color import color_space_transform

# (a1, b1, a2, b2) of the contrast sensitivity function of each opponent channel.
# b2 = 1e-5 avoids division by 0 where the second Gaussian is unused.
CSF_PARAMETERS = {
	"A": (1.0, 0.0047, 0.0, 1e-5),   # Achromatic
	"RG": (1.0, 0.0053, 0.0, 1e-5),  # Red-green
	"BY": (34.1, 0.04, 13.5, 0.025), # Blue-yellow
}
CHANNELS = ("A", "RG", "BY")


def filter_radius(pixels_per_degree):
	"""
	Radius of the spatial filters. All three channels share it, and it is
	determined by the widest Gaussian in the filter bank

	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:return: integer radius, in pixels
	"""
	max_scale_parameter = max(b for params in CSF_PARAMETERS.values() for b in (params[1], params[3]))
	return int(np.ceil(3 * np.sqrt(max_scale_parameter / (2 * np.pi ** 2)) * pixels_per_degree))


@functools.lru_cache(maxsize=32)
def generate_spatial_filter(pixels_per_degree, channel):
	"""
	Generates the spatial contrast sensitivity filter of a channel, with width
	depending on the number of pixels per degree of visual angle of the observer.

	The 2D filter is a weighted sum of (at most two) isotropic Gaussians, normalized
	to sum to one. Each Gaussian is the outer product of a 1D kernel with itself, so
	the filter is returned as separable terms: the 2D filter equals
	sum(weight * outer(kernel, kernel)) over the terms.

	:param pixels_per_degree: float indicating number of pixels per degree of visual angle
	:param channel: string describing what filter should be generated ("A", "RG", or "BY")
	:return: tuple of (weight, kernel) pairs, kernels being float32 arrays of length 2 * radius + 1
	"""
	a1, b1, a2, b2 = CSF_PARAMETERS[channel]

	r = filter_radius(pixels_per_degree)
	deltaX = 1.0 / pixels_per_degree
	x = np.arange(-r, r + 1)
	z = ((x * deltaX) ** 2).astype(np.float32)

	terms = []
	total = 0.0
	for a, b in ((a1, b1), (a2, b2)):
		if a == 0:
			continue
		g = np.exp(-np.pi ** 2 * z / b)
		mass = a * np.sqrt(np.pi / b) * np.sum(g) ** 2 # sum of the 2D Gaussian
		terms.append((mass, (g / np.sum(g)).astype(np.float32)))
		total += mass

	return tuple((mass / total, kernel) for mass, kernel in terms)


def filter_channel(channel_image, terms):
	"""
	Convolves one channel with a separable filter, horizontal pass followed by
	vertical pass, replicating the image border

	:param channel_image: float32 matrix (with HxW layout)
	:param terms: separable terms as returned by generate_spatial_filter
	:return: filtered float32 matrix (with HxW layout)
	"""
	src = np.ascontiguousarray(channel_image, dtype=np.float32)
	filtered = np.zeros(src.shape, dtype=np.float32)
	for weight, kernel in terms:
		filtered += np.float32(weight) * cv.sepFilter2D(src, ddepth=-1, kernelX=kernel, kernelY=kernel, borderType=cv.BORDER_REPLICATE)
	return filtered


def spatial_filter(img, pixels_per_degree):
	"""
	Filters an image with channel specific spatial contrast sensitivity functions
	and clips result to the unit cube in linear RGB

	:param img: image to filter (with CxHxW layout in the YCxCz color space)
	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:return: input image (with CxHxW layout) transformed to linear RGB after filtering with spatial contrast sensitivity functions
	"""
	img_tilde_opponent = np.stack([filter_channel(img[c], generate_spatial_filter(pixels_per_degree, channel))
								   for c, channel in enumerate(CHANNELS)])

	# Transform to linear RGB for clamp
	img_tilde_linear_rgb = color_space_transform(img_tilde_opponent, "ycxcz2linrgb")

	# Clamp to RGB box
	return np.clip(img_tilde_linear_rgb, 0.0, 1.0)
