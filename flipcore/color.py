""" Color space transforms used by FLIP """
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


import numpy as np

from .errors import InvalidParameterError

# D65 standard illuminant, and its reciprocal
REFERENCE_ILLUMINANT = np.array([[[0.950428545]], [[1.000000000]], [[1.088900371]]]).astype(np.float32)
INV_REFERENCE_ILLUMINANT = np.array([[[1.052156925]], [[1.000000000]], [[0.918357670]]]).astype(np.float32)

# Source: https://www.image-engineering.de/library/technotes/958-how-to-convert-between-srgb-and-ciexyz
LINRGB_TO_XYZ = np.array([[10135552 / 24577794, 8788810 / 24577794, 4435075 / 24577794],
						  [2613072 / 12288897,  8788810 / 12288897, 887015 / 12288897],
						  [1425312 / 73733382,  8788810 / 73733382, 70074185 / 73733382]]).astype(np.float32)

# Inverse of LINRGB_TO_XYZ
XYZ_TO_LINRGB = np.array([[3.241003275, -1.537398934, -0.498615861],
						  [-0.969224334, 1.875930071, 0.041554224],
						  [0.055639423, -0.204011202, 1.057148933]]).astype(np.float32)

# Multi-step transforms, expressed as chains of the elementary ones below
COMPOSITE_TRANSFORMS = {
	"srgb2xyz": ("srgb2linrgb", "linrgb2xyz"),
	"srgb2ycxcz": ("srgb2linrgb", "linrgb2xyz", "xyz2ycxcz"),
	"srgb2lab": ("srgb2linrgb", "linrgb2xyz", "xyz2lab"),
	"linrgb2ycxcz": ("linrgb2xyz", "xyz2ycxcz"),
	"linrgb2lab": ("linrgb2xyz", "xyz2lab"),
	"ycxcz2linrgb": ("ycxcz2xyz", "xyz2linrgb"),
	"ycxcz2lab": ("ycxcz2xyz", "xyz2lab"),
	"lab2srgb": ("lab2xyz", "xyz2linrgb", "linrgb2srgb"),
}


def _apply_matrix(A, img):
	# (C,H,W) -> (W,C,H), batched 3x3 product, back to (C,H,W)
	transformed = np.matmul(A, np.transpose(img, (2, 0, 1)))
	return np.transpose(transformed, (1, 2, 0))


def _srgb2linrgb(img):
	limit = 0.04045
	return np.where(img > limit, np.power((np.maximum(img, limit) + 0.055) / 1.055, 2.4), img / 12.92)


def _linrgb2srgb(img):
	limit = 0.0031308
	return np.where(img > limit, 1.055 * np.power(np.maximum(img, limit), 1.0 / 2.4) - 0.055, 12.92 * img)


def _xyz2ycxcz(img):
	img = np.multiply(img, INV_REFERENCE_ILLUMINANT)
	y = 116 * img[1:2, :, :] - 16
	cx = 500 * (img[0:1, :, :] - img[1:2, :, :])
	cz = 200 * (img[1:2, :, :] - img[2:3, :, :])
	return np.concatenate((y, cx, cz), 0)


def _ycxcz2xyz(img):
	y = (img[0:1, :, :] + 16) / 116
	cx = img[1:2, :, :] / 500
	cz = img[2:3, :, :] / 200
	xyz = np.concatenate((y + cx, y, y - cz), 0)
	return np.multiply(xyz, REFERENCE_ILLUMINANT)


def _xyz2lab(img):
	img = np.multiply(img, INV_REFERENCE_ILLUMINANT)
	delta = 6 / 29
	delta_square = delta * delta
	delta_cube = delta * delta_square
	factor = 1 / (3 * delta_square)

	img = np.where(img > delta_cube, np.power(np.maximum(img, delta_cube), 1 / 3), factor * img + 4 / 29)

	l = 116 * img[1:2, :, :] - 16
	a = 500 * (img[0:1, :, :] - img[1:2, :, :])
	b = 200 * (img[1:2, :, :] - img[2:3, :, :])
	return np.concatenate((l, a, b), 0)


def _lab2xyz(img):
	y = (img[0:1, :, :] + 16) / 116
	a = img[1:2, :, :] / 500
	b = img[2:3, :, :] / 200

	xyz = np.concatenate((y + a, y, y - b), 0)
	delta = 6 / 29
	factor = 3 * delta * delta
	xyz = np.where(xyz > delta, xyz ** 3, factor * (xyz - 4 / 29))
	return np.multiply(xyz, REFERENCE_ILLUMINANT)


ELEMENTARY_TRANSFORMS = {
	"srgb2linrgb": _srgb2linrgb,
	"linrgb2srgb": _linrgb2srgb,
	"linrgb2xyz": lambda img: _apply_matrix(LINRGB_TO_XYZ, img),
	"xyz2linrgb": lambda img: _apply_matrix(XYZ_TO_LINRGB, img),
	"xyz2ycxcz": _xyz2ycxcz,
	"ycxcz2xyz": _ycxcz2xyz,
	"xyz2lab": _xyz2lab,
	"lab2xyz": _lab2xyz,
}


def color_space_transform(input_color, fromSpace2toSpace):
	"""
	Transforms images between color spaces

	:param input_color: float32 array of colors to transform (with CxHxW layout)
	:param fromSpace2toSpace: string naming the transform, e.g. "linrgb2ycxcz"
	:raise: InvalidParameterError if the transform is unknown
	:return: transformed array (with CxHxW layout)
	"""
	if fromSpace2toSpace in ELEMENTARY_TRANSFORMS:
		return ELEMENTARY_TRANSFORMS[fromSpace2toSpace](input_color)
	if fromSpace2toSpace not in COMPOSITE_TRANSFORMS:
		raise InvalidParameterError("The color transform %s is not defined" % fromSpace2toSpace)

	transformed_color = input_color
	for step in COMPOSITE_TRANSFORMS[fromSpace2toSpace]:
		transformed_color = ELEMENTARY_TRANSFORMS[step](transformed_color)
	return transformed_color


def to_perceptual(linear_rgb):
	"""
	Transforms a linear RGB image to the YCxCz opponent space,
	where the first channel is luminance and the other two are chroma

	:param linear_rgb: float32 array (with CxHxW layout) in linear RGB
	:return: float32 array (with CxHxW layout) in YCxCz
	"""
	return color_space_transform(linear_rgb, "linrgb2ycxcz")


def from_exposed(tone_mapped):
	"""
	Transforms an exposure compensated and tone mapped image to YCxCz.
	Values are clamped to [0,1] first, since LDR-FLIP is only defined there

	:param tone_mapped: float32 array (with CxHxW layout) in linear RGB
	:return: float32 array (with CxHxW layout) in YCxCz
	"""
	return to_perceptual(np.clip(tone_mapped, 0.0, 1.0))


def hunt_adjustment(img):
	"""
	Applies Hunt-adjustment to an image

	:param img: image to adjust (with CxHxW layout in the L*a*b* color space)
	:return: Hunt-adjusted image (with CxHxW layout in the Hunt-adjusted L*A*B* color space)
	"""
	L = img[0:1, :, :]
	return np.concatenate((L, (0.01 * L) * img[1:3, :, :]), 0)


def perceptually_uniform(linear_rgb):
	""" Linear RGB -> Hunt-adjusted L*A*B*, the space in which FLIP measures color differences """
	return hunt_adjustment(color_space_transform(linear_rgb, "linrgb2lab"))
