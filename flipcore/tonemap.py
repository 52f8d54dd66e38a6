""" Exposure compensation and tone mapping for HDR-FLIP """
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


import enum

import numpy as np

from .errors import InvalidParameterError

# Rec. 709 luminance weights
LUMINANCE_COEFFICIENTS = (0.2126, 0.7152, 0.0722)


class Tonemapper(enum.Enum):
	""" Tone mappers HDR-FLIP may assume """
	ACES = "aces"
	REINHARD = "reinhard"
	HABLE = "hable"

	@classmethod
	def parse(cls, value):
		"""
		Accepts a Tonemapper or a case-insensitive name ("ACES", "Hable", "reinhard", ...)

		:raise: InvalidParameterError if the name is unknown
		"""
		if isinstance(value, cls):
			return value
		try:
			return cls(str(value).lower())
		except ValueError:
			raise InvalidParameterError("Invalid tonemapper %r. Valid options are \"ACES\", \"Hable\", and \"Reinhard\"." % (value,)) from None

	@property
	def display_name(self):
		return {"aces": "ACES", "reinhard": "Reinhard", "hable": "Hable"}[self.value]


def luminance(img):
	""" Luminance (with 1xHxW layout) of a linear RGB image (with CxHxW layout) """
	r, g, b = LUMINANCE_COEFFICIENTS
	return img[0:1, :, :] * r + img[1:2, :, :] * g + img[2:3, :, :] * b


def tone_mapper_coefficients(tone_mapper):
	"""
	Coefficients k0..k5 of the rational tone curve (k0*x^2 + k1*x + k2) / (k3*x^2 + k4*x + k5).
	Reinhard is x / (1 + x) when written on this form, although tone_map applies
	it using the luminance of the pixel in the denominator

	:param tone_mapper: Tonemapper
	:return: tuple of six floats
	"""
	if tone_mapper == Tonemapper.REINHARD:
		return (0.0, 1.0, 0.0, 0.0, 1.0, 1.0)

	if tone_mapper == Tonemapper.HABLE:
		# Source: https://64.github.io/tonemapping/
		A = 0.15
		B = 0.50
		C = 0.10
		D = 0.20
		E = 0.02
		F = 0.30
		k0 = A * F - A * E
		k1 = C * B * F - B * E
		k2 = 0.0
		k3 = A * F
		k4 = B * F
		k5 = D * F * F

		W = 11.2
		nom = k0 * W ** 2 + k1 * W + k2
		denom = k3 * W ** 2 + k4 * W + k5
		white_scale = denom / nom # = 1 / (nom / denom)

		# Include white scale and exposure bias in rational polynomial coefficients
		return (4 * k0 * white_scale, 2 * k1 * white_scale, k2 * white_scale, 4 * k3, 2 * k4, k5)

	# Source: ACES approximation: https://knarkowicz.wordpress.com/2016/01/06/aces-filmic-tone-mapping-curve/
	# Include pre-exposure cancelation in constants
	return (0.6 * 0.6 * 2.51, 0.6 * 0.03, 0.0, 0.6 * 0.6 * 2.43, 0.6 * 0.59, 0.14)


def tone_map(img, exposure, tone_mapper=Tonemapper.ACES):
	"""
	Applies exposure compensation and tone mapping.
	Refer to the Visualizing Errors in Rendered High Dynamic Range Images
	paper for details about the formulas

	:param img: float32 array (with CxHxW layout) in linear RGB. Negative values are clipped to 0
	:param exposure: float describing the exposure compensation, in stops
	:param tone_mapper: (optional) Tonemapper or tone mapper name
	:return: float32 array (with CxHxW layout) containing the exposure compensated and tone mapped image, in [0,1]
	"""
	tone_mapper = Tonemapper.parse(tone_mapper)

	x = np.float32(2 ** exposure) * np.maximum(img, 0.0)

	if tone_mapper == Tonemapper.REINHARD:
		return np.clip(np.divide(x, 1 + luminance(x)), 0.0, 1.0)

	k0, k1, k2, k3, k4, k5 = tone_mapper_coefficients(tone_mapper)
	x2 = np.power(x, 2)
	nom = k0 * x2 + k1 * x + k2
	denom = k3 * x2 + k4 * x + k5
	denom[np.isinf(denom)] = 1.0 # if denom is inf, then so is nom => nan. Pixel is very bright. It becomes inf here, but 1 after clamp below
	return np.clip(np.divide(nom, denom), 0.0, 1.0)


def exposure_limits(tone_mapper, t_max=0.85, t_min=0.85):
	"""
	Inverts the tone curve: finds the linear values that are mapped to t_max and t_min

	:param tone_mapper: Tonemapper
	:param t_max: float describing the t value used to find the start exposure
	:param t_min: float describing the t value used to find the stop exposure
	:return: two floats x_max and x_min
	"""
	k0, k1, k2, k3, k4, k5 = tone_mapper_coefficients(tone_mapper)

	if tone_mapper == Tonemapper.REINHARD:
		return t_max * k5 / (k1 - t_max * k4), t_min * k5 / (k1 - t_min * k4)

	def solve(t):
		# Positive root of (k0 - k3 t) x^2 + (k1 - k4 t) x + (k2 - k5 t) = 0
		c0 = (k1 - k4 * t) / (k0 - k3 * t)
		c1 = (k2 - k5 * t) / (k0 - k3 * t)
		return -0.5 * c0 + np.sqrt((0.5 * c0) ** 2 - c1)

	return float(solve(t_max)), float(solve(t_min))
