""" FLIP evaluation entry point """
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


import logging
import numbers
import time

import numpy as np

from .color import to_perceptual
from .colormaps import apply_palette, get_magma_map
from .errors import InvalidInputError, InvalidParameterError
from .hdr import compute_hdrflip, set_start_stop_num_exposures
from .metric import compute_ldrflip
from .parameters import Parameters, parameters_from_dict

logger = logging.getLogger(__name__)


class FLIPResult:
	"""
	Result of a FLIP evaluation.

	mean_error: mean FLIP error in [0,1], or None if it was not requested
	error_map: float32 array with width * height values (grayscale), or width * height * 3
			   values (interleaved RGB) if the magma map was applied, in row-major order
	exposure_map: for HDR-FLIP, int32 array with width * height exposure indices, otherwise None
	parameters: the Parameters used, with the exposure range and count filled in for HDR-FLIP
	"""

	def __init__(self, mean_error, error_map, width, height, is_magma_map, exposure_map=None, parameters=None):
		self.mean_error = mean_error
		self.error_map = error_map
		self.width = width
		self.height = height
		self.is_magma_map = is_magma_map
		self.exposure_map = exposure_map
		self.parameters = parameters

	def __repr__(self):
		return "FLIPResult(mean_error=%r, width=%d, height=%d, is_magma_map=%r)" % (self.mean_error, self.width, self.height, self.is_magma_map)

	@property
	def has_error_map(self):
		return self.error_map is not None and len(self.error_map) > 0

	def _check_pixel(self, x, y, magma):
		if not self.has_error_map:
			raise ValueError("Error map data is not available.")
		if self.is_magma_map != magma:
			raise ValueError("get_pixel is only available for grayscale maps and get_pixel_rgb for magma maps.")
		if not 0 <= x < self.width:
			raise IndexError("x must be in range [0, %d], got %d" % (self.width - 1, x))
		if not 0 <= y < self.height:
			raise IndexError("y must be in range [0, %d], got %d" % (self.height - 1, y))

	def get_pixel(self, x, y):
		""" Error value at pixel (x, y) of a grayscale error map """
		self._check_pixel(x, y, magma=False)
		return float(self.error_map[y * self.width + x])

	def get_pixel_rgb(self, x, y):
		""" (r, g, b) at pixel (x, y) of a magma error map """
		self._check_pixel(x, y, magma=True)
		index = (y * self.width + x) * 3
		return tuple(float(v) for v in self.error_map[index:index + 3])

	def as_image(self):
		""" The error map with HxW (grayscale) or HxWx3 (magma) layout """
		shape = (self.height, self.width, 3) if self.is_magma_map else (self.height, self.width)
		return np.reshape(self.error_map, shape)


def _as_buffer(name, image, expected_size):
	if image is None:
		raise InvalidInputError("%s image is missing." % name.capitalize())
	try:
		buffer = np.asarray(image, dtype=np.float32).ravel()
	except (TypeError, ValueError) as err:
		raise InvalidInputError("%s image is not a buffer of numbers: %s" % (name.capitalize(), err)) from err
	if buffer.size != expected_size:
		raise InvalidInputError("%s array size (%d) does not match expected size (%d)." % (name.capitalize(), buffer.size, expected_size))
	return buffer


def _interleaved_to_chw(buffer, width, height):
	# [r,g,b,r,g,b,...] in row-major order, top-left origin
	return np.transpose(np.reshape(buffer, (height, width, 3)), (2, 0, 1))


def _check_dimension(name, value):
	if isinstance(value, bool) or not isinstance(value, numbers.Integral):
		raise InvalidInputError("%s must be an integer. You entered %r." % (name.capitalize(), value))
	if value <= 0:
		raise InvalidInputError("%s must be positive. You entered %d." % (name.capitalize(), value))
	return int(value)


def _resolve_parameters(parameters):
	if parameters is None:
		return Parameters()
	if isinstance(parameters, Parameters):
		return parameters
	if isinstance(parameters, dict):
		return parameters_from_dict(parameters)
	raise InvalidParameterError("parameters must be a Parameters instance, a dictionary, or None.")


def evaluate(reference, test, width, height, use_hdr=False, parameters=None, apply_magma=False, compute_mean_error=True, workers=None):
	"""
	Compute the FLIP error map between two images.

	:param reference: reference image in interleaved linear RGB ([r,g,b,r,g,b,...]) with width * height * 3 values,
					  as a flat buffer or an array with HxWx3 layout. Values in [0,1] for LDR and nonnegative for HDR
	:param test: test image, same format as the reference
	:param width: positive integer, image width in pixels
	:param height: positive integer, image height in pixels
	:param use_hdr: (optional) bool saying if HDR-FLIP should be used instead of LDR-FLIP
	:param parameters: (optional) Parameters or dictionary with non-default settings (see parameters_from_dict)
	:param apply_magma: (optional) bool saying if the magma color map should be applied to the error map
	:param compute_mean_error: (optional) bool saying if the mean FLIP error should be computed
	:param workers: (optional) integer, the number of HDR-FLIP exposures evaluated concurrently
	:raise: InvalidInputError if the images or dimensions are invalid, InvalidParameterError if the settings are invalid
	:return: FLIPResult
	"""
	width = _check_dimension("width", width)
	height = _check_dimension("height", height)
	expected_size = width * height * 3
	reference = _interleaved_to_chw(_as_buffer("reference", reference, expected_size), width, height)
	test = _interleaved_to_chw(_as_buffer("test", test, expected_size), width, height)
	parameters = _resolve_parameters(parameters)

	if np.isnan(reference).any() or np.isnan(test).any():
		logger.warning("Either reference or test (or both) images contain NaNs. They propagate to the error map.")

	exposure_map = None
	if use_hdr:
		start_exposure, stop_exposure, num_exposures = set_start_stop_num_exposures(reference,
																					start_exp=parameters.start_exposure,
																					stop_exp=parameters.stop_exposure,
																					num_exposures=parameters.num_exposures,
																					tone_mapper=parameters.tonemapper)
		parameters = parameters._replace(start_exposure=start_exposure, stop_exposure=stop_exposure, num_exposures=num_exposures)
		_log_initialization_information(parameters, use_hdr)

		if (reference < 0).any() or (test < 0).any():
			logger.warning("Either reference or test (or both) images have negative pixel component values. "
						   "HDR-FLIP is defined only for nonnegative values. Negative values are treated as 0.")

		t0 = time.time()
		flip, exposure_map = compute_hdrflip(reference, test, parameters.ppd,
											 tone_mapper=parameters.tonemapper,
											 start_exposure=start_exposure,
											 stop_exposure=stop_exposure,
											 num_exposures=num_exposures,
											 workers=workers)
		exposure_map = exposure_map.ravel()
	else:
		_log_initialization_information(parameters, use_hdr)

		if (reference < 0).any() or (reference > 1).any() or (test < 0).any() or (test > 1).any():
			logger.warning("Either reference or test (or both) images have pixel component values outside [0,1]. "
						   "LDR-FLIP is defined only for [0,1]. Values have been clamped.")
			reference = np.clip(reference, 0.0, 1.0)
			test = np.clip(test, 0.0, 1.0)

		t0 = time.time()
		flip = compute_ldrflip(to_perceptual(reference), to_perceptual(test), parameters.ppd)[0]
	logger.debug("Evaluation time: %.4f seconds", time.time() - t0)

	mean = mean_error(flip) if compute_mean_error else None
	if mean is not None:
		logger.info("Mean: %.6f", mean)

	if apply_magma:
		error_map = apply_palette(flip, get_magma_map()).ravel()
	else:
		error_map = flip.ravel()

	return FLIPResult(mean, error_map, width, height, apply_magma, exposure_map=exposure_map, parameters=parameters)


def _log_initialization_information(parameters, hdr):
	logger.info("Invoking %s-FLIP", "HDR" if hdr else "LDR")
	logger.info("Pixels per degree: %d", round(parameters.ppd))
	if hdr:
		logger.info("Assumed tone mapper: %s", parameters.tonemapper.display_name)
		logger.info("Start exposure: %.4f", parameters.start_exposure)
		logger.info("Stop exposure: %.4f", parameters.stop_exposure)
		logger.info("Number of exposures: %d", parameters.num_exposures)


def mean_error(error_map):
	""" Mean of an error map, accumulated in double precision """
	return float(np.mean(error_map, dtype=np.float64))


def weighted_percentile(error_map, percentile):
	"""
	Computes a weighted percentile of an error map, i.e., the error which is such that the sum of
	the errors in the error map that are smaller than it and those that are larger than it
	are `percentile` percent of total error sum and `100 - percentile` percent of the total error sum, respectively.
	For example, if percentile = 50, the weighted percentile is the error satisfying that the errors in the
	error map that are smaller than it is 50% of the total error sum, and similar for the errors that are larger than it.

	:param error_map: array containing per-pixel FLIP values in the [0,1] range
	:param percentile: number in the [0, 100] range describing which percentile is sought
	:return: float containing the weighted percentile
	"""
	error_sorted = np.sort(np.asarray(error_map, dtype=np.float64), axis=None)
	percentile_equilibrium = np.sum(error_sorted) * percentile / 100
	index = int(np.cumsum(error_sorted).searchsorted(percentile_equilibrium))
	last = error_sorted.size - 1
	return float(0.5 * (error_sorted[min(index + 1, last)] + error_sorted[min(index, last)]))


def pooled_values(error_map):
	"""
	Pooled values of a FLIP error map

	:param error_map: array containing per-pixel FLIP values in the [0,1] range
	:return: dictionary with the mean, weighted median, 1st and 3rd weighted quartiles, minimum, and maximum
	"""
	return {
		"mean": mean_error(error_map),
		"weighted_median": weighted_percentile(error_map, 50),
		"weighted_quartile1": weighted_percentile(error_map, 25),
		"weighted_quartile3": weighted_percentile(error_map, 75),
		"min": float(np.amin(error_map)),
		"max": float(np.amax(error_map)),
	}


def output_basename(reference_name, test_name, parameters, hdr):
	"""
	Basename FLIP uses for the output files of a reference/test pair, e.g.
	"reference.test.67ppd.ldr" or "reference.test.67ppd.hdr.aces.m12.5423_to_p0.9427.14"

	:param reference_name: string, reference file name without directory and extension
	:param test_name: string, test file name without directory and extension
	:param parameters: Parameters; for HDR, with the exposure range and count resolved (see FLIPResult.parameters)
	:param hdr: bool indicating that HDR-FLIP was evaluated
	:return: string
	"""
	if not hdr:
		return "%s.%s.%dppd.ldr" % (reference_name, test_name, parameters.ppd)

	if parameters.start_exposure is None or parameters.stop_exposure is None or parameters.num_exposures is None:
		raise InvalidParameterError("The HDR-FLIP basename needs resolved start and stop exposures and number of exposures.")
	start_exposure_sign = "m" if parameters.start_exposure < 0 else "p"
	stop_exposure_sign = "m" if parameters.stop_exposure < 0 else "p"
	return "%s.%s.%dppd.hdr.%s.%s%.4f_to_%s%.4f.%d" % (reference_name, test_name, parameters.ppd, parameters.tonemapper.value,
													   start_exposure_sign, abs(parameters.start_exposure),
													   stop_exposure_sign, abs(parameters.stop_exposure),
													   parameters.num_exposures)
