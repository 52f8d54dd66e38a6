""" HDR-FLIP: exposure range computation and exposure sweep """
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
from multiprocessing.dummy import Pool

import numpy as np

from .color import from_exposed
from .colormaps import get_viridis_map, index2color
from .errors import InvalidParameterError
from .metric import compute_ldrflip
from .tonemap import Tonemapper, exposure_limits, luminance, tone_map

logger = logging.getLogger(__name__)

# Smallest median luminance used for the stop exposure (float32 machine epsilon)
LUMINANCE_EPSILON = float(np.finfo(np.float32).eps)


def compute_exposure_params(reference, tone_mapper=Tonemapper.ACES, t_max=0.85, t_min=0.85):
	"""
	Computes start and stop exposure for HDR-FLIP based on given tone mapper and reference image.
	The start exposure maps the brightest pixel of the reference to t_max, and the stop
	exposure maps the median luminance to t_min. Non-finite luminances are ignored.
	Refer to the Visualizing Errors in Rendered High Dynamic Range Images
	paper for details about the formulas

	:param reference: float32 array (with CxHxW layout) containing reference image (nonnegative values)
	:param tone_mapper: (optional) Tonemapper assumed by HDR-FLIP
	:param t_max: (optional) float describing the t value used to find the start exposure
	:param t_min: (optional) float describing the t value used to find the stop exposure
	:return: two floats describing start and stop exposure, respectively, to use for HDR-FLIP
	"""
	x_max, x_min = exposure_limits(Tonemapper.parse(tone_mapper), t_max, t_min)

	Y_reference = luminance(reference).ravel()
	Y_reference = Y_reference[np.isfinite(Y_reference)]
	if Y_reference.size == 0:
		return 0.0, 0.0

	Y_hi = float(np.amax(Y_reference))
	if Y_hi <= 0:
		return 0.0, 0.0
	start_exposure = float(np.log2(x_max / Y_hi))

	# Lower median, clamped to a small epsilon
	Y_lo = max(float(_lower_median(Y_reference)), LUMINANCE_EPSILON)
	stop_exposure = float(np.log2(x_min / Y_lo))

	return start_exposure, stop_exposure


def _lower_median(values):
	k = (values.size - 1) // 2
	return np.partition(values, k)[k]


def set_start_stop_num_exposures(reference, start_exp=None, stop_exp=None, num_exposures=None, tone_mapper=Tonemapper.ACES):
	"""
	Resolves the exposure range and number of exposures of the HDR-FLIP sweep.
	Values that are not given are computed from the reference image

	:param reference: float32 array (with CxHxW layout) containing reference image
	:param start_exp: (optional) float, the shortest exposure
	:param stop_exp: (optional) float, the longest exposure
	:param num_exposures: (optional) integer, the number of exposures
	:param tone_mapper: (optional) Tonemapper assumed by HDR-FLIP
	:raise: InvalidParameterError if the range is empty or reversed, or num_exposures < 1
	:return: start exposure, stop exposure, and number of exposures
	"""
	if start_exp is not None and stop_exp is not None:
		if stop_exp <= start_exp:
			raise InvalidParameterError("Stop exposure (%.4f) must be greater than start exposure (%.4f)." % (stop_exp, start_exp))
		start_exposure, stop_exposure = start_exp, stop_exp
	else:
		start_exposure, stop_exposure = compute_exposure_params(reference, tone_mapper=tone_mapper)
		if start_exp is not None: start_exposure = start_exp
		if stop_exp is not None: stop_exposure = stop_exp
		if stop_exposure < start_exposure:
			raise InvalidParameterError("Stop exposure (%.4f) is smaller than start exposure (%.4f)." % (stop_exposure, start_exposure))

	if num_exposures is not None and num_exposures < 1:
		raise InvalidParameterError("Number of exposures must be at least one. You entered %d." % num_exposures)

	if start_exposure == stop_exposure:
		num_exposures = 1
	elif num_exposures is None:
		num_exposures = int(max(2, np.ceil(stop_exposure - start_exposure)))

	return float(start_exposure), float(stop_exposure), int(num_exposures)


def exposures(start_exposure, stop_exposure, num_exposures):
	""" The linearly spaced exposures of the sweep, start and stop included """
	step_size = (stop_exposure - start_exposure) / max(num_exposures - 1, 1)
	return [start_exposure + i * step_size for i in range(num_exposures)]


def _ldrflip_at_exposure(reference, test, exposure, pixels_per_degree, tone_mapper):
	reference_tone_mapped = from_exposed(tone_map(reference, exposure, tone_mapper=tone_mapper))
	test_tone_mapped = from_exposed(tone_map(test, exposure, tone_mapper=tone_mapper))
	return compute_ldrflip(reference_tone_mapped, test_tone_mapped, pixels_per_degree)[0]


def compute_hdrflip(reference, test, pixels_per_degree, tone_mapper=Tonemapper.ACES, start_exposure=0.0, stop_exposure=0.0, num_exposures=1, workers=None):
	"""
	Computes the FLIP error map between two HDR images,
	assuming the images are observed at a certain number of
	pixels per degree of visual angle.

	LDR-FLIP is evaluated for each exposure of the sweep and the per-pixel
	maximum is kept, together with the index of the exposure that produced it

	:param reference: reference image (with CxHxW layout on float32 format in linear RGB)
	:param test: test image (with CxHxW layout on float32 format in linear RGB)
	:param pixels_per_degree: float describing the number of pixels per degree of visual angle of the observer
	:param tone_mapper: (optional) Tonemapper assumed by HDR-FLIP
	:param start_exposure: (optional) float indicating the shortest exposure HDR-FLIP should use
	:param stop_exposure: (optional) float indicating the longest exposure HDR-FLIP should use
	:param num_exposures: (optional) integer, the number of exposures
	:param workers: (optional) integer, the number of exposures evaluated concurrently
	:return: matrix (with HxW layout on float32 format) containing the per-pixel HDR-FLIP errors (in the range [0, 1])
			 and matrix (with HxW layout on int32 format) containing the index of the exposure that yielded each error
	"""
	tone_mapper = Tonemapper.parse(tone_mapper)
	sweep = exposures(start_exposure, stop_exposure, num_exposures)

	def evaluate_exposure(exposure):
		return _ldrflip_at_exposure(reference, test, exposure, pixels_per_degree, tone_mapper)

	dim = reference.shape
	hdrflip = np.full((dim[1], dim[2]), -np.inf, dtype=np.float32)
	exposure_map = np.zeros((dim[1], dim[2]), dtype=np.int32)

	# Fold in exposure order, so ties resolve to the first exposure. NaNs stick
	def fold(i, deltaE):
		logger.debug("Exposure %d/%d (%.4f): mean LDR-FLIP %.6f", i + 1, num_exposures, sweep[i], float(np.mean(deltaE)))
		larger = (deltaE > hdrflip) | np.isnan(deltaE)
		exposure_map[larger] = i
		hdrflip[larger] = deltaE[larger]

	if workers is not None and workers > 1 and num_exposures > 1:
		with Pool(min(workers, num_exposures)) as pool:
			for i, deltaE in enumerate(pool.imap(evaluate_exposure, sweep)):
				fold(i, deltaE)
	else:
		for i, exposure in enumerate(sweep):
			fold(i, evaluate_exposure(exposure))

	return hdrflip, exposure_map


def compute_exposure_map(exposure_map, num_exposures):
	"""
	Colors an exposure index map with the viridis color map

	:param exposure_map: integer matrix (with HxW layout) describing which exposure yielded the HDR-FLIP error
	:param num_exposures: integer describing the number of exposures used to compute the HDR-FLIP map
	:return: float32 array (with HxWx3 layout) in viridis colors
	"""
	t = exposure_map / max(num_exposures - 1, 1)
	return index2color(np.round(t * 255.0), get_viridis_map())
