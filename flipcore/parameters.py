""" FLIP settings and viewing conditions """
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


import collections
import math
import numbers

from .errors import InvalidParameterError
from .tonemap import Tonemapper


def calculate_ppd(viewing_distance, resolution_x, monitor_width):
	"""
	Computes the observer's number of pixels per degree of visual angle

	:param viewing_distance: float describing the distance to the monitor, in meters
	:param resolution_x: horizontal resolution of the monitor, in pixels
	:param monitor_width: float describing the width of the monitor, in meters
	:return: float describing the number of pixels per degree of visual angle
	"""
	return viewing_distance * (resolution_x / monitor_width) * (math.pi / 180)


# Viewing the images at 0.7 meters from a 0.7 meters wide 4K display
DEFAULT_VIEWING_CONDITIONS = (0.7, 3840, 0.7)
DEFAULT_PPD = calculate_ppd(*DEFAULT_VIEWING_CONDITIONS)


_Parameters = collections.namedtuple("Parameters", ["ppd", "start_exposure", "stop_exposure", "num_exposures", "tonemapper"])


class Parameters(_Parameters):
	"""
	Immutable FLIP settings.

	ppd: pixels per degree of visual angle (> 0)
	start_exposure, stop_exposure: HDR-FLIP exposure range in stops, None to compute it from the reference image
	num_exposures: number of exposures in the HDR-FLIP sweep (>= 1), None to compute it from the exposure range
	tonemapper: Tonemapper assumed by HDR-FLIP
	"""
	__slots__ = ()

	def __new__(cls, ppd=DEFAULT_PPD, start_exposure=None, stop_exposure=None, num_exposures=None, tonemapper=Tonemapper.ACES):
		if isinstance(ppd, bool) or not isinstance(ppd, numbers.Real) or not ppd > 0 or math.isinf(ppd):
			raise InvalidParameterError("The number of pixels per degree must be positive. You entered %r." % (ppd,))
		for name, value in (("start_exposure", start_exposure), ("stop_exposure", stop_exposure)):
			if value is not None and (isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value)):
				raise InvalidParameterError("%s must be a finite number or None. You entered %r." % (name, value))
		if start_exposure is not None and stop_exposure is not None and stop_exposure <= start_exposure:
			raise InvalidParameterError("stop_exposure (%s) must be greater than start_exposure (%s)." % (stop_exposure, start_exposure))
		if num_exposures is not None:
			if isinstance(num_exposures, bool) or not isinstance(num_exposures, numbers.Integral):
				raise InvalidParameterError("num_exposures must be an integer or None. You entered %r." % (num_exposures,))
			if num_exposures < 1:
				raise InvalidParameterError("Number of exposures must be at least one. You entered %d." % num_exposures)
			num_exposures = int(num_exposures)
		return super().__new__(cls, float(ppd),
							   None if start_exposure is None else float(start_exposure),
							   None if stop_exposure is None else float(stop_exposure),
							   num_exposures,
							   Tonemapper.parse(tonemapper))

	def replace(self, **kwargs):
		""" Copy with some fields changed. The result is validated like a new instance """
		return Parameters(**dict(self._asdict(), **kwargs))

	def to_dict(self):
		""" The settings as a dictionary with the keys used by FLIP's Python API """
		return {
			"ppd": self.ppd,
			"startExposure": self.start_exposure,
			"stopExposure": self.stop_exposure,
			"numExposures": self.num_exposures,
			"tonemapper": self.tonemapper.value,
		}


DICT_KEYS = {
	"ppd": "ppd",
	"startExposure": "start_exposure",
	"stopExposure": "stop_exposure",
	"numExposures": "num_exposures",
	"tonemapper": "tonemapper",
}


def parameters_from_dict(parameters):
	"""
	Builds Parameters from a dictionary with non-default settings:
		"ppd": float describing assumed pixels per degree of visual angle. Should not be included if "vc" is included, and vice versa
		"vc": three floats, the distance to the display (meters), the display width (pixels), and the display width (meters)
		"startExposure": float setting the start exposure
		"stopExposure": float setting the stop exposure
		"numExposures": int setting the number of exposure steps
		"tonemapper": string setting the assumed tone mapper. Allowed options are "ACES", "Hable", and "Reinhard"

	:param parameters: dictionary, may be empty
	:raise: InvalidParameterError for unknown keys and invalid settings
	:return: Parameters
	"""
	unknown = set(parameters) - set(DICT_KEYS) - {"vc"}
	if unknown:
		raise InvalidParameterError("Unknown FLIP parameters: %s" % ", ".join(sorted(unknown)))

	if "vc" in parameters and "ppd" in parameters:
		raise InvalidParameterError("\"vc\" and \"ppd\" are mutually exclusive. Use only one of the two.")

	kwargs = {DICT_KEYS[key]: value for key, value in parameters.items() if key != "vc" and value is not None}
	if "vc" in parameters:
		vc = parameters["vc"]
		if len(vc) != 3 or any(v <= 0 for v in vc):
			raise InvalidParameterError("Viewing condition options must be three positive numbers.")
		kwargs["ppd"] = calculate_ppd(vc[0], vc[1], vc[2])

	return Parameters(**kwargs)
