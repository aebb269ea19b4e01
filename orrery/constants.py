from __future__ import annotations

import os
from typing import Final

"""
This module defines the normalized physical constants and integration defaults shared by the engine, the scenario presets and the session driver. G_CONST fixes the gravitational constant of the visual unit system, DEFAULT_TIME_STEP is the base step the frame driver scales by simulation speed, and DEFAULT_SOFTENING and DEFAULT_SAMPLE_INTERVAL can be overridden at runtime through the ORRERY_SOFTENING and ORRERY_SAMPLE_INTERVAL environment variables. It assumes constants are read once at import and used consistently across controllers and presets.


"""




def _parse_positive(name: str, default: float) -> float:
	env_val = os.getenv(name, "")
	if env_val.strip() != "":
		if env_val.replace(".", "", 1).replace("-", "", 1).isdigit():
			val = float(env_val)
			if val >= 0.0:
				return val
	return default




G_CONST: Final[float] = 1.0
DEFAULT_TIME_STEP: Final[float] = 0.01
DEFAULT_SOFTENING: Final[float] = _parse_positive("ORRERY_SOFTENING", 0.15)
DEFAULT_SAMPLE_INTERVAL: Final[float] = _parse_positive("ORRERY_SAMPLE_INTERVAL", 1.0)

MAX_TRAIL_LENGTH: int = 300
