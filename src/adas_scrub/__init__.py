"""
ADAS Scrub - calibration requirements from collision repair estimates.

This package reads free-form repair estimate text and determines which ADAS
components (cameras, radars, steering-angle sensors) need recalibration,
using vehicle-specific OEM rule data.
"""

__version__ = "0.1.0"

from adas_scrub.scrub import EstimateAnalysis, ScrubEngine

__all__ = [
    "EstimateAnalysis",
    "ScrubEngine",
]
