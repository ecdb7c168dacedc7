"""Detection of ADAS components named directly in estimate lines.

A replaced radar sensor or windshield camera needs calibration whatever the
vehicle's OEM rule table says, so part mentions feed the inference pass.
Phrases match on word boundaries ("sas" must not hit "Kansas").
"""

import logging
import re
from typing import Dict, List, Pattern

from adas_scrub.scrub.schemas import AdasPartDetection
from adas_scrub.scrub.text_normalizer import EstimateLine

logger = logging.getLogger(__name__)

FRONT_RADAR = "frontRadar"
FRONT_CAMERA = "frontCamera"
BLIND_SPOT_MONITOR = "blindSpotMonitor"
SURROUND_CAMERA = "surroundCamera"
PARKING_SENSOR = "parkingSensor"
STEERING_ANGLE_SENSOR = "steeringAngleSensor"
REAR_CAMERA = "rearCamera"

ADAS_PART_INDICATORS: Dict[str, List[str]] = {
    FRONT_RADAR: [
        "radar sensor", "front radar", "millimeter wave radar",
        "distance sensor", "acc sensor", "cruise control sensor",
        "distronic sensor", "collision sensor", "pre-collision sensor",
        "toyota safety sense radar", "tss radar",
        "honda sensing radar", "acurawatch radar",
        "eyesight radar", "subaru eyesight",
        "nissan propilot radar", "intelligent cruise radar",
        "mazda i-activsense radar", "mrcc sensor",
        "hyundai smartsense radar", "fca radar",
        "kia drive wise radar",
        "radar assy", "radar unit", "radar module",
    ],
    FRONT_CAMERA: [
        "front camera", "windshield camera", "forward camera",
        "lane camera", "safety camera", "adas camera",
        "mono camera", "stereo camera", "single lens camera",
        "toyota safety sense camera", "tss camera",
        "honda sensing camera", "acurawatch camera",
        "eyesight camera", "subaru camera",
        "nissan propilot camera", "intelligent camera",
        "mazda i-activsense camera",
        "hyundai smartsense camera",
        "mobileye", "mobileye camera",
        "camera bracket", "camera mount", "camera housing",
    ],
    BLIND_SPOT_MONITOR: [
        "blind spot sensor", "bsm sensor", "blis sensor",
        "blind spot radar", "blind spot warning sensor",
        "rear corner radar", "side radar", "quarter radar",
        "rcta sensor", "rear cross traffic sensor",
        "change lane assist sensor", "cla sensor",
        "lane change sensor",
    ],
    SURROUND_CAMERA: [
        "360 camera", "surround camera", "around view camera",
        "bird eye camera", "overhead camera", "top view camera",
        "multi view camera", "panoramic camera",
        "front camera", "side camera", "rear camera",
        "panoramic view monitor", "pvm camera",
        "around view monitor", "avm camera",
        "surround view camera", "svc",
        "bird's eye view", "top down view",
    ],
    PARKING_SENSOR: [
        "parking sensor", "ultrasonic sensor", "sonar sensor",
        "clearance sensor", "proximity sensor", "distance sensor",
        "park assist sensor", "parktronic sensor",
        "front parking sensor", "rear parking sensor",
        "corner sensor", "bumper sensor",
    ],
    STEERING_ANGLE_SENSOR: [
        "steering angle sensor", "sas", "steering sensor",
        "angle sensor", "rotation sensor",
        "clock spring", "spiral cable",
        "yaw rate sensor", "lateral sensor",
    ],
    REAR_CAMERA: [
        "backup camera", "rear camera", "reverse camera",
        "rearview camera", "back up camera", "reversing camera",
        "tail camera", "trunk camera", "tailgate camera",
        "liftgate camera", "hatch camera",
    ],
}

ADAS_SYSTEM_DESCRIPTIONS: Dict[str, str] = {
    FRONT_RADAR: "Front Radar Sensor (ACC/AEB)",
    FRONT_CAMERA: "Front Camera (LDW/LKA)",
    BLIND_SPOT_MONITOR: "Blind Spot Monitor (BSM/RCTA)",
    SURROUND_CAMERA: "360° Surround View Camera",
    PARKING_SENSOR: "Parking Sensors (Ultrasonic)",
    STEERING_ANGLE_SENSOR: "Steering Angle Sensor",
    REAR_CAMERA: "Rear Backup Camera",
}


def _phrase_pattern(phrases: List[str]) -> Pattern[str]:
    alternatives = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE)


_INDICATOR_PATTERNS: Dict[str, Pattern[str]] = {
    system: _phrase_pattern(phrases) for system, phrases in ADAS_PART_INDICATORS.items()
}


def get_adas_system_description(system_key: str) -> str:
    """Human-readable description for an ADAS system key (key itself if unknown)."""
    return ADAS_SYSTEM_DESCRIPTIONS.get(system_key, system_key)


def detect_adas_systems(line: str) -> List[str]:
    """Return the ADAS system keys a single line mentions."""
    return [system for system, pattern in _INDICATOR_PATTERNS.items() if pattern.search(line)]


def detect_adas_parts(lines: List[EstimateLine]) -> List[AdasPartDetection]:
    """Collect ADAS part mentions across an estimate.

    Returns:
        One detection per system, in order of first mention, with the line
        numbers of every mentioning line.
    """
    found: Dict[str, List[int]] = {}
    for line in lines:
        for system in detect_adas_systems(line.text):
            numbers = found.setdefault(system, [])
            if line.line_number not in numbers:
                numbers.append(line.line_number)

    if found:
        logger.debug(f"ADAS parts mentioned: {', '.join(found)}")

    return [
        AdasPartDetection(
            system=system,
            description=get_adas_system_description(system),
            line_numbers=numbers,
        )
        for system, numbers in found.items()
    ]
