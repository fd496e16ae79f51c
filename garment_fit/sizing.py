"""
Size estimation from normalized shoulder width.

Shoulder width as a fraction of the frame width grows as the user steps closer
to the camera, so the estimate is a heuristic: the confidence peaks at the
calibration centre and decays toward the extremes where landmark accuracy drops.
"""

from dataclasses import dataclass

from garment_fit.config import (
    CONFIDENCE_BASE,
    CONFIDENCE_MAX,
    CONFIDENCE_RANGE,
    EngineConfig,
    SIZE_LARGEST,
    SIZE_THRESHOLDS,
)
from garment_fit.landmarks import PoseLandmark, distance_px, get, is_visible

PERFECT_FIT = "Perfect Fit"
SUGGESTED = "Suggested"

# Normalized widths are rounded before bucketing so that float noise from
# landmark subtraction never pushes a value across a bucket boundary.
NORM_PRECISION = 6


@dataclass(frozen=True)
class SizeEstimate:
    size: str
    confidence: int
    label: str

    def to_dict(self):
        return {"size": self.size, "confidence": self.confidence, "label": self.label}


def size_for_width(norm_width):
    """Map a normalized shoulder width onto S/M/L/XL (half-open buckets)."""
    for size, upper in SIZE_THRESHOLDS:
        if norm_width < upper:
            return size
    return SIZE_LARGEST


def confidence_for_width(norm_width, center):
    distance_score = max(0.0, 1.0 - 2.0 * abs(norm_width - center))
    confidence = CONFIDENCE_BASE + CONFIDENCE_RANGE * distance_score
    return int(round(min(CONFIDENCE_MAX, max(0, confidence))))


def estimate_size(landmarks, frame_width, frame_height, config=None):
    """Estimate garment size from smoothed landmarks.

    Returns None unless both hips are clearly visible: without the lower body
    in frame the user is too close for the shoulder width to mean anything.
    """
    config = config or EngineConfig()
    gate = config.tracking_visibility

    lh = get(landmarks, PoseLandmark.LEFT_HIP)
    rh = get(landmarks, PoseLandmark.RIGHT_HIP)
    if not (is_visible(lh, gate) and is_visible(rh, gate)):
        return None
    if frame_width <= 0:
        return None

    ls = landmarks[PoseLandmark.LEFT_SHOULDER]
    rs = landmarks[PoseLandmark.RIGHT_SHOULDER]
    shoulder_px = distance_px(ls, rs, frame_width, frame_height)
    norm_width = round(shoulder_px / frame_width, NORM_PRECISION)

    size = size_for_width(norm_width)
    confidence = confidence_for_width(norm_width, config.size_center)
    label = PERFECT_FIT if size == size_for_width(config.size_center) else SUGGESTED
    return SizeEstimate(size, confidence, label)
