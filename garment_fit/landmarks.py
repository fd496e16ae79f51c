"""
Landmark types and index tables shared by the try-on engine.
Coordinates follow the MediaPipe Pose convention: x, y normalized to [0, 1]
(y grows downward), z is relative depth (more negative = closer to camera).
"""

import math


class Landmark:
    """Lightweight landmark holder (also used for smoothed state)."""
    __slots__ = ("x", "y", "z", "visibility")

    def __init__(self, x=0.0, y=0.0, z=0.0, visibility=0.0):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)
        self.visibility = float(visibility)

    @classmethod
    def from_any(cls, lm):
        """Copy any object exposing x/y/z/visibility (MediaPipe landmark, dict, tuple)."""
        if isinstance(lm, dict):
            return cls(lm.get("x", 0.0), lm.get("y", 0.0), lm.get("z", 0.0),
                       lm.get("visibility", 0.0))
        if isinstance(lm, (tuple, list)):
            return cls(*lm)
        return cls(lm.x, lm.y, getattr(lm, "z", 0.0), getattr(lm, "visibility", 0.0) or 0.0)

    def copy(self):
        return Landmark(self.x, self.y, self.z, self.visibility)

    def to_dict(self):
        return {"x": self.x, "y": self.y, "z": self.z, "visibility": self.visibility}

    def __eq__(self, other):
        if not isinstance(other, Landmark):
            return NotImplemented
        return (self.x, self.y, self.z, self.visibility) == \
            (other.x, other.y, other.z, other.visibility)

    def __repr__(self):
        return (f"Landmark(x={self.x:.4f}, y={self.y:.4f}, z={self.z:.4f}, "
                f"visibility={self.visibility:.2f})")


class PoseLandmark:
    """Pose landmark indices (33-point topology)"""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


NUM_LANDMARKS = 33


class View:
    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"

    ALL = (FRONT, BACK, LEFT, RIGHT)
    SIDE = (LEFT, RIGHT)


class Segment:
    TORSO = "torso"
    LEFT_UPPER_SLEEVE = "left_upper_sleeve"
    LEFT_LOWER_SLEEVE = "left_lower_sleeve"
    RIGHT_UPPER_SLEEVE = "right_upper_sleeve"
    RIGHT_LOWER_SLEEVE = "right_lower_sleeve"

    ALL = (TORSO, LEFT_UPPER_SLEEVE, LEFT_LOWER_SLEEVE,
           RIGHT_UPPER_SLEEVE, RIGHT_LOWER_SLEEVE)
    SLEEVES = ALL[1:]


def get(landmarks, index):
    """Return landmarks[index] or None when the sequence is too short."""
    if landmarks is None or index >= len(landmarks):
        return None
    return landmarks[index]


def is_visible(lm, threshold):
    return lm is not None and lm.visibility > threshold


def distance_px(a, b, w, h):
    """Euclidean distance between two landmarks in pixel space."""
    return math.hypot((a.x - b.x) * w, (a.y - b.y) * h)
