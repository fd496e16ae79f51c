"""
Facing-direction classification (front/back/left/right) with hysteresis.
"""

import logging

from garment_fit.config import EngineConfig
from garment_fit.landmarks import PoseLandmark, View, get, is_visible

logger = logging.getLogger(__name__)


def shoulders_visible(landmarks, threshold):
    ls = get(landmarks, PoseLandmark.LEFT_SHOULDER)
    rs = get(landmarks, PoseLandmark.RIGHT_SHOULDER)
    return is_visible(ls, threshold) and is_visible(rs, threshold)


def _face_visible(landmarks, threshold):
    for idx in (PoseLandmark.NOSE, PoseLandmark.LEFT_EYE, PoseLandmark.RIGHT_EYE):
        if is_visible(get(landmarks, idx), threshold):
            return True
    return False


def classify_view(landmarks, config=None):
    """Return the candidate view for one frame of (smoothed) landmarks.

    Callers gate on shoulders_visible() first; the result is a raw per-frame
    guess and should go through a ViewStabilizer before it is rendered.
    """
    config = config or EngineConfig()
    ls = landmarks[PoseLandmark.LEFT_SHOULDER]
    rs = landmarks[PoseLandmark.RIGHT_SHOULDER]
    nose = get(landmarks, PoseLandmark.NOSE)

    shoulder_distance = abs(ls.x - rs.x)
    shoulder_z_gap = abs(ls.z - rs.z)

    face_visible = _face_visible(landmarks, config.face_visibility)
    avg_shoulder_z = (ls.z + rs.z) / 2.0
    head_behind = nose is not None and nose.z > avg_shoulder_z + config.head_behind_margin
    facing_away = not face_visible or head_behind

    side_view = (shoulder_distance < config.side_view_distance
                 and not facing_away
                 and shoulder_z_gap > config.side_view_depth_gap)

    if side_view:
        # The shoulder nearer the camera decides which side is shown
        return View.RIGHT if ls.z < rs.z else View.LEFT
    if facing_away:
        if _face_visible(landmarks, config.face_visibility_strict) and not head_behind:
            return View.FRONT
        return View.BACK
    return View.FRONT


class OrientationState:
    __slots__ = ("candidate_view", "candidate_streak", "stable_view")

    def __init__(self, stable_view=View.FRONT):
        self.candidate_view = stable_view
        self.candidate_streak = 0
        self.stable_view = stable_view


class ViewStabilizer:
    """Only switch views once a candidate has repeated for need_frames frames."""

    def __init__(self, need_frames=3, initial_view=View.FRONT):
        self.need_frames = need_frames
        self.state = OrientationState(initial_view)

    @property
    def stable_view(self):
        return self.state.stable_view

    def update(self, candidate):
        s = self.state
        if candidate == s.candidate_view:
            s.candidate_streak += 1
        else:
            s.candidate_view = candidate
            s.candidate_streak = 1

        if s.candidate_streak >= self.need_frames and s.stable_view != candidate:
            logger.info("[INFO] View changed: %s -> %s", s.stable_view, candidate)
            s.stable_view = candidate
        return s.stable_view

    def reset(self):
        """Forget the running streak; the last stable view is kept."""
        self.state.candidate_view = self.state.stable_view
        self.state.candidate_streak = 0
