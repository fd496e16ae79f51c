"""
Exponential moving average over pose landmarks, one state per landmark index.
"""

from garment_fit.config import SMOOTHING_ALPHA
from garment_fit.landmarks import Landmark


class LandmarkSmoother:
    """Smooth landmark positions using exponential moving average."""

    def __init__(self, alpha=SMOOTHING_ALPHA):
        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        self.alpha = alpha
        self.points = {}

    def smooth(self, index, raw):
        """Blend raw into the stored state for index and return the smoothed landmark.

        The first sample of an index is taken as-is. Visibility is a quality
        signal, so it is forwarded from the raw sample instead of averaged.
        """
        state = self.points.get(index)
        if state is None:
            state = Landmark(raw.x, raw.y, raw.z, raw.visibility)
            self.points[index] = state
            return state

        a = self.alpha
        state.x = a * raw.x + (1 - a) * state.x
        state.y = a * raw.y + (1 - a) * state.y
        state.z = a * raw.z + (1 - a) * state.z
        state.visibility = raw.visibility
        return state

    def smooth_all(self, landmarks):
        return [self.smooth(i, lm) for i, lm in enumerate(landmarks)]

    def reset(self):
        self.points = {}

    def __len__(self):
        return len(self.points)
