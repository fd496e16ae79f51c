"""
Per-frame orchestration: smoothing -> orientation -> transforms -> size.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from garment_fit.config import EngineConfig
from garment_fit.landmarks import Landmark
from garment_fit.orientation import ViewStabilizer, classify_view, shoulders_visible
from garment_fit.sizing import SizeEstimate, estimate_size
from garment_fit.smoother import LandmarkSmoother
from garment_fit.transforms import GarmentTransform, solve

logger = logging.getLogger(__name__)

NO_POSE = "NoPose"
TRACKING = "Tracking"


@dataclass
class FrameOutput:
    view: str
    transforms: List[GarmentTransform] = field(default_factory=list)
    size_estimate: Optional[SizeEstimate] = None
    tracking: bool = False
    candidate_view: Optional[str] = None

    def to_dict(self):
        return {
            "view": self.view,
            "candidate_view": self.candidate_view,
            "tracking": self.tracking,
            "size": self.size_estimate.to_dict() if self.size_estimate else None,
            "transforms": [t.to_dict() for t in self.transforms],
        }


class FramePipeline:
    """Stateful per-session coordinator.

    One instance per camera stream (or per still image). Frames must be fed
    one at a time; the smoother and view streak are not safe to interleave.
    """

    def __init__(self, config=None, aspect_ratios=None):
        self.config = config or EngineConfig()
        self.aspect_ratios = dict(aspect_ratios or {})
        self.smoother = LandmarkSmoother(alpha=self.config.smoothing_alpha)
        self.stabilizer = ViewStabilizer(need_frames=self.config.view_stable_frames)
        self.state = NO_POSE
        self.last_size_estimate = None

    @property
    def stable_view(self):
        return self.stabilizer.stable_view

    def set_aspect_ratios(self, aspect_ratios):
        self.aspect_ratios = dict(aspect_ratios or {})

    def reset(self):
        self.state = NO_POSE
        self.smoother.reset()
        self.stabilizer.reset()
        self.last_size_estimate = None

    def _not_tracking(self, candidate=None):
        return FrameOutput(view=self.stable_view, tracking=False, candidate_view=candidate)

    def process(self, landmarks, frame_width, frame_height):
        """Run one frame through the pipeline and return its FrameOutput."""
        if not landmarks:
            if self.state == TRACKING:
                logger.info("[INFO] Tracking lost")
            self.state = NO_POSE
            return self._not_tracking()

        if self.state == NO_POSE:
            # New subject (or the same one re-entering): never blend stale state
            self.smoother.reset()
            self.stabilizer.reset()
            self.state = TRACKING
            logger.info("[OK] Pose acquired")

        smoothed = self.smoother.smooth_all([
            lm if isinstance(lm, Landmark) else Landmark.from_any(lm) for lm in landmarks
        ])

        cfg = self.config
        if not shoulders_visible(smoothed, cfg.tracking_visibility):
            return self._not_tracking()

        candidate = classify_view(smoothed, cfg)
        view = self.stabilizer.update(candidate)

        transforms = solve(view, smoothed, self.aspect_ratios, cfg,
                           frame_size=(frame_width, frame_height))
        size = estimate_size(smoothed, frame_width, frame_height, cfg)
        if size is not None:
            self.last_size_estimate = size

        logger.debug("[INFO] view=%s candidate=%s segments=%d size=%s",
                     view, candidate, len(transforms), size.size if size else "--")
        return FrameOutput(view=view, transforms=transforms, size_estimate=size,
                           tracking=True, candidate_view=candidate)


def process_still(landmarks, frame_width, frame_height, config=None, aspect_ratios=None):
    """Single-image analysis: the view is taken directly from the classifier.

    A photo has no frame history, so the hysteresis threshold is bypassed by
    treating the one frame as confirmed.
    """
    config = config or EngineConfig()
    pipeline = FramePipeline(config, aspect_ratios)
    pipeline.stabilizer.need_frames = 1
    return pipeline.process(landmarks, frame_width, frame_height)
