"""
Virtual Try-On Engine
Real-time garment overlay: pose detection -> frame pipeline -> 2D compositing.
"""

import dataclasses
import logging

from garment_fit.compositor import render_frame
from garment_fit.config import EngineConfig, get_variant
from garment_fit.garments import load_garment_sets
from garment_fit.pipeline import FramePipeline

logger = logging.getLogger(__name__)


class TryOnEngine:
    """Virtual try-on engine with pose detection and clothing overlay."""

    def __init__(self, garment_dir="garments", detector=None, config=None):
        self.garment_dir = garment_dir
        self.config = config or EngineConfig()
        if detector is None:
            from garment_fit.pose_detector import PoseDetector
            detector = PoseDetector(static_image_mode=False, model_complexity=1)
        self.detector = detector

        self.garments = []
        self.garment_index = 0
        self._load_garments()
        self.pipeline = FramePipeline(self._config_for_current(), self.current_garment.aspect_ratios())

    def _load_garments(self):
        self.garments = load_garment_sets(self.garment_dir)

    def _config_for_current(self):
        # Garments with sleeve images are placed segment by segment
        if self.current_garment.has_sleeves and not self.config.variant.segmented:
            return dataclasses.replace(self.config, variant=get_variant("segmented"))
        return self.config

    @property
    def current_garment(self):
        return self.garments[self.garment_index]

    def _switch_garment(self):
        self.pipeline = FramePipeline(self._config_for_current(), self.current_garment.aspect_ratios())
        logger.info("[INFO] Garment: %s", self.current_garment.name)

    def next_garment(self):
        self.garment_index = (self.garment_index + 1) % len(self.garments)
        self._switch_garment()

    def prev_garment(self):
        self.garment_index = (self.garment_index - 1) % len(self.garments)
        self._switch_garment()

    def reset_for_next_user(self):
        """Drop all tracking state so the next person starts fresh."""
        self.pipeline.reset()
        logger.info("[INFO] Reset for next user")

    def reload_garments(self):
        """Reload garments from folder, keeping the current one selected if it still exists."""
        old_name = self.current_garment.name
        self._load_garments()
        names = self.get_garment_list()
        self.garment_index = names.index(old_name) if old_name in names else 0
        self._switch_garment()
        return len(self.garments)

    def get_garment_list(self):
        return [g.name for g in self.garments]

    def process_frame(self, frame_bgr):
        """Process frame and overlay the current garment."""
        frame = frame_bgr.copy()
        h, w = frame.shape[:2]

        landmarks = self.detector.detect(frame)
        output = self.pipeline.process(landmarks, w, h)

        if output.transforms:
            frame = render_frame(frame, output.transforms, self.current_garment,
                                 output.view, self.pipeline.config)

        shown = self.pipeline.last_size_estimate
        return frame, {
            "garment": self.current_garment.name,
            "view": output.view,
            "tracking": output.tracking,
            "size": shown.size if shown else "--",
            "confidence": shown.confidence if shown else 0,
            "label": shown.label if shown else "",
            "size_live": output.size_estimate is not None,
        }
