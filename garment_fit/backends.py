"""
Photo try-on backends.

Every backend turns (user photo, garment) into a composed photo behind the
same process() call, so the server can pick one by name. Only the local,
pose-aligned overlay ships here; remote image-generation services plug in by
subclassing TryOnBackend and registering themselves.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict

from garment_fit.compositor import render_frame
from garment_fit.config import EngineConfig, get_variant
from garment_fit.pipeline import process_still

logger = logging.getLogger(__name__)


class NoPoseDetectedError(ValueError):
    pass


class TryOnBackend(ABC):
    """Backend interface: BGR photo + GarmentSet in, composed BGR photo out."""

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def process(self, user_bgr, garment_set): ...


class LocalOverlayBackend(TryOnBackend):
    """Fits the garment locally using pose landmarks from the photo."""

    def __init__(self, detector=None, config=None):
        if detector is None:
            from garment_fit.pose_detector import PoseDetector
            # Stills get the heavier model and stricter thresholds
            detector = PoseDetector(static_image_mode=True, model_complexity=2,
                                    min_detection_confidence=0.7,
                                    min_tracking_confidence=0.7)
        self.detector = detector
        self.config = config

    def name(self) -> str:
        return "local"

    def _config_for(self, garment_set):
        # Thresholds come from the caller; the variant follows the garment
        base = self.config or EngineConfig()
        variant = "segmented" if garment_set.has_sleeves else "photo"
        return dataclasses.replace(base, variant=get_variant(variant))

    def process(self, user_bgr, garment_set):
        h, w = user_bgr.shape[:2]
        landmarks = self.detector.detect(user_bgr)
        if not landmarks:
            raise NoPoseDetectedError(
                "No person detected in the photo. Please use a clear full-body photo."
            )

        config = self._config_for(garment_set)
        output = process_still(landmarks, w, h, config, garment_set.aspect_ratios())
        if not output.transforms:
            raise NoPoseDetectedError("Shoulders are not clearly visible in the photo.")

        logger.info("[OK] Photo fitted: garment=%s view=%s size=%s", garment_set.name,
                    output.view, output.size_estimate.size if output.size_estimate else "--")
        return render_frame(user_bgr.copy(), output.transforms, garment_set, output.view, config)


_BACKENDS: Dict[str, Callable[[], TryOnBackend]] = {
    "local": LocalOverlayBackend,
}


def register_backend(name, factory):
    _BACKENDS[name] = factory


def available_backends():
    return sorted(_BACKENDS)


def get_backend(name="local", **kwargs):
    """Build a backend by name; kwargs (e.g. config=EngineConfig) go to its factory."""
    try:
        factory = _BACKENDS[name]
    except KeyError:
        raise KeyError(f"Unknown try-on backend '{name}' (available: {', '.join(available_backends())})") from None
    return factory(**kwargs)
