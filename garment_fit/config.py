"""
Calibration constants and placement variants for the try-on engine.

Every threshold the engine uses lives here. Garment families differ only in
their PlacementVariant (width multipliers, neckline offsets, rotation and
sleeve flags); the solver itself is shared.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# -------------------------
# Configuration
# -------------------------
SMOOTHING_ALPHA = 0.25          # EMA weight of the newest sample (0..1)
TRACKING_VISIBILITY = 0.5       # shoulder/hip/limb gate
VIEW_STABLE_FRAMES = 3          # frames a view must repeat before it is shown

# Orientation
FACE_VISIBILITY = 0.2
FACE_VISIBILITY_STRICT = 0.15
HEAD_BEHIND_MARGIN = 0.05       # nose.z beyond shoulder depth => turned away
SIDE_VIEW_DISTANCE = 0.08       # shoulder x-span below this => profile
SIDE_VIEW_DEPTH_GAP = 0.1       # shoulder z-gap above this => profile

# Working units (normalized coords * scale)
WORLD_SCALE = 8.0

# Size estimation
SIZE_THRESHOLDS = (("S", 0.20), ("M", 0.30), ("L", 0.40))
SIZE_LARGEST = "XL"
SIZE_CENTER = 0.25
CONFIDENCE_BASE = 70
CONFIDENCE_RANGE = 25
CONFIDENCE_MAX = 99

# Layering
TORSO_Z = 0.0
UPPER_SLEEVE_Z = 0.1
LOWER_SLEEVE_Z = 0.2

# Sleeve textures are taller than wide
SLEEVE_ASPECT = 1.6


@dataclass(frozen=True)
class PlacementVariant:
    name: str
    front_width_multiplier: float = 2.2
    side_width_multiplier: float = 1.6
    side_body_width_ratio: float = 0.8
    neck_offset: float = 0.28
    side_neck_offset: float = 0.25
    rotate_torso: bool = False
    segmented: bool = False
    torso_height_ratio: Optional[float] = None
    upper_sleeve_width_ratio: float = 0.45
    lower_sleeve_width_ratio: float = 0.38


PLACEMENT_VARIANTS = {
    "tshirt": PlacementVariant(name="tshirt"),
    "shirt": PlacementVariant(
        name="shirt",
        front_width_multiplier=3.2,
        side_width_multiplier=2.2,
        neck_offset=0.22,
    ),
    "segmented": PlacementVariant(
        name="segmented",
        rotate_torso=True,
        segmented=True,
    ),
    "photo": PlacementVariant(
        name="photo",
        front_width_multiplier=3.1,
        neck_offset=0.18,
        rotate_torso=True,
        torso_height_ratio=1.6,
    ),
}

DEFAULT_VARIANT = "tshirt"


def get_variant(name: str) -> PlacementVariant:
    try:
        return PLACEMENT_VARIANTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown placement variant '{name}' (known: {', '.join(sorted(PLACEMENT_VARIANTS))})"
        ) from None


@dataclass(frozen=True)
class EngineConfig:
    smoothing_alpha: float = SMOOTHING_ALPHA
    tracking_visibility: float = TRACKING_VISIBILITY
    view_stable_frames: int = VIEW_STABLE_FRAMES

    face_visibility: float = FACE_VISIBILITY
    face_visibility_strict: float = FACE_VISIBILITY_STRICT
    head_behind_margin: float = HEAD_BEHIND_MARGIN
    side_view_distance: float = SIDE_VIEW_DISTANCE
    side_view_depth_gap: float = SIDE_VIEW_DEPTH_GAP

    world_scale: float = WORLD_SCALE
    size_center: float = SIZE_CENTER
    sleeve_aspect: float = SLEEVE_ASPECT

    variant: PlacementVariant = field(default_factory=lambda: PLACEMENT_VARIANTS[DEFAULT_VARIANT])

    def __post_init__(self):
        if not 0.0 < self.smoothing_alpha < 1.0:
            raise ValueError(f"smoothing_alpha must be in (0, 1), got {self.smoothing_alpha}")
        if self.view_stable_frames < 1:
            raise ValueError(f"view_stable_frames must be >= 1, got {self.view_stable_frames}")
        if self.world_scale <= 0:
            raise ValueError(f"world_scale must be > 0, got {self.world_scale}")


def get_config(variant: str = DEFAULT_VARIANT, **overrides) -> EngineConfig:
    """Build an EngineConfig for a named placement variant."""
    return replace(EngineConfig(variant=get_variant(variant)), **overrides)


def _as_float(v: Any, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return float(default)


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def load_config(path) -> EngineConfig:
    """Read an EngineConfig from JSON.

    Expected layout:
      {"variant": "shirt", "smoothing_alpha": 0.3, "view_stable_frames": 4, ...}

    A missing or unparsable file (or one that is not a JSON object) falls back
    to defaults so the app can still run. Values that parse but are invalid,
    such as an unknown variant or smoothing_alpha outside (0, 1), raise
    ValueError.
    """
    p = Path(path).expanduser()
    if not p.exists():
        logger.info("[INFO] Config %s not found, using defaults", p)
        return EngineConfig()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("[WARNING] Config %s unreadable (%s), using defaults", p, e)
        return EngineConfig()
    if not isinstance(raw, dict):
        logger.warning("[WARNING] Config %s is not a JSON object, using defaults", p)
        return EngineConfig()

    base = EngineConfig()
    overrides: Dict[str, Any] = {}
    for f in fields(EngineConfig):
        if f.name == "variant" or f.name not in raw:
            continue
        default = getattr(base, f.name)
        if isinstance(default, int):
            overrides[f.name] = _as_int(raw[f.name], default)
        else:
            overrides[f.name] = _as_float(raw[f.name], default)

    return get_config(str(raw.get("variant", DEFAULT_VARIANT)), **overrides)
