"""
Garment Transform Solver

Computes per-segment 2D placement (torso and optional sleeves) from smoothed
landmarks. All outputs are in world units: normalized coordinates shifted to
the frame centre and multiplied by the world scale. Positions are segment
centres, scales are the rendered extent of a unit quad, rotations follow the
image convention (y down, positive = clockwise on screen).
"""

import math
from dataclasses import dataclass

from garment_fit.config import (
    EngineConfig,
    LOWER_SLEEVE_Z,
    TORSO_Z,
    UPPER_SLEEVE_Z,
)
from garment_fit.landmarks import PoseLandmark, Segment, View, get, is_visible

HALF_PI = math.pi / 2.0


@dataclass(frozen=True)
class GarmentTransform:
    segment: str
    x: float
    y: float
    rotation: float
    scale_x: float
    scale_y: float
    z_order: float

    def to_dict(self):
        return {
            "segment": self.segment,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "scale_x": self.scale_x,
            "scale_y": self.scale_y,
            "z_order": self.z_order,
        }


# (segment, shoulder, elbow, wrist) per arm
_ARMS = (
    ("left", PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST,
     Segment.LEFT_UPPER_SLEEVE, Segment.LEFT_LOWER_SLEEVE),
    ("right", PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST,
     Segment.RIGHT_UPPER_SLEEVE, Segment.RIGHT_LOWER_SLEEVE),
)

# Profile views hide the arm farther from the camera
_HIDDEN_ARM = {View.RIGHT: "right", View.LEFT: "left"}


class _World:
    """Maps normalized landmark coordinates into world units."""

    def __init__(self, scale, frame_size=None):
        self.sx = scale
        if frame_size and frame_size[0] > 0:
            w, h = frame_size
            self.sy = scale * float(h) / float(w)
        else:
            self.sy = scale

    def point(self, lm):
        return (lm.x - 0.5) * self.sx, (lm.y - 0.5) * self.sy

    def delta(self, a, b):
        """World-space vector from landmark a to landmark b."""
        return (b.x - a.x) * self.sx, (b.y - a.y) * self.sy


def _fold_half_turn(angle):
    """Fold an angle into (-pi/2, pi/2] so shoulder order does not flip the garment."""
    if angle > HALF_PI:
        angle -= math.pi
    elif angle <= -HALF_PI:
        angle += math.pi
    return angle


def torso_rotation(left_shoulder, right_shoulder, world=None):
    world = world or _World(1.0)
    dx, dy = world.delta(left_shoulder, right_shoulder)
    return _fold_half_turn(math.atan2(dy, dx))


def limb_rotation(start, end, world=None):
    """Angle of the start->end limb plus a quarter turn.

    Sleeve textures have their long axis vertical, so the quarter turn lines
    that axis up with the limb.
    """
    world = world or _World(1.0)
    dx, dy = world.delta(start, end)
    return math.atan2(dy, dx) + HALF_PI


def _aspect(aspect_ratios, *keys, default=1.0):
    for k in keys:
        if k in aspect_ratios and aspect_ratios[k] > 0:
            return float(aspect_ratios[k])
    return default


def _side_body_height(landmarks, world, gate):
    """Vertical shoulder->hip distance on the most visible side, or None."""
    pairs = (
        (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP),
        (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP),
    )
    best = None
    for s_idx, h_idx in pairs:
        hip = get(landmarks, h_idx)
        if not is_visible(hip, gate):
            continue
        if best is None or hip.visibility > best[1].visibility:
            best = (landmarks[s_idx], hip)
    if best is None:
        return None
    shoulder, hip = best
    return abs(hip.y - shoulder.y) * world.sy


def _torso_length(landmarks, world, gate):
    """Mean shoulder->hip distance of both sides, or None if a hip is hidden."""
    lh = get(landmarks, PoseLandmark.LEFT_HIP)
    rh = get(landmarks, PoseLandmark.RIGHT_HIP)
    if not (is_visible(lh, gate) and is_visible(rh, gate)):
        return None
    left = math.hypot(*world.delta(landmarks[PoseLandmark.LEFT_SHOULDER], lh))
    right = math.hypot(*world.delta(landmarks[PoseLandmark.RIGHT_SHOULDER], rh))
    return (left + right) / 2.0


def _solve_torso(view, landmarks, aspect_ratios, config, world):
    variant = config.variant
    gate = config.tracking_visibility
    ls = landmarks[PoseLandmark.LEFT_SHOULDER]
    rs = landmarks[PoseLandmark.RIGHT_SHOULDER]
    dx, dy = world.delta(ls, rs)

    if view in View.SIDE:
        # Shoulders foreshorten in profile; body height is the stable reference
        body_h = _side_body_height(landmarks, world, gate)
        if body_h is None:
            return None
        width = body_h * variant.side_body_width_ratio * variant.side_width_multiplier
        neck_offset = variant.side_neck_offset
    else:
        span = math.hypot(dx, dy) if variant.rotate_torso else abs(dx)
        width = span * variant.front_width_multiplier
        neck_offset = variant.neck_offset

    height = width * _aspect(aspect_ratios, view, Segment.TORSO)

    if variant.torso_height_ratio and view not in View.SIDE:
        torso_len = _torso_length(landmarks, world, gate)
        if torso_len and height > 0:
            target = torso_len * variant.torso_height_ratio
            height = height * (0.4 + 0.6 * (target / height))

    rotation = torso_rotation(ls, rs, world) if variant.rotate_torso else 0.0

    # Neckline sits on the shoulder line: move the centre down the garment axis
    mx, my = world.point(ls)
    nx, ny = world.point(rs)
    cx, cy = (mx + nx) / 2.0, (my + ny) / 2.0
    offset = height * neck_offset
    cx -= math.sin(rotation) * offset
    cy += math.cos(rotation) * offset

    return GarmentTransform(Segment.TORSO, cx, cy, rotation, width, height, TORSO_Z)


def _sleeve(segment, start, end, width, aspect, z_order, world):
    rotation = limb_rotation(start, end, world)
    height = width * aspect
    # Anchored at the start joint, extending along the limb
    limb_angle = rotation - HALF_PI
    sx, sy = world.point(start)
    cx = sx + math.cos(limb_angle) * height / 2.0
    cy = sy + math.sin(limb_angle) * height / 2.0
    return GarmentTransform(segment, cx, cy, rotation, width, height, z_order)


def _solve_sleeves(view, landmarks, aspect_ratios, config, world):
    variant = config.variant
    gate = config.tracking_visibility
    span = math.hypot(*world.delta(landmarks[PoseLandmark.LEFT_SHOULDER],
                                   landmarks[PoseLandmark.RIGHT_SHOULDER]))
    hidden = _HIDDEN_ARM.get(view)
    out = []

    for side, s_idx, e_idx, w_idx, upper_seg, lower_seg in _ARMS:
        if side == hidden:
            continue
        shoulder = landmarks[s_idx]
        elbow = get(landmarks, e_idx)
        if not is_visible(elbow, gate):
            continue
        out.append(_sleeve(
            upper_seg, shoulder, elbow,
            span * variant.upper_sleeve_width_ratio,
            _aspect(aspect_ratios, upper_seg, default=config.sleeve_aspect),
            UPPER_SLEEVE_Z, world,
        ))

        wrist = get(landmarks, w_idx)
        if not is_visible(wrist, gate):
            continue
        out.append(_sleeve(
            lower_seg, elbow, wrist,
            span * variant.lower_sleeve_width_ratio,
            _aspect(aspect_ratios, lower_seg, default=config.sleeve_aspect),
            LOWER_SLEEVE_Z, world,
        ))
    return out


def solve(view, landmarks, aspect_ratios=None, config=None, frame_size=None):
    """Compute render transforms for the current frame.

    Args:
        view: stable view name ("front", "back", "left", "right").
        landmarks: smoothed landmark sequence (33-point indexing).
        aspect_ratios: garment image height/width keyed by view or segment name.
        config: EngineConfig; its variant picks multipliers and sleeve mode.
        frame_size: optional (width, height) so world units stay square in pixels.

    Returns:
        list of GarmentTransform sorted by z_order; empty when the shoulders
        are not tracked well enough to place anything.
    """
    config = config or EngineConfig()
    aspect_ratios = aspect_ratios or {}
    gate = config.tracking_visibility

    ls = get(landmarks, PoseLandmark.LEFT_SHOULDER)
    rs = get(landmarks, PoseLandmark.RIGHT_SHOULDER)
    if not (is_visible(ls, gate) and is_visible(rs, gate)):
        return []

    world = _World(config.world_scale, frame_size)
    torso = _solve_torso(view, landmarks, aspect_ratios, config, world)
    if torso is None:
        return []

    transforms = [torso]
    if config.variant.segmented:
        transforms.extend(_solve_sleeves(view, landmarks, aspect_ratios, config, world))
    transforms.sort(key=lambda t: t.z_order)
    return transforms
