"""
2D compositor: draws garment segments onto a BGR frame from GarmentTransforms.
"""

import math

import cv2
import numpy as np

from garment_fit.config import EngineConfig

# Realism tuning
EDGE_SOFTEN_SIGMA = 1.2  # alpha edge blur (0.8-2.0)
LIGHT_MIN = 0.70         # lighting factor clamp
LIGHT_MAX = 1.20
LIGHT_MASK_ALPHA = 51    # pixels above ~20% opacity count as garment
LIGHT_MIN_PIXELS = 50
MIN_SEGMENT_PX = 4


def _clip_box(frame_shape, x, y, ow, oh):
    """Frame and overlay slices for an ow x oh overlay at (x, y), or None when off-frame."""
    H, W = frame_shape[:2]
    x1, y1 = max(0, x), max(0, y)
    x2, y2 = min(W, x + ow), min(H, y + oh)
    if x1 >= x2 or y1 >= y2:
        return None
    on_frame = (slice(y1, y2), slice(x1, x2))
    on_overlay = (slice(y1 - y, y2 - y), slice(x1 - x, x2 - x))
    return on_frame, on_overlay


def rotate_rgba(img_rgba, rotation):
    """Rotate by `rotation` radians, clockwise on screen, growing the canvas to fit."""
    h, w = img_rgba.shape[:2]
    c, s = abs(math.cos(rotation)), abs(math.sin(rotation))
    out_w = int(round(w * c + h * s))
    out_h = int(round(w * s + h * c))

    # OpenCV angles are counter-clockwise in degrees
    M = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), -math.degrees(rotation), 1.0)
    M[:, 2] += ((out_w - w) / 2.0, (out_h - h) / 2.0)
    return cv2.warpAffine(img_rgba, M, (out_w, out_h), flags=cv2.INTER_LINEAR,
                          borderMode=cv2.BORDER_CONSTANT, borderValue=(0, 0, 0, 0))


def soften_alpha_edges(rgba, sigma=EDGE_SOFTEN_SIGMA):
    out = rgba.copy()
    # (0, 0) lets OpenCV derive the kernel size from sigma
    out[:, :, 3] = cv2.GaussianBlur(out[:, :, 3], (0, 0), sigma)
    return out


def match_lighting(garment_rgba, frame_bgr, x, y, light_min=LIGHT_MIN, light_max=LIGHT_MAX):
    """Scale garment brightness toward the brightness of the body underneath."""
    oh, ow = garment_rgba.shape[:2]
    box = _clip_box(frame_bgr.shape, x, y, ow, oh)
    if box is None:
        return garment_rgba
    on_frame, on_overlay = box

    over = garment_rgba[on_overlay]
    mask = (over[:, :, 3] > LIGHT_MASK_ALPHA).astype(np.uint8)
    if cv2.countNonZero(mask) < LIGHT_MIN_PIXELS:
        return garment_rgba

    body = cv2.mean(cv2.cvtColor(frame_bgr[on_frame], cv2.COLOR_BGR2GRAY), mask=mask)[0]
    own_gray = cv2.cvtColor(np.ascontiguousarray(over[:, :, :3]), cv2.COLOR_BGR2GRAY)
    own = cv2.mean(own_gray, mask=mask)[0]
    factor = float(np.clip(body / (own + 1e-6), light_min, light_max))

    out = garment_rgba.copy()
    out[:, :, :3] = np.clip(garment_rgba[:, :, :3] * factor, 0, 255).astype(np.uint8)
    return out


def overlay_rgba(frame_bgr, overlay, x, y):
    """Alpha-blend overlay onto frame in place with its top-left corner at (x, y)."""
    oh, ow = overlay.shape[:2]
    box = _clip_box(frame_bgr.shape, x, y, ow, oh)
    if box is None:
        return frame_bgr
    on_frame, on_overlay = box

    over = overlay[on_overlay].astype(np.float32)
    alpha = over[:, :, 3:] / 255.0
    roi = frame_bgr[on_frame].astype(np.float32)
    frame_bgr[on_frame] = (roi + alpha * (over[:, :, :3] - roi)).astype(np.uint8)
    return frame_bgr


def world_to_pixels(transform, frame_w, frame_h, world_scale):
    """Return (cx, cy, width, height) in pixels for a transform.

    Transforms built with the frame size use square world units, so one world
    unit is frame_w / world_scale pixels on both axes.
    """
    px_per_unit = frame_w / float(world_scale)
    world_h = world_scale * frame_h / float(frame_w)
    cx = (transform.x / world_scale + 0.5) * frame_w
    cy = (transform.y / world_h + 0.5) * frame_h
    return cx, cy, transform.scale_x * px_per_unit, transform.scale_y * px_per_unit


def draw_segment(frame_bgr, garment_set, transform, view, world_scale, lighting=True):
    """Draw one segment of garment_set; segments without an image are skipped."""
    image = garment_set.image_for(transform.segment, view)
    if image is None:
        return frame_bgr

    H, W = frame_bgr.shape[:2]
    cx, cy, w_px, h_px = world_to_pixels(transform, W, H, world_scale)
    size = (int(round(w_px)), int(round(h_px)))
    if min(size) < MIN_SEGMENT_PX:
        return frame_bgr

    sprite = cv2.resize(image, size, interpolation=cv2.INTER_AREA)
    if transform.rotation:
        sprite = rotate_rgba(sprite, transform.rotation)
    sprite = soften_alpha_edges(sprite)

    # Transforms are centre-anchored
    x = int(round(cx)) - sprite.shape[1] // 2
    y = int(round(cy)) - sprite.shape[0] // 2
    if lighting:
        sprite = match_lighting(sprite, frame_bgr, x, y)
    return overlay_rgba(frame_bgr, sprite, x, y)


def render_frame(frame_bgr, transforms, garment_set, view, config=None, lighting=True):
    """Draw every transform back to front."""
    world_scale = (config or EngineConfig()).world_scale
    for t in sorted(transforms, key=lambda t: t.z_order):
        frame_bgr = draw_segment(frame_bgr, garment_set, t, view, world_scale, lighting=lighting)
    return frame_bgr
