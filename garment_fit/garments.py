"""
Garment image loading.

A garment is a directory of transparent PNGs, one per view and optionally one
per sleeve segment:

    garments/
      basic-tee/
        front.png  back.png  left.png  right.png
      oxford-shirt/
        front.png  ...  left_upper_sleeve.png  left_lower_sleeve.png  ...

Sleeve textures keep their long axis vertical with the joint end at the
bottom edge. Views without an image fall back to the front image.
"""

import glob
import logging
import os

import cv2
import numpy as np

from garment_fit.landmarks import Segment, View

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ['*.png', '*.jpg', '*.jpeg', '*.webp', '*.bmp']
MAX_FILE_MB = 10
MIN_SIDE, MAX_SIDE = 50, 4000
WHITE_LEVEL = 240  # opaque images: brighter pixels become background


def _white_to_alpha(bgr):
    """Add an alpha channel that makes a near-white background transparent."""
    gray = cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)
    alpha = np.where(gray > WHITE_LEVEL, 0, 255).astype(np.uint8)
    return cv2.merge([*cv2.split(bgr), cv2.GaussianBlur(alpha, (5, 5), 0)])


def load_garment_image(path):
    """Read one garment image as BGRA, raising ValueError when it is unusable."""
    size_mb = os.path.getsize(path) / (1024.0 * 1024.0)
    if size_mb > MAX_FILE_MB:
        raise ValueError(f"File too large ({size_mb:.1f}MB, max {MAX_FILE_MB}MB): {path}")

    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError(f"Failed to load image: {path}")

    h, w = img.shape[:2]
    if min(w, h) < MIN_SIDE or max(w, h) > MAX_SIDE:
        raise ValueError(f"Invalid dimensions ({w}x{h}): {path}")

    channels = img.shape[2] if img.ndim == 3 else 1
    if channels == 4:
        return img
    if channels == 3:
        return _white_to_alpha(img)
    raise ValueError(f"Unsupported format ({channels} channel(s)): {path}")


class GarmentSet:
    """All images of one garment, keyed by view and segment name."""

    PARTS = View.ALL + Segment.SLEEVES

    def __init__(self, name, images):
        if View.FRONT not in images:
            raise ValueError(f"Garment '{name}' has no front image")
        self.name = name
        self.images = images

    @classmethod
    def from_dir(cls, path):
        images = {}
        for ext in SUPPORTED_FORMATS:
            for file in glob.glob(os.path.join(path, ext)):
                part = os.path.splitext(os.path.basename(file))[0].lower()
                if part not in cls.PARTS or part in images:
                    continue
                images[part] = load_garment_image(file)
        return cls(os.path.basename(os.path.normpath(path)), images)

    @property
    def has_sleeves(self):
        return any(seg in self.images for seg in Segment.SLEEVES)

    def image_for(self, segment, view):
        """Image to draw for a segment in the given view (None if absent)."""
        if segment == Segment.TORSO:
            return self.images.get(view, self.images[View.FRONT])
        return self.images.get(segment)

    def aspect_ratios(self):
        """Height/width ratio of every view and segment image."""
        ratios = {}
        for part in self.PARTS:
            img = self.images.get(part)
            if img is not None:
                h, w = img.shape[:2]
                ratios[part] = h / float(w)
        return ratios


def load_garment_sets(root):
    """Load every garment directory under root, skipping broken ones."""
    if not os.path.isdir(root):
        raise FileNotFoundError(f"[ERROR] '{root}' folder not found.")

    logger.info("[INFO] Loading garments from %s", root)
    sets = []
    for path in sorted(glob.glob(os.path.join(root, "*"))):
        if not os.path.isdir(path):
            continue
        try:
            garment = GarmentSet.from_dir(path)
        except ValueError as e:
            logger.error("  [ERROR] %s: %s", os.path.basename(path), e)
            continue
        sets.append(garment)
        logger.info("  Loaded: %s (%d image(s))", garment.name, len(garment.images))

    if not sets:
        raise FileNotFoundError(f"[ERROR] No garment folders with a front image in '{root}'.")
    logger.info("[OK] Loaded %d garment(s)", len(sets))
    return sets
