import cv2
import numpy as np
import pytest

from garment_fit.landmarks import NUM_LANDMARKS, Landmark, PoseLandmark as PL


FRONT_POSE = {
    PL.NOSE: (0.5, 0.3, -0.3, 0.99),
    PL.LEFT_EYE: (0.52, 0.28, -0.3, 0.99),
    PL.RIGHT_EYE: (0.48, 0.28, -0.3, 0.99),
    PL.LEFT_SHOULDER: (0.6, 0.45, 0.0, 0.99),
    PL.RIGHT_SHOULDER: (0.4, 0.45, 0.0, 0.99),
    PL.LEFT_ELBOW: (0.65, 0.6, 0.0, 0.9),
    PL.RIGHT_ELBOW: (0.35, 0.6, 0.0, 0.9),
    PL.LEFT_WRIST: (0.66, 0.72, 0.0, 0.9),
    PL.RIGHT_WRIST: (0.34, 0.72, 0.0, 0.9),
    PL.LEFT_HIP: (0.57, 0.75, 0.0, 0.9),
    PL.RIGHT_HIP: (0.43, 0.75, 0.0, 0.9),
}


def make_pose(**overrides):
    """33 landmarks of a person facing the camera.

    Keyword overrides use lower-case PoseLandmark names and take (x, y, z, visibility).
    """
    points = dict(FRONT_POSE)
    for name, value in overrides.items():
        points[getattr(PL, name.upper())] = value
    out = []
    for i in range(NUM_LANDMARKS):
        out.append(Landmark(*points.get(i, (0.5, 0.5, 0.0, 0.0))))
    return out


def back_pose(**overrides):
    hidden_face = {
        "nose": (0.5, 0.3, -0.3, 0.05),
        "left_eye": (0.52, 0.28, -0.3, 0.05),
        "right_eye": (0.48, 0.28, -0.3, 0.05),
    }
    hidden_face.update(overrides)
    return make_pose(**hidden_face)


def side_pose(**overrides):
    """Profile with the left shoulder nearer the camera."""
    profile = {
        "left_shoulder": (0.52, 0.45, -0.2, 0.9),
        "right_shoulder": (0.48, 0.45, 0.1, 0.9),
    }
    profile.update(overrides)
    return make_pose(**profile)


class FakeDetector:
    """Returns a fixed landmark list (or None) for every frame."""

    def __init__(self, landmarks):
        self.landmarks = landmarks
        self.calls = 0

    def detect(self, frame_bgr):
        self.calls += 1
        return self.landmarks

    def close(self):
        pass


def write_png(path, w=100, h=120, color=(0, 0, 255), alpha=255):
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[:, :, :3] = color
    img[:, :, 3] = alpha
    assert cv2.imwrite(str(path), img)
    return img


@pytest.fixture
def garment_dir(tmp_path):
    root = tmp_path / "garments"
    tee = root / "basic-tee"
    tee.mkdir(parents=True)
    for view in ("front", "back", "left", "right"):
        write_png(tee / f"{view}.png")

    shirt = root / "oxford-shirt"
    shirt.mkdir()
    write_png(shirt / "front.png", w=120, h=120, color=(255, 0, 0))
    for seg in ("left_upper_sleeve", "left_lower_sleeve",
                "right_upper_sleeve", "right_lower_sleeve"):
        write_png(shirt / f"{seg}.png", w=60, h=96, color=(255, 0, 0))
    return root


@pytest.fixture
def gray_frame():
    return np.full((480, 640, 3), 128, dtype=np.uint8)
