"""
MediaPipe Pose wrapper producing plain Landmark lists for the pipeline.
"""

import logging

import cv2

from garment_fit.landmarks import Landmark

logger = logging.getLogger(__name__)


class PoseDetector:
    """Pose estimator backed by MediaPipe Pose.

    detect() takes a BGR frame and returns 33 Landmarks, or None when no
    person is found.
    """

    def __init__(self, static_image_mode=False, model_complexity=1,
                 min_detection_confidence=0.5, min_tracking_confidence=0.5):
        try:
            import mediapipe as mp
            mp_pose_module = mp.solutions.pose
        except (ImportError, AttributeError) as e:
            raise RuntimeError(
                "MediaPipe Pose is not available. Install with: pip install 'garment-fit[pose]'"
            ) from e

        self.pose = mp_pose_module.Pose(
            static_image_mode=static_image_mode,
            model_complexity=int(model_complexity),
            smooth_landmarks=True,
            enable_segmentation=False,
            min_detection_confidence=float(min_detection_confidence),
            min_tracking_confidence=float(min_tracking_confidence),
        )
        logger.info("[OK] Using MediaPipe Pose detector (complexity=%d, static=%s)",
                    model_complexity, static_image_mode)

    def detect(self, frame_bgr):
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.pose.process(rgb)
        if results.pose_landmarks is None:
            return None
        return [Landmark.from_any(lm) for lm in results.pose_landmarks.landmark]

    def close(self):
        if self.pose is not None:
            self.pose.close()
            self.pose = None
