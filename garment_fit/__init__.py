"""
Pose-driven garment alignment and size estimation for virtual try-on.
"""

from garment_fit.config import EngineConfig, get_config, load_config
from garment_fit.landmarks import Landmark, PoseLandmark, Segment, View
from garment_fit.pipeline import FrameOutput, FramePipeline
from garment_fit.sizing import SizeEstimate, estimate_size
from garment_fit.smoother import LandmarkSmoother
from garment_fit.transforms import GarmentTransform, solve

__version__ = "0.1.0"
