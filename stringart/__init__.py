"""Greedy string art: approximate an image with chords between boundary anchors."""

from .anchors import generate_anchors, admissible_chords, circular_distance, is_admissible
from .config import StringArtConfig, ConfigurationError
from .rasterizer import ChordRasterizer, point_profile
from .scorer import score, grid_loss
from .selector import ChordSelector, SelectionResult
from .sink import Sink, FrameSink, WindowSink, write_output
from .target import load_target, prepare_target

__all__ = [
    "generate_anchors",
    "admissible_chords",
    "circular_distance",
    "is_admissible",
    "StringArtConfig",
    "ConfigurationError",
    "ChordRasterizer",
    "point_profile",
    "score",
    "grid_loss",
    "ChordSelector",
    "SelectionResult",
    "Sink",
    "FrameSink",
    "WindowSink",
    "write_output",
    "load_target",
    "prepare_target",
]
