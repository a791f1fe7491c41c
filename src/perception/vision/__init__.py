"""Frame rendering and sensor-response filtering."""

from .render import DARK_BG, new_frame, project, render_scene
from .spectral import SPECTRAL_WEIGHTS, apply_spectral_filter, spectral_filtered

__all__ = [
    "DARK_BG",
    "SPECTRAL_WEIGHTS",
    "apply_spectral_filter",
    "new_frame",
    "project",
    "render_scene",
    "spectral_filtered",
]
