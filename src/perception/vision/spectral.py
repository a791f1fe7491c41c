"""Spectral filter — simplified luminance-weighted sensor response.

Scales the R, G and B channels of an RGBA frame by fixed weights and
leaves alpha untouched.  The transform is per-pixel and uniform: no pixel
depends on its neighbours or on scene state.

Integer frames are rounded to the nearest value on store, the same as an
8-bit canvas does.  Every weight is below 1 so results never leave the
channel's range and no clipping is applied.
"""

from __future__ import annotations

import numpy as np

# R, G, B weights
SPECTRAL_WEIGHTS = np.array([0.21, 0.70, 0.07])


def _check_rgba(frame: np.ndarray) -> None:
    if frame.ndim != 3 or frame.shape[2] != 4:
        raise ValueError(f"expected an (H, W, 4) RGBA frame, got shape {frame.shape}")


def apply_spectral_filter(frame: np.ndarray) -> np.ndarray:
    """Filter *frame* in place and return it."""
    _check_rgba(frame)
    rgb = frame[..., :3]
    if np.issubdtype(frame.dtype, np.floating):
        rgb *= SPECTRAL_WEIGHTS.astype(frame.dtype)
    else:
        rgb[...] = np.rint(rgb * SPECTRAL_WEIGHTS).astype(frame.dtype)
    return frame


def spectral_filtered(frame: np.ndarray) -> np.ndarray:
    """Return a filtered copy of *frame*; the input is not modified."""
    return apply_spectral_filter(frame.copy())
