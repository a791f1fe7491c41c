"""Forward-view frame renderer.

Draws the live entity set into an RGBA numpy frame, farthest entity
first so nearer outlines composite over farther ones.  Projection is a
deliberately simple pseudo-perspective, not a camera model:

  scale  = 200 / (z + 50)
  left   = W/2 + x * scale * 20
  top    = H - z * 1.5
  size   = (width * scale * 10, height * scale * 10)

Colors are RGBA tuples (the frame is RGBA, not OpenCV's usual BGR).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

if TYPE_CHECKING:
    from perception.simulation.entity import Entity

FRAME_WIDTH = 1024
FRAME_HEIGHT = 600

DARK_BG = (15, 23, 42, 255)  # #0f172a
_OUTLINE_PX = 2


def hex_to_rgba(color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    """Convert ``#rrggbb`` to an RGBA tuple."""
    c = color.lstrip("#")
    if len(c) != 6:
        raise ValueError(f"expected #rrggbb color, got {color!r}")
    return (int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16), alpha)


def new_frame(width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT) -> np.ndarray:
    return np.zeros((height, width, 4), dtype=np.uint8)


def project(entity: Entity, width: int, height: int) -> tuple[int, int, int, int] | None:
    """Return the (left, top, w, h) pixel box for *entity*, or None if degenerate."""
    denom = entity.z + 50.0
    if denom <= 0:
        return None
    scale = 200.0 / denom
    left = width / 2 + entity.x * scale * 20
    top = height - entity.z * 1.5
    w = entity.width * scale * 10
    h = entity.height * scale * 10
    return int(left), int(top), max(1, int(w)), max(1, int(h))


def render_scene(frame: np.ndarray, entities: list[Entity]) -> list[Entity]:
    """Clear *frame* and draw *entities* in depth order.

    Returns the depth-sorted list that was drawn.
    """
    from perception.simulation.entity import depth_sorted

    height, width = frame.shape[:2]
    frame[:] = DARK_BG
    ordered = depth_sorted(entities)
    for e in ordered:
        box = project(e, width, height)
        if box is None:
            continue
        left, top, w, h = box
        cv2.rectangle(
            frame, (left, top), (left + w, top + h), hex_to_rgba(e.color), _OUTLINE_PX,
        )
    return ordered
