"""Per-frame view state of the preview window."""

from dataclasses import dataclass

from ..types import DEFAULT_SIZE, MIN_SCALE, ZOOM_STEP


@dataclass
class FrameState:
    """Mutable view parameters pushed to the shader every frame.

    Attributes
    ----------
    scale : float
        Framebuffer pixels per shader unit, never below ``MIN_SCALE``.
    time : float
        Seconds elapsed since the preview started.
    size : tuple of int
        Current framebuffer ``(width, height)`` in pixels.
    """
    scale: float = MIN_SCALE
    time: float = 0.0
    size: tuple = DEFAULT_SIZE

    @property
    def resolution(self):
        """Framebuffer size as a ``(float, float)`` pair for ``u_res``."""
        return float(self.size[0]), float(self.size[1])


def clamp_scale(scale):
    """Clamp a scale factor to the allowed range."""
    return max(MIN_SCALE, float(scale))


def step_scale(scale, direction, step=ZOOM_STEP):
    """Return ``scale`` moved by ``direction`` zoom steps, clamped.

    Parameters
    ----------
    scale : float
        Current scale factor.
    direction : int
        ``+1`` to zoom in, ``-1`` to zoom out.
    step : float, optional
        Increment per step. Default is ``ZOOM_STEP``.

    Returns
    -------
    float
        New scale factor, never below ``MIN_SCALE``.
    """
    return clamp_scale(scale + direction * step)
