"""Projection helpers and the render target rectangle."""

import numpy as np
import pyrr


def make_ortho(x, y, width, height):
    """Create a 4x4 orthographic projection for a pixel viewport.

    The viewport origin is its top-left corner and Y grows downward, so
    ``(x, y)`` maps to NDC ``(-1, 1)`` and ``(x + width, y + height)`` to
    ``(1, -1)``. Depth uses ``near=1``, ``far=-1``; the matrix never
    produces a ``w`` other than 1.

    Parameters
    ----------
    x, y : float
        Offset of the viewport in pixels.
    width, height : float
        Viewport size in pixels, both strictly positive.

    Returns
    -------
    numpy.ndarray
        4x4 float32 matrix in row-major (math) layout: it transforms column
        vectors as ``proj @ p`` and must be uploaded with ``transpose=True``.

    Raises
    ------
    ValueError
        If ``width`` or ``height`` is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Viewport size must be positive, got {width}x{height}.")
    # pyrr builds matrices for row vectors (p @ M), i.e. already in GL
    # column-major memory order. Transpose to the math layout.
    proj = pyrr.matrix44.create_orthogonal_projection(
        x, x + width, y + height, y, 1.0, -1.0, dtype=np.float32
    )
    return np.ascontiguousarray(proj.T)


class RenderTarget:
    """Rectangle the quad is drawn into, with its cached projection.

    Parameters
    ----------
    x, y : float
        Offset in pixels.
    width, height : float
        Size in pixels.

    Attributes
    ----------
    offset : tuple of float
        ``(x, y)`` offset.
    size : tuple of float
        ``(width, height)`` size.
    proj : numpy.ndarray
        Orthographic projection for the current rectangle, see
        :func:`make_ortho`.
    """

    def __init__(self, x, y, width, height):
        self.offset = (float(x), float(y))
        self.size = (float(width), float(height))
        self.proj = make_ortho(x, y, width, height)

    def set_size(self, width, height):
        """Resize the target and recompute its projection."""
        self.proj = make_ortho(self.offset[0], self.offset[1], width, height)
        self.size = (float(width), float(height))

    def __repr__(self):
        return f"RenderTarget(offset={self.offset}, size={self.size})"
