"""Contains the types and constants used in Shades.

This module defines the small enumeration types shared across the package
together with the fixed configuration values of the previewer.

Classes
-------
ShaderStage
    Programmable pipeline stage a shader object is compiled for.
Action
    Discrete operator commands dispatched from key presses.
"""

import enum

# Number of texture channels (and texture units) exposed to the shader.
MAX_TEXTURES = 4

# Default framebuffer size when no ``--size`` is given.
DEFAULT_SIZE = (1024, 800)

WINDOW_TITLE = "Shades"

# Zoom is expressed in framebuffer pixels per shader unit.
MIN_SCALE = 1.0
ZOOM_STEP = 1.0


class ShaderStage(enum.Enum):
    """Programmable pipeline stage a shader object is compiled for.

    Attributes
    ----------
    VERTEX : str
        Vertex stage.
    FRAGMENT : str
        Fragment stage.
    """
    VERTEX = "vertex"
    FRAGMENT = "fragment"


class Action(enum.Enum):
    """Operator commands bound to keys in the preview window.

    Attributes
    ----------
    RELOAD : int
        Recompile the shader and reload every occupied texture channel.
    ZOOM_IN : int
        Increase the scale factor by one step.
    ZOOM_OUT : int
        Decrease the scale factor by one step, never below 1.0.
    QUIT : int
        Close the preview window.
    """
    RELOAD = 1
    ZOOM_IN = 2
    ZOOM_OUT = 3
    QUIT = 4
