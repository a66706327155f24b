"""Shades: live fragment-shader preview.

Shades renders a full-window quad through a user-written GLSL fragment
shader, with up to four images bound as textures, and recompiles the shader
and reloads the images on demand without closing the window.

From the command line::

    shades effect.glsl noise.png photo.jpg --size 800x600

The user file defines the entry point ``vec4 main_image(vec2 coord)``,
where ``coord`` is the pixel position (origin top-left) divided by the
current zoom. The following uniforms are declared for it:

- ``sampler2D u_tex0`` .. ``u_tex3`` and their sizes ``vec2 u_tex_res[4]``
- ``vec2 u_res`` (framebuffer size), ``float u_time`` (seconds),
  ``float u_scale`` (zoom)

Keys: Ctrl+R (Cmd+R on macOS) reloads, Ctrl+'+' / Ctrl+'-' zoom, Esc quits.

The building blocks can be embedded in another GLFW/OpenGL application::

    from shades.gl.views import FrameState
    from shades.render import clear_frame, draw_frame
    from shades.reload import HotReloadController
    from shades.scene import Scene

    scene = Scene("effect.glsl", ["noise.png"]).load()   # context current
    frame_state = FrameState()
    controller = HotReloadController(scene, frame_state)
    ...
    clear_frame()
    draw_frame(scene, frame_state)

"""

from . import gl  # noqa: F401  configures PyOpenGL before any OpenGL.GL import
from ._config import sys_info  # noqa: F401
from ._version import __version__  # noqa: F401
from .gl.camera import RenderTarget, make_ortho
from .gl.views import FrameState
from .types import MAX_TEXTURES, Action, ShaderStage

__all__ = [
    "__version__",
    "sys_info",
    "Action",
    "FrameState",
    "MAX_TEXTURES",
    "RenderTarget",
    "ShaderStage",
    "make_ortho",
]
