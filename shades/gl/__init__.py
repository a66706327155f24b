"""OpenGL layer of the previewer (gl package).

Modules
-------
camera
    Orthographic projection and the render target rectangle (pure numpy).
views
    Per-frame view state and zoom clamping (pure Python).
shaders
    Fixed GLSL sources wrapped around the user's fragment shader.
utils
    Shader compilation/linking and GL error polling.
textures
    Image decoding (Pillow) and texture upload.
quad
    The screen quad's vertex/index buffers.
uniforms
    Attribute/uniform location tables.
window
    GLFW window and context helpers.

Only the PyOpenGL configuration runs on import; the submodules that call
into ``OpenGL.GL`` load the GL library when they are first imported.
"""

from . import _platform   # noqa: F401  MUST be first; configures PyOpenGL
