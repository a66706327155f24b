"""Bootstrap PyOpenGL configuration; must be imported first.

Imported unconditionally at the top of gl/__init__.py before any other
OpenGL symbol.

* Sets PYOPENGL_PLATFORM=egl when running headless on Linux so that
  importing ``OpenGL.GL`` does not try to resolve GLX entry points without
  an X11 display. A value already present in the environment is kept.
* Turns off PyOpenGL's per-call ``glGetError`` checking. GL errors are
  polled explicitly with :func:`~shades.gl.utils.check_gl_error` and only
  logged, so they never surface as exceptions in the middle of a frame.
"""
import os
import sys

import OpenGL

if "PYOPENGL_PLATFORM" not in os.environ and sys.platform == "linux":
    if not os.environ.get("DISPLAY") and not os.environ.get("WAYLAND_DISPLAY"):
        os.environ["PYOPENGL_PLATFORM"] = "egl"

OpenGL.ERROR_CHECKING = False
