"""GLFW window and context helpers."""

import ctypes
import logging
import sys
import warnings

import glfw

# Module logger
logger = logging.getLogger(__name__)


def _glfw_error(code, description):
    if isinstance(description, bytes):
        description = description.decode("utf-8", errors="replace")
    logger.error("glfw error [%d]: %s", code, description)


def _try_glfw_window(width, height, title, core_profile, visible=True):
    """Attempt to create a single GLFW window with the given profile settings.

    Calls ``glfw.init()`` before and ``glfw.terminate()`` on failure so that
    each attempt starts from a clean GLFW state.

    Parameters
    ----------
    core_profile : bool
        If True request an OpenGL 3.3 Core Profile + ``FORWARD_COMPAT``
        context, otherwise a 3.3 Compatibility Profile one.
    visible : bool, optional
        Show the window. Default is True.

    Returns
    -------
    window or None
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        if not glfw.init():
            return None

    glfw.default_window_hints()
    glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
    glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
    if core_profile:
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
    else:
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, False)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_COMPAT_PROFILE)
    glfw.window_hint(glfw.RESIZABLE, True)
    glfw.window_hint(glfw.VISIBLE, visible)

    window = glfw.create_window(width, height, title, None, None)
    if not window:
        glfw.terminate()
        return None
    return window


def init_window(width, height, title, visible=True):
    """Create a GLFW window and make its OpenGL context current.

    Tries OpenGL 3.3 Core Profile first, then falls back to Compatibility
    Profile on non-macOS platforms (NSGL only offers Core Profile).

    Parameters
    ----------
    width, height : int
        Window size in screen coordinates.
    title : str
        Window title.
    visible : bool, optional
        Show the window. An invisible window still has a working context
        and default framebuffer. Default is True.

    Returns
    -------
    window or False
        GLFW window handle on success, or False on failure.
    """
    glfw.set_error_callback(_glfw_error)

    window = _try_glfw_window(width, height, title, core_profile=True, visible=visible)
    if not window and sys.platform != "darwin":
        logger.debug(
            "OpenGL 3.3 Core Profile unavailable; retrying with Compatibility Profile."
        )
        window = _try_glfw_window(width, height, title, core_profile=False, visible=visible)
    if not window:
        return False

    glfw.make_context_current(window)
    glfw.swap_interval(1)
    return window


def context_is_current(window):
    """Return True if ``window``'s context is current on this thread."""
    if not window:
        return False
    current = glfw.get_current_context()
    if not current:
        return False
    # ctypes pointers compare by identity, compare addresses instead.
    return (
        ctypes.cast(current, ctypes.c_void_p).value
        == ctypes.cast(window, ctypes.c_void_p).value
    )


def terminate_context(window):
    """Destroy the window and shut GLFW down.

    Parameters
    ----------
    window : GLFWwindow or None
        Window handle returned by :func:`init_window`.
    """
    if window:
        glfw.destroy_window(window)
    glfw.terminate()
