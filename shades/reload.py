"""Hot reload, resize and zoom handling for the preview window.

The :class:`HotReloadController` is the only code that replaces resources
of a live :class:`~shades.scene.Scene`. It is driven from GLFW callbacks,
which run on the thread that owns the GL context, strictly between two
frames.

Program replacement policy
--------------------------
With ``keep_last_good=True`` (the default) a reload builds the new program
first and swaps it in only once it has linked; a broken edit keeps the
previous program on screen. With ``keep_last_good=False`` the running
program is deleted before the recompile, so a failed reload leaves
program 0 and a black window until the next successful reload. Texture
channels always follow the second behaviour: a channel that fails to
reload is left empty.
"""

import logging
import sys
from dataclasses import dataclass, field

import glfw
import OpenGL.GL as gl

from .gl.views import step_scale
from .scene import build_program
from .types import MAX_TEXTURES, Action

# Module logger
logger = logging.getLogger(__name__)

# Modifiers that select a binding. Shift and the lock keys are ignored so
# that e.g. Ctrl+Shift+= still counts as Ctrl+'+' on US layouts.
_COMMAND_MODS = glfw.MOD_CONTROL | glfw.MOD_ALT | glfw.MOD_SUPER


def default_modifier():
    """Return the modifier used for commands: Super on macOS, Control elsewhere."""
    return glfw.MOD_SUPER if sys.platform == "darwin" else glfw.MOD_CONTROL


def default_key_bindings(modifier=None):
    """Return the default ``(key, modifiers) -> Action`` table.

    Parameters
    ----------
    modifier : int or None, optional
        GLFW modifier bit required for reload and zoom. Default is
        :func:`default_modifier`.

    Returns
    -------
    dict
        Mapping of ``(glfw key, modifier bits)`` to :class:`Action`.
    """
    if modifier is None:
        modifier = default_modifier()
    return {
        (glfw.KEY_R, modifier): Action.RELOAD,
        (glfw.KEY_EQUAL, modifier): Action.ZOOM_IN,
        (glfw.KEY_KP_ADD, modifier): Action.ZOOM_IN,
        (glfw.KEY_MINUS, modifier): Action.ZOOM_OUT,
        (glfw.KEY_KP_SUBTRACT, modifier): Action.ZOOM_OUT,
        (glfw.KEY_ESCAPE, 0): Action.QUIT,
    }


@dataclass
class ReloadResult:
    """Outcome of one reload.

    Attributes
    ----------
    shader : bool
        True if the shader compiled and linked and is now active.
    textures : dict
        Channel index -> True if it reloaded, for occupied channels only.
    """
    shader: bool = False
    textures: dict = field(default_factory=dict)

    @property
    def ok(self):
        return self.shader and all(self.textures.values())


class HotReloadController:
    """Applies operator commands and window notifications to a scene.

    Parameters
    ----------
    scene : Scene
        Scene whose resources are replaced.
    frame_state : FrameState
        Frame state updated by resize and zoom.
    keep_last_good : bool, optional
        Program replacement policy, see the module docstring. Default is
        True.
    bindings : dict or None, optional
        Key table, default :func:`default_key_bindings`.
    on_quit : callable or None, optional
        Called for :attr:`Action.QUIT`.
    """

    def __init__(self, scene, frame_state, keep_last_good=True, bindings=None, on_quit=None):
        self.scene = scene
        self.frame_state = frame_state
        self.keep_last_good = keep_last_good
        self.bindings = default_key_bindings() if bindings is None else dict(bindings)
        self.on_quit = on_quit
        self._handlers = {
            Action.RELOAD: self.reload,
            Action.ZOOM_IN: lambda: self.zoom(+1),
            Action.ZOOM_OUT: lambda: self.zoom(-1),
            Action.QUIT: self.quit,
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reload_program(self):
        """Rebuild the program from its stored path.

        Returns
        -------
        bool
            True if a new program is active.
        """
        program = self.scene.program
        if not self.keep_last_good:
            self.scene.clear_program()

        handle = build_program(program.path)
        if handle:
            self.scene.set_program(handle)
            return True

        if program.handle:
            logger.warning("keeping previous program %d for `%s`", program.handle, program.path)
        else:
            logger.warning("no usable program for `%s`, drawing nothing", program.path)
        return False

    def reload(self):
        """Reload the shader and every occupied texture channel.

        Failures are logged and never raised; a failing channel does not
        stop the others from reloading.

        Returns
        -------
        ReloadResult
        """
        logger.info("reloading `%s`", self.scene.program.path)
        result = ReloadResult(shader=self.reload_program())
        for channel in range(MAX_TEXTURES):
            if self.scene.textures[channel].occupied:
                result.textures[channel] = self.scene.load_channel(channel)
        return result

    def resize(self, width, height):
        """Follow a framebuffer size change.

        Updates the frame state, the GL viewport and the render target
        projection. A zero-sized framebuffer (minimised window) is ignored.

        Returns
        -------
        bool
            True if the new size was applied.
        """
        if width <= 0 or height <= 0:
            return False
        self.frame_state.size = (int(width), int(height))
        gl.glViewport(0, 0, int(width), int(height))
        self.scene.target.set_size(width, height)
        logger.debug("framebuffer resized to %dx%d", width, height)
        return True

    def zoom(self, direction):
        """Step the scale factor, never below 1.0; returns the new scale."""
        self.frame_state.scale = step_scale(self.frame_state.scale, direction)
        logger.debug("scale %.1f", self.frame_state.scale)
        return self.frame_state.scale

    def quit(self):
        if self.on_quit is not None:
            self.on_quit()

    def dispatch(self, action):
        """Run the command bound to ``action``."""
        return self._handlers[action]()

    # ------------------------------------------------------------------
    # GLFW input
    # ------------------------------------------------------------------

    def handle_key(self, key, action, mods):
        """Dispatch a key event through the binding table.

        Only the initial press counts: repeats and releases are ignored.

        Returns
        -------
        Action or None
            The action that ran, if any.
        """
        if action != glfw.PRESS:
            return None
        command = self.bindings.get((key, mods & _COMMAND_MODS))
        if command is not None:
            self.dispatch(command)
        return command

    def key_callback(self, _window, key, _scancode, action, mods):
        self.handle_key(key, action, mods)

    def framebuffer_size_callback(self, _window, width, height):
        self.resize(width, height)
