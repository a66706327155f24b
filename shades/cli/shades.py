#!/usr/bin/python3

"""Live preview window for a GLSL fragment shader.

Opens an OpenGL window that renders a full-window quad through the given
fragment shader, with up to four images bound to texture units 0-3::

    shades effect.glsl
    shades effect.glsl noise.png photo.jpg --size 800x600

While the window is open:

* **Ctrl+R** (Cmd+R on macOS): recompile the shader and reload the images.
* **Ctrl+'+' / Ctrl+'-'**: zoom in / out (scale never drops below 1).
* **Esc**: quit.

A shader or image that fails to load is reported and the window stays
open; fix the file and reload.
"""

import argparse
import logging
import os
import re
import sys

if __name__ == "__main__" and __package__ is None:
    # Replace the current process with `python -m shades.cli.shades`
    # so that relative imports work.
    os.execv(sys.executable, [sys.executable, "-m", "shades.cli.shades"] + sys.argv[1:])

import glfw

from .._version import __version__
from ..gl.views import FrameState
from ..gl.window import context_is_current, init_window, terminate_context
from ..reload import HotReloadController
from ..render import clear_frame, draw_frame
from ..scene import Scene
from ..types import DEFAULT_SIZE, MAX_TEXTURES, MIN_SCALE, WINDOW_TITLE

# Module logger
logger = logging.getLogger(__name__)

_SIZE_PATTERN = re.compile(r"^(\d+)[xX](\d+)$")


def parse_size(text):
    """Parse a ``WIDTHxHEIGHT`` window size (argparse ``type``)."""
    match = _SIZE_PATTERN.match(text.strip())
    if not match:
        raise argparse.ArgumentTypeError(f"invalid size {text!r}, expected WIDTHxHEIGHT")
    width, height = int(match.group(1)), int(match.group(2))
    if width == 0 or height == 0:
        raise argparse.ArgumentTypeError(f"invalid size {text!r}, both sides must be positive")
    return width, height


def parse_scale(text):
    """Parse an initial zoom factor (argparse ``type``)."""
    try:
        scale = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid scale {text!r}") from None
    if not scale >= MIN_SCALE:
        raise argparse.ArgumentTypeError(f"scale must be at least {MIN_SCALE}, got {text}")
    return scale


def build_parser():
    parser = argparse.ArgumentParser(
        prog="shades",
        description=(
            "Live preview of a GLSL fragment shader. The shader file defines "
            "'vec4 main_image(vec2 coord)'; images are bound to u_tex0..u_tex3."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("shader", help="Fragment shader source file.")
    parser.add_argument(
        "textures", nargs="*", metavar="texture",
        help=f"Up to {MAX_TEXTURES} images bound to texture channels 0-{MAX_TEXTURES - 1}.",
    )
    parser.add_argument(
        "-s", "--size", type=parse_size, default=DEFAULT_SIZE, metavar="WIDTHxHEIGHT",
        help="Initial window size (default: %dx%d)." % DEFAULT_SIZE,
    )
    parser.add_argument(
        "--scale", type=parse_scale, default=MIN_SCALE,
        help="Initial zoom in pixels per shader unit (default: 1).",
    )
    parser.add_argument(
        "--discard-on-error", dest="keep_last_good", action="store_false", default=True,
        help=(
            "Delete the running program before recompiling, so a failed reload "
            "shows a black window instead of the last working shader."
        ),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def parse_args(argv=None):
    """Parse and validate command-line arguments.

    Exits with status 2 on argument errors, before any window is created.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if len(args.textures) > MAX_TEXTURES:
        parser.error(f"at most {MAX_TEXTURES} textures are supported, got {len(args.textures)}")
    return args


def show_window(shader, textures=(), size=DEFAULT_SIZE, scale=MIN_SCALE, keep_last_good=True):
    """Open the preview window and run the event loop until it is closed.

    Parameters
    ----------
    shader : str
        Fragment shader source file.
    textures : sequence of str, optional
        Up to ``MAX_TEXTURES`` image files.
    size : tuple of int, optional
        Window size. Default is ``DEFAULT_SIZE``.
    scale : float, optional
        Initial zoom. Default is 1.0.
    keep_last_good : bool, optional
        Reload policy, see :mod:`shades.reload`. Default is True.

    Raises
    ------
    RuntimeError
        If the GLFW window or OpenGL context could not be created.
    """
    window = init_window(size[0], size[1], WINDOW_TITLE)
    if not window:
        raise RuntimeError(
            "Could not create a GLFW window/context. OpenGL context unavailable."
        )

    frame_state = FrameState(scale=scale, size=tuple(size))
    scene = Scene(shader, textures, size=size)
    try:
        scene.load()

        controller = HotReloadController(
            scene,
            frame_state,
            keep_last_good=keep_last_good,
            on_quit=lambda: glfw.set_window_should_close(window, True),
        )
        # HiDPI: the framebuffer can be larger than the requested window size
        controller.resize(*glfw.get_framebuffer_size(window))
        glfw.set_key_callback(window, controller.key_callback)
        glfw.set_framebuffer_size_callback(window, controller.framebuffer_size_callback)

        logger.info("Keys: Ctrl+R=reload  Ctrl+'+'/'-'=zoom  Esc=quit  (Cmd instead of Ctrl on macOS)")

        start = glfw.get_time()
        while not glfw.window_should_close(window):
            frame_state.time = glfw.get_time() - start
            clear_frame()
            draw_frame(scene, frame_state)
            glfw.swap_buffers(window)
            glfw.poll_events()
    finally:
        if context_is_current(window):
            scene.destroy()
        else:
            logger.warning("GL context is no longer current; skipping resource cleanup.")
        terminate_context(window)


def run(argv=None):
    """Command-line entry point of the ``shades`` previewer."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        show_window(
            args.shader,
            textures=args.textures,
            size=args.size,
            scale=args.scale,
            keep_last_good=args.keep_last_good,
        )
    except RuntimeError as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    run()
