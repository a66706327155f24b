"""Scene aggregate: every GPU resource the preview draws with.

A :class:`Scene` owns the shader program, the four texture channels, the
quad mesh and the render target. It is created once the GL context is
current, handed by reference to :func:`shades.render.draw_frame` and the
:class:`shades.reload.HotReloadController`, and destroyed once at shutdown.

Loading failures stop here: :func:`build_program` and :func:`build_texture`
log the diagnostic and return an empty resource (handle 0), they never
raise for a bad shader or image.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from .gl.camera import RenderTarget
from .gl.quad import QuadMesh
from .gl.shaders import get_quad_shaders
from .gl.textures import TextureError, delete_texture, load_texture
from .gl.uniforms import LocationTable, resolve_locations
from .gl.utils import ShaderError, compile_shader_program, delete_program
from .types import DEFAULT_SIZE, MAX_TEXTURES

# Module logger
logger = logging.getLogger(__name__)


@dataclass
class ShaderProgram:
    """The user's shader and its linked program.

    Attributes
    ----------
    path : str
        Fragment shader file the program is built from.
    handle : int
        OpenGL program handle, 0 when no program is usable.
    locations : LocationTable or None
        Locations resolved for ``handle``; None whenever ``handle`` is 0.
    """
    path: str
    handle: int = 0
    locations: Optional[LocationTable] = None


@dataclass
class Texture:
    """One texture channel.

    Attributes
    ----------
    path : str or None
        Image file, None for an unused channel.
    handle : int
        OpenGL texture handle, 0 when nothing is loaded. Unit ``i`` then
        binds texture 0, which samples as opaque black.
    width, height : int
        Decoded image size, 0 when nothing is loaded.
    channels : int
        3 (RGB) or 4 (RGBA), 0 when nothing is loaded.
    """
    path: Optional[str] = None
    handle: int = 0
    width: int = 0
    height: int = 0
    channels: int = 0

    @property
    def occupied(self):
        return self.path is not None


def read_source(path):
    """Return the whole content of a text file.

    Raises
    ------
    OSError
        If the file cannot be read.
    """
    return Path(path).read_text(encoding="utf-8", errors="replace")


def build_program(path):
    """Build the preview program from a user fragment shader file.

    Parameters
    ----------
    path : str or os.PathLike
        User fragment shader defining ``vec4 main_image(vec2 coord)``.

    Returns
    -------
    int
        Linked program handle, or 0 if the file could not be read or the
        shader failed to compile or link (the diagnostic is logged).
    """
    try:
        source = read_source(path)
    except OSError as exc:
        logger.error("could not open shader source %s: %s", path, exc)
        return 0

    vertex_sources, fragment_sources = get_quad_shaders(source)
    try:
        program = compile_shader_program(vertex_sources, fragment_sources)
    except ShaderError as exc:
        logger.error("%s: %s", path, exc)
        return 0

    logger.info("compiled shader `%s` (program %d)", path, program)
    return program


def build_texture(path):
    """Load one texture channel.

    Parameters
    ----------
    path : str or None
        Image file, None for an unused channel.

    Returns
    -------
    Texture
        Loaded channel, or an empty one (handle 0) on failure.
    """
    if path is None:
        return Texture()
    try:
        tex, width, height, channels = load_texture(path)
    except TextureError as exc:
        logger.error("%s", exc)
        return Texture(path=path)
    return Texture(path=path, handle=tex, width=width, height=height, channels=channels)


class Scene:
    """Owner of the program, texture channels, quad and render target.

    Construction only records paths; :meth:`load` creates the GPU
    resources and must run with the GL context current.

    Parameters
    ----------
    shader_path : str or os.PathLike
        User fragment shader.
    texture_paths : sequence of str, optional
        Up to ``MAX_TEXTURES`` images, channel ``i`` gets ``texture_paths[i]``.
    size : tuple of int, optional
        Initial framebuffer size. Default is ``DEFAULT_SIZE``.

    Raises
    ------
    ValueError
        If more than ``MAX_TEXTURES`` texture paths are given.
    """

    def __init__(self, shader_path, texture_paths=(), size=DEFAULT_SIZE):
        texture_paths = [str(p) for p in texture_paths]
        if len(texture_paths) > MAX_TEXTURES:
            raise ValueError(
                f"At most {MAX_TEXTURES} textures are supported, got {len(texture_paths)}."
            )
        texture_paths += [None] * (MAX_TEXTURES - len(texture_paths))

        self.program = ShaderProgram(path=str(shader_path))
        self.textures = [Texture(path=p) for p in texture_paths]
        self.target = RenderTarget(0, 0, size[0], size[1])
        self.mesh = None
        self.destroyed = False

    def load(self):
        """Create the quad and load the program and all textures.

        Resource failures are logged and leave the affected handle at 0.
        """
        if self.mesh is None:
            self.mesh = QuadMesh()
        program = build_program(self.program.path)
        if program:
            self.set_program(program)
        for channel in range(MAX_TEXTURES):
            self.load_channel(channel)
        return self

    def set_program(self, handle):
        """Make ``handle`` the active program.

        Resolves a fresh location table, points the quad's attributes at
        it and deletes the previous program.

        Parameters
        ----------
        handle : int
            Linked program handle, not 0.
        """
        locations = resolve_locations(handle)
        previous = self.program.handle
        self.program.handle = handle
        self.program.locations = locations
        if self.mesh is not None:
            self.mesh.attach(locations)
        if previous and previous != handle:
            delete_program(previous)
        logger.debug("active program %d, locations %s", handle, locations)

    def clear_program(self):
        """Delete the active program and leave handle 0."""
        delete_program(self.program.handle)
        self.program.handle = 0
        self.program.locations = None

    def load_channel(self, channel):
        """(Re)load texture channel ``channel`` from its stored path.

        The current texture is released first; on failure the channel is
        left empty (handle 0).

        Returns
        -------
        bool
            True if the channel is unused or loaded successfully.
        """
        current = self.textures[channel]
        delete_texture(current.handle)
        texture = build_texture(current.path)
        self.textures[channel] = texture
        return not texture.occupied or bool(texture.handle)

    def texture_sizes(self):
        """Pixel size of every channel as a ``(MAX_TEXTURES, 2)`` float32 array."""
        return np.array([(t.width, t.height) for t in self.textures], dtype=np.float32)

    def destroy(self):
        """Release every GPU resource; later calls do nothing.

        Must only be called while the GL context is still current.
        """
        if self.destroyed:
            return
        self.clear_program()
        for channel, texture in enumerate(self.textures):
            delete_texture(texture.handle)
            self.textures[channel] = Texture(path=texture.path)
        if self.mesh is not None:
            self.mesh.delete()
            self.mesh = None
        self.destroyed = True
        logger.debug("scene destroyed")
