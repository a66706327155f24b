"""Screen quad geometry: one VAO with a 4-vertex VBO and a 6-index EBO."""

import ctypes
import logging
import math

import numpy as np
import OpenGL.GL as gl

# Module logger
logger = logging.getLogger(__name__)

# Two triangles sharing the 0-2 diagonal.
QUAD_INDICES = np.array([0, 1, 2, 0, 2, 3], dtype=np.uint32)

# Interleaved per vertex: position (x, y) in pixels, texcoord (u, v).
VERTEX_STRIDE = 4 * 4
POSITION_OFFSET = 0
TEXCOORD_OFFSET = 2 * 4


def quad_vertices(pos, size):
    """Return the interleaved vertex data of an axis-aligned rectangle.

    Parameters
    ----------
    pos : tuple of float
        Top-left corner ``(x, y)`` in pixels.
    size : tuple of float
        ``(width, height)`` in pixels.

    Returns
    -------
    numpy.ndarray
        4x4 float32 array, one ``(x, y, u, v)`` row per vertex. Vertex 0 is
        the top-left corner with texcoord ``(0, 0)``.
    """
    x, y = pos
    w, h = size
    return np.array(
        [
            [x, y, 0.0, 0.0],
            [x + w, y, 1.0, 0.0],
            [x + w, y + h, 1.0, 1.0],
            [x, y + h, 0.0, 1.0],
        ],
        dtype=np.float32,
    )


def _enable_attrib(index, offset):
    gl.glEnableVertexAttribArray(index)
    gl.glVertexAttribPointer(
        index, 2, gl.GL_FLOAT, gl.GL_FALSE, VERTEX_STRIDE, ctypes.c_void_p(offset)
    )


class QuadMesh:
    """Static quad owned by the scene for the whole process lifetime.

    The index buffer is uploaded once. Vertex data is uploaded lazily by
    :meth:`prepare` and only again when the rectangle changes.

    Attributes
    ----------
    vao, vbo, ebo : int
        OpenGL object handles, 0 once deleted.
    uploads : int
        Number of vertex uploads done so far.
    """

    def __init__(self):
        nan = (math.nan, math.nan)
        self.last_pos = nan
        self.last_size = nan
        self.uploads = 0
        self._enabled = []

        self.vao = int(gl.glGenVertexArrays(1))
        gl.glBindVertexArray(self.vao)

        self.vbo = int(gl.glGenBuffers(1))
        self.ebo = int(gl.glGenBuffers(1))

        gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, self.ebo)
        gl.glBufferData(
            gl.GL_ELEMENT_ARRAY_BUFFER, QUAD_INDICES.nbytes, QUAD_INDICES, gl.GL_STATIC_DRAW
        )

        gl.glBindVertexArray(0)
        gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, 0)
        logger.debug("Quad VAO %d, VBO %d, EBO %d", self.vao, self.vbo, self.ebo)

    @property
    def index_count(self):
        return int(QUAD_INDICES.size)

    def attach(self, locations):
        """Point the VAO's attributes at the vertex buffer for a program.

        Must run after every link, attribute locations can change between
        programs.

        Parameters
        ----------
        locations : LocationTable
            Locations of the program that will draw the quad.
        """
        gl.glBindVertexArray(self.vao)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, self.vbo)
        for index in self._enabled:
            gl.glDisableVertexAttribArray(index)
        self._enabled = []
        for name, offset in (("in_vtx_pos", POSITION_OFFSET), ("in_vtx_tex0", TEXCOORD_OFFSET)):
            index = locations.attribute(name)
            if index is not None:
                _enable_attrib(index, offset)
                self._enabled.append(index)
        gl.glBindVertexArray(0)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, 0)

    def bind(self):
        """Bind the VAO together with both buffers."""
        gl.glBindVertexArray(self.vao)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, self.vbo)
        gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, self.ebo)

    def prepare(self, pos, size):
        """Upload vertex data for the rectangle unless it is unchanged.

        The VBO must be bound (see :meth:`bind`).

        Returns
        -------
        bool
            True if data was uploaded.
        """
        pos = (float(pos[0]), float(pos[1]))
        size = (float(size[0]), float(size[1]))
        if pos == self.last_pos and size == self.last_size:
            return False
        vertices = quad_vertices(pos, size)
        gl.glBufferData(gl.GL_ARRAY_BUFFER, vertices.nbytes, vertices, gl.GL_STATIC_DRAW)
        self.last_pos = pos
        self.last_size = size
        self.uploads += 1
        return True

    def delete(self):
        """Release the GL objects; safe to call twice."""
        if self.vao:
            gl.glDeleteVertexArrays(1, [self.vao])
        if self.vbo or self.ebo:
            gl.glDeleteBuffers(2, [self.vbo, self.ebo])
        self.vao = self.vbo = self.ebo = 0
