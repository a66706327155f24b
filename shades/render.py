"""Per-frame draw of the preview quad."""

import OpenGL.GL as gl

from .gl.uniforms import SAMPLER_NAMES
from .gl.utils import check_gl_error
from .types import MAX_TEXTURES


def clear_frame():
    """Clear the default framebuffer to opaque black."""
    gl.glClearColor(0.0, 0.0, 0.0, 1.0)
    gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)


def draw_frame(scene, frame_state):
    """Draw the scene's quad through its program once.

    Uniforms and texture bindings are pushed on every call; only the
    vertex upload is skipped while the render target rectangle is
    unchanged. Every binding made here is undone before returning.

    Parameters
    ----------
    scene : Scene
        Resources to draw with. Only read, except for the quad's vertex
        upload cache.
    frame_state : FrameState
        Time, resolution and scale pushed to the shader.

    Returns
    -------
    bool
        True if a draw call was issued. With no usable program (handle 0)
        nothing is drawn and the cleared frame stays black.
    """
    program = scene.program
    if not program.handle or program.locations is None or scene.mesh is None:
        return False
    locations = program.locations
    mesh = scene.mesh
    target = scene.target

    gl.glUseProgram(program.handle)

    mesh.bind()
    mesh.prepare(target.offset, target.size)

    locations.set("u_pvm", gl.glUniformMatrix4fv, 1, gl.GL_TRUE, target.proj)
    for unit, name in enumerate(SAMPLER_NAMES):
        locations.set(name, gl.glUniform1i, unit)
    locations.set("u_tex_res", gl.glUniform2fv, MAX_TEXTURES, scene.texture_sizes())
    locations.set("u_res", gl.glUniform2f, *frame_state.resolution)
    locations.set("u_time", gl.glUniform1f, float(frame_state.time))
    locations.set("u_scale", gl.glUniform1f, float(frame_state.scale))

    for unit, texture in enumerate(scene.textures):
        gl.glActiveTexture(gl.GL_TEXTURE0 + unit)
        gl.glBindTexture(gl.GL_TEXTURE_2D, texture.handle)

    gl.glDrawElements(gl.GL_TRIANGLES, mesh.index_count, gl.GL_UNSIGNED_INT, None)

    # VAO first: unbinding the EBO while the VAO is bound would detach it.
    gl.glBindVertexArray(0)
    gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, 0)
    gl.glBindBuffer(gl.GL_ARRAY_BUFFER, 0)
    for unit in reversed(range(MAX_TEXTURES)):
        gl.glActiveTexture(gl.GL_TEXTURE0 + unit)
        gl.glBindTexture(gl.GL_TEXTURE_2D, 0)
    gl.glUseProgram(0)

    check_gl_error("draw_frame")
    return True
