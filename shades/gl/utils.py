"""GL helper utilities.

Shader compilation and linking plus GL error polling. All functions expect
the GL context to be current on the calling thread.

Compilation failures are raised as :class:`ShaderError` carrying the
driver's diagnostic text verbatim. Every intermediate shader object is
released before an error leaves this module; callers only ever own the
final program handle.
"""

import logging

import OpenGL.GL as gl

from ..types import ShaderStage

# Module logger
logger = logging.getLogger(__name__)

# glGetError is polled in a loop; a lost context can keep reporting the
# same code forever.
_MAX_ERROR_POLLS = 16


class ShaderError(RuntimeError):
    """Shader compile or link failure.

    Parameters
    ----------
    stage : ShaderStage or None
        Stage that failed to compile, ``None`` for a link failure.
    log : str
        Info log reported by the driver.
    """

    def __init__(self, stage, log):
        self.stage = stage
        self.log = log
        what = f"{stage.value} shader compile" if stage is not None else "shader link"
        super().__init__(f"{what} error: {log}")


def _decode_log(log):
    if isinstance(log, bytes):
        return log.decode("utf-8", errors="replace")
    return str(log or "")


def get_shader_log(shader):
    """Return the info log of a shader object.

    The log length is queried first; an empty log is never fetched.

    Parameters
    ----------
    shader : int
        OpenGL shader handle.

    Returns
    -------
    str
        Info log text, possibly empty.
    """
    length = gl.glGetShaderiv(shader, gl.GL_INFO_LOG_LENGTH)
    if not length:
        return ""
    return _decode_log(gl.glGetShaderInfoLog(shader)).rstrip("\x00")


def get_program_log(program):
    """Return the info log of a program object (see :func:`get_shader_log`)."""
    length = gl.glGetProgramiv(program, gl.GL_INFO_LOG_LENGTH)
    if not length:
        return ""
    return _decode_log(gl.glGetProgramInfoLog(program)).rstrip("\x00")


def compile_shader(stage, sources):
    """Compile one shader stage from an ordered list of source strings.

    The strings are passed to ``glShaderSource`` separately, the driver
    concatenates them in order.

    Parameters
    ----------
    stage : ShaderStage
        Stage to compile.
    sources : sequence of str
        Source fragments, e.g. a declarations preamble, the user's file and
        an entry-point epilogue.

    Returns
    -------
    int
        OpenGL shader handle.

    Raises
    ------
    ShaderError
        If the driver rejects the source. The shader object is deleted
        before raising.
    """
    shader_type = gl.GL_VERTEX_SHADER if stage == ShaderStage.VERTEX else gl.GL_FRAGMENT_SHADER
    shader = gl.glCreateShader(shader_type)
    gl.glShaderSource(shader, list(sources))
    gl.glCompileShader(shader)
    if gl.glGetShaderiv(shader, gl.GL_COMPILE_STATUS) == gl.GL_TRUE:
        return shader

    log = get_shader_log(shader)
    gl.glDeleteShader(shader)
    raise ShaderError(stage, log)


def link_program(vertex, fragment):
    """Link compiled vertex and fragment shaders into a program.

    Both shader objects are consumed: they are deleted whether linking
    succeeds or not.

    Parameters
    ----------
    vertex, fragment : int
        Compiled shader handles.

    Returns
    -------
    int
        OpenGL program handle.

    Raises
    ------
    ShaderError
        If linking fails, e.g. when the user source has no ``main_image``.
    """
    program = gl.glCreateProgram()
    gl.glAttachShader(program, vertex)
    gl.glAttachShader(program, fragment)
    gl.glLinkProgram(program)

    # Flagged for deletion, freed once the program lets go of them.
    gl.glDeleteShader(vertex)
    gl.glDeleteShader(fragment)

    if gl.glGetProgramiv(program, gl.GL_LINK_STATUS) == gl.GL_TRUE:
        return program

    log = get_program_log(program)
    gl.glDeleteProgram(program)
    raise ShaderError(None, log)


def compile_shader_program(vertex_sources, fragment_sources):
    """Compile both stages and link them into a program.

    Parameters
    ----------
    vertex_sources, fragment_sources : sequence of str
        Ordered source fragments for each stage.

    Returns
    -------
    int
        OpenGL program handle.

    Raises
    ------
    ShaderError
        On any compile or link failure. No shader or program object is
        left behind.
    """
    vertex = compile_shader(ShaderStage.VERTEX, vertex_sources)
    try:
        fragment = compile_shader(ShaderStage.FRAGMENT, fragment_sources)
    except ShaderError:
        gl.glDeleteShader(vertex)
        raise
    return link_program(vertex, fragment)


def delete_program(program):
    """Delete a program object; handle 0 is ignored."""
    if program:
        gl.glDeleteProgram(program)


def check_gl_error(where):
    """Log pending OpenGL errors together with the call site.

    Errors are reported only; nothing in the package branches on them.

    Parameters
    ----------
    where : str
        Name of the operation that just ran, used in the log message.

    Returns
    -------
    list of int
        Error codes that were pending, empty when there were none.
    """
    errors = []
    for _ in range(_MAX_ERROR_POLLS):
        err = gl.glGetError()
        if err == gl.GL_NO_ERROR:
            break
        logger.error("%s: OpenGL error 0x%04x", where, int(err))
        errors.append(int(err))
    return errors
