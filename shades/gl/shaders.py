"""Fixed GLSL sources wrapped around the user's fragment shader."""

VERTEX_SHADER = """#version 330 core

uniform mat4    u_pvm;

in vec2         in_vtx_pos;
in vec2         in_vtx_tex0;

out vec2        tex_coord;

void main()
{
    tex_coord = in_vtx_tex0;
    gl_Position = u_pvm * vec4(in_vtx_pos, 0.0, 1.0);
}
"""

# Declarations every user shader can rely on. Kept free of any function
# definition so that the user's line numbers stay close to the log output.
FRAGMENT_PREAMBLE = """#version 330 core
uniform sampler2D   u_tex0;
uniform sampler2D   u_tex1;
uniform sampler2D   u_tex2;
uniform sampler2D   u_tex3;
uniform vec2        u_tex_res[4];
uniform vec2        u_res;
uniform float       u_time;
uniform float       u_scale;

in vec2             tex_coord;
out vec4            out_color;

"""

# Leading newline: the user file may not end with one.
FRAGMENT_EPILOGUE = """
void main()
{
    vec2 coord = vec2(gl_FragCoord.x, u_res.y - gl_FragCoord.y) / u_scale;
    out_color = main_image(coord);
}
"""


def get_quad_shaders(user_source):
    """Return the ordered source lists for the preview program.

    The user's file is not merged with the fixed parts: each stage gets a
    list of independent strings that is handed to ``glShaderSource`` as is.

    Parameters
    ----------
    user_source : str
        Raw text of the user's fragment shader. It must define
        ``vec4 main_image(vec2 coord)``.

    Returns
    -------
    vertex_sources, fragment_sources : tuple[list[str], list[str]]
        Source fragments for the vertex and the fragment stage.
    """
    return [VERTEX_SHADER], [FRAGMENT_PREAMBLE, user_source, FRAGMENT_EPILOGUE]
