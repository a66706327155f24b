"""Attribute and uniform location lookup for the preview program.

Locations are resolved once per successful link and cached in a
:class:`LocationTable`. A name the linked program does not use (the
compiler strips unused uniforms) is stored as ``None``; setting it is a
silent no-op, so the render loop never special-cases missing uniforms.
"""

import OpenGL.GL as gl

from ..types import MAX_TEXTURES

ATTRIBUTE_NAMES = ("in_vtx_pos", "in_vtx_tex0")

SAMPLER_NAMES = tuple(f"u_tex{i}" for i in range(MAX_TEXTURES))

UNIFORM_NAMES = ("u_pvm", *SAMPLER_NAMES, "u_tex_res", "u_res", "u_time", "u_scale")


class LocationTable:
    """Resolved locations of one linked program.

    Parameters
    ----------
    attributes : dict
        Attribute name -> location, ``None`` when absent.
    uniforms : dict
        Uniform name -> location, ``None`` when absent.
    """

    def __init__(self, attributes, uniforms):
        self.attributes = dict(attributes)
        self.uniforms = dict(uniforms)

    def attribute(self, name):
        """Return the location of attribute ``name`` or ``None``."""
        return self.attributes.get(name)

    def uniform(self, name):
        """Return the location of uniform ``name`` or ``None``."""
        return self.uniforms.get(name)

    def set(self, name, setter, *args):
        """Call ``setter(location, *args)`` if uniform ``name`` is present.

        Parameters
        ----------
        name : str
            Uniform name.
        setter : callable
            A ``glUniform*`` function.
        *args
            Remaining arguments of ``setter`` after the location.

        Returns
        -------
        bool
            True if the uniform was set.
        """
        location = self.uniforms.get(name)
        if location is None:
            return False
        setter(location, *args)
        return True

    def __eq__(self, other):
        if not isinstance(other, LocationTable):
            return NotImplemented
        return self.attributes == other.attributes and self.uniforms == other.uniforms

    def __repr__(self):
        return f"LocationTable(attributes={self.attributes}, uniforms={self.uniforms})"


def _location(value):
    value = int(value)
    return None if value < 0 else value


def resolve_locations(program):
    """Query every attribute and uniform location the preview uses.

    Parameters
    ----------
    program : int
        Linked OpenGL program handle.

    Returns
    -------
    LocationTable
        Fresh table for ``program``.

    Raises
    ------
    ValueError
        If ``program`` is 0.
    """
    if not program:
        raise ValueError("Cannot resolve locations of program 0.")
    attributes = {name: _location(gl.glGetAttribLocation(program, name)) for name in ATTRIBUTE_NAMES}
    uniforms = {name: _location(gl.glGetUniformLocation(program, name)) for name in UNIFORM_NAMES}
    return LocationTable(attributes, uniforms)
