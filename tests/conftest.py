"""Shared fixtures: a recording stand-in for the ``OpenGL.GL`` module.

The GL-facing modules all access OpenGL through a module-level ``gl``
name. The ``fake_gl`` fixture swaps that name for :class:`FakeGL`, which
keeps just enough object state to emulate a driver: shader objects with a
toy compiler, programs with uniform/attribute tables, textures, buffers and
vertex arrays. Every call is recorded in ``fake.calls`` so tests can check
ordering.
"""

import re

import pytest

import shades  # noqa: F401  selects the PyOpenGL platform before OpenGL.GL is imported

# Modules whose ``gl`` attribute is replaced by the fixture.
GL_MODULES = (
    "shades.gl.utils",
    "shades.gl.textures",
    "shades.gl.quad",
    "shades.gl.uniforms",
    "shades.render",
    "shades.reload",
)

_UNIFORM = re.compile(r"\buniform\s+\w+\s+(\w+)")
_ATTRIBUTE = re.compile(r"\bin\s+\w+\s+(in_\w+)")
_MAIN_IMAGE = re.compile(r"\bvec4\s+main_image\s*\(")


class FakeGL:
    """Minimal emulation of the OpenGL entry points used by shades."""

    GL_FALSE = 0
    GL_TRUE = 1
    GL_NO_ERROR = 0
    GL_INVALID_OPERATION = 0x0502
    GL_TRIANGLES = 0x0004
    GL_UNSIGNED_BYTE = 0x1401
    GL_UNSIGNED_INT = 0x1405
    GL_FLOAT = 0x1406
    GL_RGB = 0x1907
    GL_RGBA = 0x1908
    GL_NEAREST = 0x2600
    GL_TEXTURE_MAG_FILTER = 0x2800
    GL_TEXTURE_MIN_FILTER = 0x2801
    GL_TEXTURE_WRAP_S = 0x2802
    GL_TEXTURE_WRAP_T = 0x2803
    GL_REPEAT = 0x2901
    GL_TEXTURE_2D = 0x0DE1
    GL_UNPACK_ALIGNMENT = 0x0CF5
    GL_DEPTH_BUFFER_BIT = 0x0100
    GL_COLOR_BUFFER_BIT = 0x4000
    GL_TEXTURE0 = 0x84C0
    GL_ARRAY_BUFFER = 0x8892
    GL_ELEMENT_ARRAY_BUFFER = 0x8893
    GL_STATIC_DRAW = 0x88E4
    GL_FRAGMENT_SHADER = 0x8B30
    GL_VERTEX_SHADER = 0x8B31
    GL_COMPILE_STATUS = 0x8B81
    GL_LINK_STATUS = 0x8B82
    GL_INFO_LOG_LENGTH = 0x8B84

    def __init__(self):
        self.calls = []
        self.errors = []
        self._next = 1
        self.shaders = {}
        self.programs = {}
        self.textures = {}
        self.buffers = set()
        self.vertex_arrays = set()
        self.bound_program = 0
        self.bound_vertex_array = 0
        self.bound_buffers = {}
        self.active_unit = 0
        self.unit_textures = {}
        self.buffer_data = {}
        self.uniform_values = {}

    # -- bookkeeping --------------------------------------------------

    def _record(self, name, *args):
        self.calls.append((name, args))

    def _new_id(self):
        handle = self._next
        self._next += 1
        return handle

    def names(self):
        """Names of all calls so far, in order."""
        return [name for name, _ in self.calls]

    def calls_to(self, name):
        return [args for n, args in self.calls if n == name]

    def live_shaders(self):
        return [h for h, s in self.shaders.items() if not s["deleted"]]

    def live_programs(self):
        return [h for h, p in self.programs.items() if not p["deleted"]]

    def live_textures(self):
        return [h for h, t in self.textures.items() if not t["deleted"]]

    # -- shaders ------------------------------------------------------

    def glCreateShader(self, shader_type):
        handle = self._new_id()
        self._record("glCreateShader", shader_type)
        self.shaders[handle] = {
            "type": shader_type, "sources": [], "compiled": False, "log": "", "deleted": False,
        }
        return handle

    def glShaderSource(self, shader, sources):
        self._record("glShaderSource", shader, sources)
        self.shaders[shader]["sources"] = list(sources)

    def glCompileShader(self, shader):
        self._record("glCompileShader", shader)
        state = self.shaders[shader]
        text = "".join(state["sources"])
        if "#error" in text or text.count("{") != text.count("}"):
            state["log"] = "0:12(1): error: syntax error, unexpected end of file\n"
        elif state["type"] == self.GL_FRAGMENT_SHADER and not _MAIN_IMAGE.search(text):
            state["log"] = "0:30(16): error: no function with name 'main_image'\n"
        else:
            state["log"] = ""
            state["compiled"] = True

    def glGetShaderiv(self, shader, pname):
        self._record("glGetShaderiv", shader, pname)
        state = self.shaders[shader]
        if pname == self.GL_COMPILE_STATUS:
            return self.GL_TRUE if state["compiled"] else self.GL_FALSE
        if pname == self.GL_INFO_LOG_LENGTH:
            return len(state["log"]) + 1 if state["log"] else 0
        raise AssertionError(f"unexpected pname {pname}")

    def glGetShaderInfoLog(self, shader):
        self._record("glGetShaderInfoLog", shader)
        return self.shaders[shader]["log"].encode() + b"\x00"

    def glDeleteShader(self, shader):
        self._record("glDeleteShader", shader)
        self.shaders[shader]["deleted"] = True

    # -- programs -----------------------------------------------------

    def glCreateProgram(self):
        handle = self._new_id()
        self._record("glCreateProgram")
        self.programs[handle] = {
            "shaders": [], "linked": False, "log": "", "deleted": False,
            "uniforms": {}, "attributes": {},
        }
        return handle

    def glAttachShader(self, program, shader):
        self._record("glAttachShader", program, shader)
        self.programs[program]["shaders"].append(shader)

    def glLinkProgram(self, program):
        self._record("glLinkProgram", program)
        state = self.programs[program]
        stages = [self.shaders[s] for s in state["shaders"]]
        if not all(s["compiled"] for s in stages):
            state["log"] = "error: linking with uncompiled shader\n"
            return
        text = "".join("".join(s["sources"]) for s in stages)
        uniforms = sorted(set(_UNIFORM.findall(text)))
        attributes = sorted(set(_ATTRIBUTE.findall(text)))
        state["uniforms"] = {name: i for i, name in enumerate(uniforms)}
        state["attributes"] = {name: i for i, name in enumerate(attributes)}
        state["linked"] = True

    def glGetProgramiv(self, program, pname):
        self._record("glGetProgramiv", program, pname)
        state = self.programs[program]
        if pname == self.GL_LINK_STATUS:
            return self.GL_TRUE if state["linked"] else self.GL_FALSE
        if pname == self.GL_INFO_LOG_LENGTH:
            return len(state["log"]) + 1 if state["log"] else 0
        raise AssertionError(f"unexpected pname {pname}")

    def glGetProgramInfoLog(self, program):
        self._record("glGetProgramInfoLog", program)
        return self.programs[program]["log"].encode()

    def glDeleteProgram(self, program):
        self._record("glDeleteProgram", program)
        self.programs[program]["deleted"] = True

    def glUseProgram(self, program):
        self._record("glUseProgram", program)
        if program:
            assert not self.programs[program]["deleted"], "using a deleted program"
        self.bound_program = program

    def glGetUniformLocation(self, program, name):
        self._record("glGetUniformLocation", program, name)
        return self.programs[program]["uniforms"].get(name, -1)

    def glGetAttribLocation(self, program, name):
        self._record("glGetAttribLocation", program, name)
        return self.programs[program]["attributes"].get(name, -1)

    def _set_uniform(self, name, location, *values):
        self._record(name, location, *values)
        assert self.bound_program, f"{name} without a bound program"
        self.uniform_values[location] = values

    def glUniform1i(self, location, value):
        self._set_uniform("glUniform1i", location, value)

    def glUniform1f(self, location, value):
        self._set_uniform("glUniform1f", location, value)

    def glUniform2f(self, location, x, y):
        self._set_uniform("glUniform2f", location, x, y)

    def glUniform2fv(self, location, count, values):
        self._set_uniform("glUniform2fv", location, count, values)

    def glUniformMatrix4fv(self, location, count, transpose, values):
        self._set_uniform("glUniformMatrix4fv", location, count, transpose, values)

    # -- textures -----------------------------------------------------

    def glGenTextures(self, count):
        assert count == 1
        handle = self._new_id()
        self._record("glGenTextures", count)
        self.textures[handle] = {"deleted": False, "params": {}, "image": None}
        return handle

    def glDeleteTextures(self, handles):
        self._record("glDeleteTextures", list(handles))
        for handle in handles:
            self.textures[handle]["deleted"] = True

    def glBindTexture(self, target, texture):
        self._record("glBindTexture", target, texture)
        self.unit_textures[self.active_unit] = texture

    def glActiveTexture(self, unit):
        self._record("glActiveTexture", unit)
        self.active_unit = unit - self.GL_TEXTURE0

    def glTexParameteri(self, target, pname, value):
        self._record("glTexParameteri", target, pname, value)
        self.textures[self.unit_textures[self.active_unit]]["params"][pname] = value

    def glTexImage2D(self, target, level, internal, width, height, border, fmt, dtype, data):
        self._record("glTexImage2D", target, level, internal, width, height, border, fmt, dtype)
        texture = self.textures[self.unit_textures[self.active_unit]]
        texture["image"] = (internal, width, height, fmt, None if data is None else len(data))

    # -- buffers and vertex arrays -------------------------------------

    def glGenBuffers(self, count):
        assert count == 1
        handle = self._new_id()
        self._record("glGenBuffers", count)
        self.buffers.add(handle)
        return handle

    def glDeleteBuffers(self, count, handles):
        self._record("glDeleteBuffers", count, list(handles))
        self.buffers.difference_update(handles)

    def glBindBuffer(self, target, buffer):
        self._record("glBindBuffer", target, buffer)
        self.bound_buffers[target] = buffer

    def glBufferData(self, target, size, data, usage):
        self._record("glBufferData", target, size)
        self.buffer_data[self.bound_buffers[target]] = data.copy()

    def glGenVertexArrays(self, count):
        assert count == 1
        handle = self._new_id()
        self._record("glGenVertexArrays", count)
        self.vertex_arrays.add(handle)
        return handle

    def glDeleteVertexArrays(self, count, handles):
        self._record("glDeleteVertexArrays", count, list(handles))
        self.vertex_arrays.difference_update(handles)

    def glBindVertexArray(self, vao):
        self._record("glBindVertexArray", vao)
        self.bound_vertex_array = vao

    def glDrawElements(self, mode, count, dtype, indices):
        self._record("glDrawElements", mode, count, dtype, indices)
        assert self.bound_program and not self.programs[self.bound_program]["deleted"]

    # -- errors -------------------------------------------------------

    def glGetError(self):
        self._record("glGetError")
        return self.errors.pop(0) if self.errors else self.GL_NO_ERROR

    def __getattr__(self, name):
        # Remaining state setters (glViewport, glClear, glEnableVertexAttribArray,
        # ...) only need to be recorded.
        if not name.startswith("gl"):
            raise AttributeError(name)

        def record(*args):
            self._record(name, *args)

        return record


@pytest.fixture
def fake_gl(monkeypatch):
    """Replace ``OpenGL.GL`` in every GL-facing shades module by a FakeGL."""
    import importlib  # noqa: PLC0415

    fake = FakeGL()
    for module_name in GL_MODULES:
        module = importlib.import_module(module_name)
        monkeypatch.setattr(module, "gl", fake)
    return fake


@pytest.fixture
def shader_file(tmp_path):
    """Write a valid user shader and return its path."""
    path = tmp_path / "effect.glsl"
    path.write_text(
        "vec4 main_image(vec2 coord) {\n"
        "    vec4 c = texture(u_tex0, coord / u_tex_res[0]);\n"
        "    return vec4(c.rgb, 1.0) * (0.5 + 0.5 * sin(u_time)) + vec4(u_res, u_scale, 0.0) * 0.0;\n"
        "}\n"
    )
    return path


@pytest.fixture
def image_files(tmp_path):
    """Write a 3-channel, a 4-channel and a 1-channel PNG; return their paths."""
    from PIL import Image  # noqa: PLC0415

    rgb = tmp_path / "rgb.png"
    Image.new("RGB", (5, 3), (255, 0, 0)).save(rgb)
    rgba = tmp_path / "rgba.png"
    Image.new("RGBA", (8, 6), (0, 255, 0, 128)).save(rgba)
    gray = tmp_path / "gray.png"
    Image.new("L", (4, 4), 200).save(gray)
    return {"rgb": rgb, "rgba": rgba, "gray": gray}


# ---------------------------------------------------------------------------
# Real OpenGL context
# ---------------------------------------------------------------------------

# Size of the default framebuffer of the ``gl_context`` fixture.
GL_CONTEXT_SIZE = (64, 48)

_EGL_EXTENSIONS = 0x3055
_EGL_SURFACE_TYPE = 0x3033
_EGL_PBUFFER_BIT = 0x0001
_EGL_RENDERABLE_TYPE = 0x3040
_EGL_OPENGL_BIT = 0x0008
_EGL_NONE = 0x3038
_EGL_WIDTH = 0x3057
_EGL_HEIGHT = 0x3056
_EGL_OPENGL_API = 0x30A2
_EGL_CONTEXT_MAJOR_VERSION = 0x3098
_EGL_CONTEXT_MINOR_VERSION = 0x30FB
_EGL_PLATFORM_DEVICE_EXT = 0x313F


def _read_rgba(width, height):
    """Read the bound read framebuffer as an (height, width, 4) array, top row first."""
    import numpy as np  # noqa: PLC0415
    import OpenGL.GL as gl  # noqa: PLC0415
    from PIL import Image  # noqa: PLC0415

    gl.glPixelStorei(gl.GL_PACK_ALIGNMENT, 1)
    buf = gl.glReadPixels(0, 0, width, height, gl.GL_RGBA, gl.GL_UNSIGNED_BYTE)
    img = Image.frombytes("RGBA", (width, height), bytes(buf))
    return np.asarray(img.transpose(Image.FLIP_TOP_BOTTOM))


class GLFWTestContext:
    """Invisible GLFW window whose context is current."""

    def __init__(self, width, height):
        import glfw  # noqa: PLC0415

        from shades.gl.window import init_window  # noqa: PLC0415

        self.window = init_window(width, height, "shades-test", visible=False)
        if not self.window:
            raise RuntimeError("could not create an invisible GLFW window")
        # HiDPI displays scale the framebuffer.
        self.size = tuple(glfw.get_framebuffer_size(self.window))

    def read_pixels(self):
        return _read_rgba(*self.size)

    def destroy(self):
        from shades.gl.window import terminate_context  # noqa: PLC0415

        terminate_context(self.window)
        self.window = None


class EGLTestContext:
    """Headless OpenGL 3.3 context: EGL pbuffer with an RGBA8 FBO bound.

    Raises
    ------
    RuntimeError
        If any EGL or framebuffer setup step fails.
    """

    def __init__(self, width, height):
        self.size = (width, height)
        self._libegl = None
        self._display = None
        self._surface = None
        self._context = None
        self.fbo = None
        self._rbo = None
        try:
            self._init_egl()
            self._make_current()
        except RuntimeError:
            self.destroy()
            raise

    def _get_ext_fn(self, name, restype, argtypes):
        import ctypes  # noqa: PLC0415

        addr = self._libegl.eglGetProcAddress(name.encode())
        if not addr:
            raise RuntimeError(f"eglGetProcAddress('{name}') returned NULL")
        return ctypes.CFUNCTYPE(restype, *argtypes)(addr)

    def _device_display(self):
        import ctypes  # noqa: PLC0415

        exts = self._libegl.eglQueryString(None, _EGL_EXTENSIONS) or b""
        if b"EGL_EXT_device_enumeration" not in exts or b"EGL_EXT_platform_base" not in exts:
            return None
        query_devices = self._get_ext_fn(
            "eglQueryDevicesEXT",
            ctypes.c_bool,
            [ctypes.c_int, ctypes.c_void_p, ctypes.POINTER(ctypes.c_int)],
        )
        platform_display = self._get_ext_fn(
            "eglGetPlatformDisplayEXT",
            ctypes.c_void_p,
            [ctypes.c_int, ctypes.c_void_p, ctypes.POINTER(ctypes.c_int)],
        )
        n = ctypes.c_int(0)
        if not query_devices(0, None, ctypes.byref(n)) or n.value == 0:
            return None
        devices = (ctypes.c_void_p * n.value)()
        query_devices(n.value, devices, ctypes.byref(n))
        no_attribs = (ctypes.c_int * 1)(_EGL_NONE)
        for dev in devices:
            dpy = platform_display(_EGL_PLATFORM_DEVICE_EXT, ctypes.c_void_p(dev), no_attribs)
            if dpy:
                return dpy
        return None

    def _init_egl(self):
        import ctypes  # noqa: PLC0415
        import ctypes.util  # noqa: PLC0415

        egl_name = ctypes.util.find_library("EGL") or "libEGL.so.1"
        try:
            libegl = ctypes.CDLL(egl_name)
        except OSError as e:
            raise RuntimeError(f"could not load {egl_name}") from e
        self._libegl = libegl

        libegl.eglGetProcAddress.restype = ctypes.c_void_p
        libegl.eglGetProcAddress.argtypes = [ctypes.c_char_p]
        libegl.eglQueryString.restype = ctypes.c_char_p
        libegl.eglQueryString.argtypes = [ctypes.c_void_p, ctypes.c_int]
        libegl.eglGetDisplay.restype = ctypes.c_void_p
        libegl.eglGetDisplay.argtypes = [ctypes.c_void_p]
        libegl.eglInitialize.restype = ctypes.c_bool
        libegl.eglInitialize.argtypes = [
            ctypes.c_void_p, ctypes.POINTER(ctypes.c_int), ctypes.POINTER(ctypes.c_int)
        ]
        libegl.eglBindAPI.restype = ctypes.c_bool
        libegl.eglBindAPI.argtypes = [ctypes.c_uint]
        libegl.eglChooseConfig.restype = ctypes.c_bool
        libegl.eglChooseConfig.argtypes = [
            ctypes.c_void_p, ctypes.POINTER(ctypes.c_int), ctypes.c_void_p,
            ctypes.c_int, ctypes.POINTER(ctypes.c_int),
        ]
        libegl.eglCreatePbufferSurface.restype = ctypes.c_void_p
        libegl.eglCreatePbufferSurface.argtypes = [
            ctypes.c_void_p, ctypes.c_void_p, ctypes.POINTER(ctypes.c_int)
        ]
        libegl.eglCreateContext.restype = ctypes.c_void_p
        libegl.eglCreateContext.argtypes = [
            ctypes.c_void_p, ctypes.c_void_p, ctypes.c_void_p, ctypes.POINTER(ctypes.c_int)
        ]
        libegl.eglMakeCurrent.restype = ctypes.c_bool
        libegl.eglMakeCurrent.argtypes = [ctypes.c_void_p] * 4
        libegl.eglDestroyContext.restype = ctypes.c_bool
        libegl.eglDestroyContext.argtypes = [ctypes.c_void_p, ctypes.c_void_p]
        libegl.eglDestroySurface.restype = ctypes.c_bool
        libegl.eglDestroySurface.argtypes = [ctypes.c_void_p, ctypes.c_void_p]
        libegl.eglTerminate.restype = ctypes.c_bool
        libegl.eglTerminate.argtypes = [ctypes.c_void_p]

        display = self._device_display() or libegl.eglGetDisplay(ctypes.c_void_p(0))
        if not display:
            raise RuntimeError("could not obtain an EGL display")
        major, minor = ctypes.c_int(0), ctypes.c_int(0)
        if not libegl.eglInitialize(display, ctypes.byref(major), ctypes.byref(minor)):
            raise RuntimeError("eglInitialize failed")
        self._display = display
        if not libegl.eglBindAPI(_EGL_OPENGL_API):
            raise RuntimeError("eglBindAPI(OpenGL) failed")

        cfg_attribs = (ctypes.c_int * 5)(
            _EGL_SURFACE_TYPE, _EGL_PBUFFER_BIT, _EGL_RENDERABLE_TYPE, _EGL_OPENGL_BIT, _EGL_NONE
        )
        configs = (ctypes.c_void_p * 1)()
        num_cfgs = ctypes.c_int(0)
        if not libegl.eglChooseConfig(
            display, cfg_attribs, configs, 1, ctypes.byref(num_cfgs)
        ) or num_cfgs.value == 0:
            raise RuntimeError("eglChooseConfig: no suitable config")

        pbuf_attribs = (ctypes.c_int * 5)(_EGL_WIDTH, 1, _EGL_HEIGHT, 1, _EGL_NONE)
        self._surface = libegl.eglCreatePbufferSurface(display, configs[0], pbuf_attribs)
        if not self._surface:
            raise RuntimeError("eglCreatePbufferSurface failed")
        ctx_attribs = (ctypes.c_int * 5)(
            _EGL_CONTEXT_MAJOR_VERSION, 3, _EGL_CONTEXT_MINOR_VERSION, 3, _EGL_NONE
        )
        self._context = libegl.eglCreateContext(display, configs[0], None, ctx_attribs)
        if not self._context:
            raise RuntimeError("eglCreateContext for OpenGL 3.3 failed")

    def _make_current(self):
        import OpenGL.GL as gl  # noqa: PLC0415

        if not self._libegl.eglMakeCurrent(
            self._display, self._surface, self._surface, self._context
        ):
            raise RuntimeError("eglMakeCurrent failed")
        # The pbuffer only satisfies eglMakeCurrent; frames go to the FBO.
        width, height = self.size
        self.fbo = gl.glGenFramebuffers(1)
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, self.fbo)
        self._rbo = gl.glGenRenderbuffers(1)
        gl.glBindRenderbuffer(gl.GL_RENDERBUFFER, self._rbo)
        gl.glRenderbufferStorage(gl.GL_RENDERBUFFER, gl.GL_RGBA8, width, height)
        gl.glFramebufferRenderbuffer(
            gl.GL_FRAMEBUFFER, gl.GL_COLOR_ATTACHMENT0, gl.GL_RENDERBUFFER, self._rbo
        )
        status = gl.glCheckFramebufferStatus(gl.GL_FRAMEBUFFER)
        if status != gl.GL_FRAMEBUFFER_COMPLETE:
            raise RuntimeError(f"FBO is not complete (status=0x{status:X})")
        gl.glViewport(0, 0, width, height)

    def read_pixels(self):
        import OpenGL.GL as gl  # noqa: PLC0415

        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, self.fbo)
        return _read_rgba(*self.size)

    def destroy(self):
        import OpenGL.GL as gl  # noqa: PLC0415

        libegl = self._libegl
        if self._context:
            if self.fbo:
                gl.glDeleteFramebuffers(1, [self.fbo])
            if self._rbo:
                gl.glDeleteRenderbuffers(1, [self._rbo])
            libegl.eglMakeCurrent(self._display, None, None, None)
            libegl.eglDestroyContext(self._display, self._context)
        if self._surface:
            libegl.eglDestroySurface(self._display, self._surface)
        if self._display:
            libegl.eglTerminate(self._display)
        self._context = self._surface = self._display = None


def _open_test_context(width, height):
    """Return a current test context, or raise RuntimeError naming each failure."""
    import os  # noqa: PLC0415

    reasons = []
    if os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"):
        try:
            return GLFWTestContext(width, height)
        except (ImportError, RuntimeError) as exc:
            reasons.append(f"glfw: {exc}")
    else:
        reasons.append("glfw: no display")
    if os.environ.get("PYOPENGL_PLATFORM") == "egl":
        try:
            return EGLTestContext(width, height)
        except RuntimeError as exc:
            reasons.append(f"egl: {exc}")
    else:
        reasons.append("egl: PyOpenGL is not using the EGL platform")
    raise RuntimeError("; ".join(reasons))


@pytest.fixture(scope="module")
def gl_context():
    """A current OpenGL 3.3 context with a small default render target.

    An invisible GLFW window is used when a display is available, an EGL
    pbuffer otherwise. Tests using it are skipped when neither works.
    """
    pytest.importorskip("OpenGL.GL")
    try:
        context = _open_test_context(*GL_CONTEXT_SIZE)
    except RuntimeError as exc:
        pytest.skip(f"No OpenGL context available: {exc}")
    yield context
    context.destroy()
