"""Configuration and system-info helpers (top-level module)."""

import os
import platform
import re
import sys
from functools import partial
from importlib.metadata import requires, version
from typing import IO, Callable, Optional

import psutil

# Extras listed by ``sys_info(developer=True)``.
_EXTRAS = ("test",)


def sys_info(fid: Optional[IO] = None, developer: bool = False):
    """Print the system information for debugging.

    Parameters
    ----------
    fid : file-like, default=None
        The file to write to, passed to :func:`print`.
        Can be None to use :data:`sys.stdout`.
    developer : bool, default=False
        If True, display information about optional dependencies.
    """
    ljust = 26
    out = partial(print, end="", file=fid)
    package = __package__.split(".")[0]

    out("Platform:".ljust(ljust) + platform.platform() + "\n")
    out("Python:".ljust(ljust) + sys.version.replace("\n", " ") + "\n")
    out("Executable:".ljust(ljust) + sys.executable + "\n")
    out("CPU:".ljust(ljust) + platform.processor() + "\n")
    out("Logical cores:".ljust(ljust) + str(psutil.cpu_count(True)) + "\n")
    out("RAM:".ljust(ljust))
    out(f"{psutil.virtual_memory().total / float(2 ** 30):0.1f} GB\n")

    # Display / GL platform selection, the usual suspects when no window opens
    out("\nDisplay info\n")
    for var in ("DISPLAY", "WAYLAND_DISPLAY", "PYOPENGL_PLATFORM"):
        out(f"{var}:".ljust(ljust) + os.environ.get(var, "Not set.") + "\n")

    out("\nDependencies info\n")
    try:
        pkg_version = version(package)
    except Exception:
        pkg_version = "Not installed."
    out(f"{package}:".ljust(ljust) + pkg_version + "\n")

    raw_requires = _requirements(package)
    dependencies = [elt.split(";")[0].rstrip() for elt in raw_requires if "extra" not in elt]
    _list_dependencies_info(out, ljust, dependencies)

    if developer:
        for key in _EXTRAS:
            dependencies = [
                elt.split(";")[0].rstrip()
                for elt in raw_requires
                if f"extra == '{key}'" in elt or f'extra == "{key}"' in elt
            ]
            if len(dependencies) == 0:
                continue
            out(f"\nOptional '{key}' info\n")
            _list_dependencies_info(out, ljust, dependencies)


def _requirements(package: str) -> list[str]:
    """Return the declared requirements of ``package``, empty if not installed."""
    try:
        return requires(package) or []
    except Exception:
        return []


def _list_dependencies_info(out: Callable, ljust: int, dependencies: list[str]):
    """List dependencies names and versions.

    Parameters
    ----------
    out : Callable
        output function
    ljust : int
         length of returned string
    dependencies : List[str]
        list of dependencies
    """
    for dep in dependencies:
        # strip version specifiers and extras, e.g. "PyOpenGL>=3.1" or "pkg[x]"
        dep = re.split(r"[\s\[<>=!~;]", dep, maxsplit=1)[0]
        try:
            version_ = version(dep)
        except Exception:
            version_ = "Not found."
        out(f"{dep}:".ljust(ljust) + version_ + "\n")
