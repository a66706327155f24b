"""Version number."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shades")
except PackageNotFoundError:
    # Source checkout without `pip install -e .`
    __version__ = "0.1.0-dev"
