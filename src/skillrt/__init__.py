"""skillrt: rule-driven skill activation engine with a cross-process session store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skillrt")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
