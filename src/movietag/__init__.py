"""Top-level package for movietag."""

from importlib import metadata as _metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("movietag")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
