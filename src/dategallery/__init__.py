"""Date-bucketed image gallery backend."""

from importlib import metadata as _metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("dategallery")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + ["__version__"])
