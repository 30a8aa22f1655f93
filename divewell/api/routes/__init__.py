"""HTTP routers."""

from . import generation, integrity

__all__ = ["generation", "integrity"]
