"""Process execution and file primitives."""

from .files import atomic_write_text
from .process import ProcessError, run, run_attached

__all__ = ["ProcessError", "atomic_write_text", "run", "run_attached"]
