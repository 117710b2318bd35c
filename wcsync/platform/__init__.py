"""Operating-system seams (subprocess execution)."""

from .process import ProcessError, run

__all__ = ["ProcessError", "run"]
