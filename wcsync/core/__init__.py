"""Core value types shared by every layer."""

from .errors import ExitCode
from .result import Err, Ok, Result

__all__ = [
    "Err",
    "ExitCode",
    "Ok",
    "Result",
]
