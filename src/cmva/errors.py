"""Exceptions raised by the CMVA solver and its validation routines."""

from __future__ import annotations

from typing import Optional


class CMVAError(Exception):
    """Base class for every error raised by the package."""


class InvalidArgumentError(CMVAError, ValueError):
    """A network parameter has the wrong shape, sign or type."""

    def __init__(self, parameter: str, message: str):
        super().__init__(f"{parameter}: {message}")
        self.parameter = parameter


class InvalidVisitRatioError(InvalidArgumentError):
    """The load-dependent center is never visited, so V cannot be rescaled."""


class NumericalDegeneracyError(CMVAError, ArithmeticError):
    """A zero or non-finite divisor showed up inside a recursion."""

    def __init__(self, message: str, n: Optional[int] = None, t: Optional[int] = None):
        where = ""
        if n is not None:
            where = f" (n={n}" + (f", t={t})" if t is not None else ")")
        super().__init__(message + where)
        self.n = n
        self.t = t
