# src/lcal/core/errors.py
from __future__ import annotations

from typing import Literal

LcalErrorKind = Literal["invalid_input", "out_of_range"]


class LcalError(Exception):
    """Base error for the recurrence core."""

    kind: LcalErrorKind

    def __init__(self, kind: LcalErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class InvalidInputError(LcalError, ValueError):
    """The lunar spec (or an argument) has no solar counterpart in the relevant year."""

    def __init__(self, message: str) -> None:
        super().__init__("invalid_input", message)


class OutOfRangeError(LcalError, ValueError):
    """A year or scanned date lies outside the supported span of the lunisolar converter."""

    def __init__(self, message: str) -> None:
        super().__init__("out_of_range", message)
