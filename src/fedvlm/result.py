"""Result primitives for per-node parsing.

One malformed node must not take down a whole aggregate, so parsing returns
``Success`` or ``Failure`` values instead of raising.
"""

from __future__ import annotations

import dataclasses
import typing

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure")


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successfully parsed value."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failed parse, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]
