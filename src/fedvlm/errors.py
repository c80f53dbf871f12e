"""Exception hierarchy for fedvlm."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class FedVLMError(Exception):
    """Base exception for all fedvlm errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(FedVLMError):
    """Configuration validation or resolution failed."""


class QueryError(FedVLMError):
    """A search term could not be turned into a query key."""


class InternalError(FedVLMError):
    """A fedvlm internal error (bug) or invariant violation."""


class TransportError(FedVLMError):
    """Fetching a federated response failed.

    Covers network failures, non-2xx statuses and bodies that are not JSON.
    ``retryable`` tells the caller whether a later attempt may succeed; the
    orchestrator itself never retries.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        retryable: bool | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.retryable = retryable
        self.url = url


class MalformedPayloadError(FedVLMError):
    """A response payload (or one node's entry in it) has the wrong shape."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        peer_node_id: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.peer_node_id = peer_node_id
        self.field = field


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
