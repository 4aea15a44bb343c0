"""Domain probe for caller identification.

Captures how a request's bearer token became (or failed to become) a
``CallerIdentity``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AuthenticationProbe(Protocol):
    """Domain probe for caller identification."""

    def anonymous_request(self) -> None:
        """Record that a request carried no bearer token."""
        ...

    def caller_identified(
        self,
        user_id: str,
        username: str,
        tenant_id: str | None,
        role: str | None,
    ) -> None:
        """Record that a bearer token identified a caller."""
        ...

    def caller_rejected(self, reason: str) -> None:
        """Record that a bearer token was refused."""
        ...

    def with_context(self, context: ObservationContext) -> AuthenticationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAuthenticationProbe:
    """Default implementation of AuthenticationProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultAuthenticationProbe:
        return DefaultAuthenticationProbe(logger=self._logger, context=context)

    def anonymous_request(self) -> None:
        self._logger.debug("caller_anonymous", **self._get_context_kwargs())

    def caller_identified(
        self,
        user_id: str,
        username: str,
        tenant_id: str | None,
        role: str | None,
    ) -> None:
        self._logger.info(
            "caller_identified",
            user_id=user_id,
            username=username,
            tenant_id=tenant_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def caller_rejected(self, reason: str) -> None:
        self._logger.warning(
            "caller_rejected",
            reason=reason,
            **self._get_context_kwargs(),
        )
