"""Domain probe for bearer token validation.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class JWTValidatorProbe(Protocol):
    """Domain probe for bearer token validation."""

    def token_accepted(self, user_id: str, tenant_id: str | None) -> None:
        """Record that a token passed every check."""
        ...

    def token_rejected(self, reason: str) -> None:
        """Record that a token failed a check."""
        ...

    def signing_keys_refreshed(self, key_count: int) -> None:
        """Record that the issuer's JWKS was (re)loaded."""
        ...

    def signing_keys_reused(self) -> None:
        """Record that a cached JWKS was still fresh."""
        ...

    def signing_keys_unavailable(self, error: str) -> None:
        """Record that the issuer's JWKS could not be loaded."""
        ...

    def with_context(self, context: ObservationContext) -> JWTValidatorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultJWTValidatorProbe:
    """Default implementation of JWTValidatorProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultJWTValidatorProbe:
        return DefaultJWTValidatorProbe(logger=self._logger, context=context)

    def token_accepted(self, user_id: str, tenant_id: str | None) -> None:
        self._logger.debug(
            "bearer_token_accepted",
            user_id=user_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def token_rejected(self, reason: str) -> None:
        self._logger.warning(
            "bearer_token_rejected",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def signing_keys_refreshed(self, key_count: int) -> None:
        self._logger.info(
            "oidc_signing_keys_refreshed",
            key_count=key_count,
            **self._get_context_kwargs(),
        )

    def signing_keys_reused(self) -> None:
        self._logger.debug(
            "oidc_signing_keys_reused",
            **self._get_context_kwargs(),
        )

    def signing_keys_unavailable(self, error: str) -> None:
        self._logger.error(
            "oidc_signing_keys_unavailable",
            error=error,
            **self._get_context_kwargs(),
        )
