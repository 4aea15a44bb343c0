"""Caller identity dependencies.

Validates the bearer token of a request and exposes the caller as a
CallerIdentity. Missing credentials are not an error at this layer: the
optional dependency returns None and the tenant context resolver decides
how to answer.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2AuthorizationCodeBearer

from iam.application.observability import (
    AuthenticationProbe,
    DefaultAuthenticationProbe,
)
from infrastructure.settings import get_oidc_settings
from shared_kernel.auth import InvalidTokenError, JWTValidator
from shared_kernel.auth.observability import DefaultJWTValidatorProbe
from shared_kernel.middleware.tenant_context import CallerIdentity


def _create_oauth2_scheme() -> OAuth2AuthorizationCodeBearer:
    """Create OAuth2 security scheme for Swagger UI integration.

    Uses the OIDC issuer URL to configure authorization code flow endpoints.
    """
    issuer = get_oidc_settings().issuer_url

    return OAuth2AuthorizationCodeBearer(
        authorizationUrl=f"{issuer}/protocol/openid-connect/auth",
        tokenUrl=f"{issuer}/protocol/openid-connect/token",
        refreshUrl=f"{issuer}/protocol/openid-connect/token",
        scopes={
            "openid": "OpenID Connect",
            "profile": "User profile",
            "email": "User email",
        },
        auto_error=False,
    )


oauth2_scheme = _create_oauth2_scheme()


@lru_cache
def get_jwt_validator() -> JWTValidator:
    """Get cached JWT validator.

    A single instance is reused across requests so its JWKS cache is shared.
    """
    settings = get_oidc_settings()
    return JWTValidator(
        issuer_url=settings.issuer_url,
        audience=settings.audience,
        probe=DefaultJWTValidatorProbe(),
        user_id_claim=settings.user_id_claim,
        username_claim=settings.username_claim,
        email_claim=settings.email_claim,
        role_claim=settings.role_claim,
        tenant_id_claim=settings.tenant_id_claim,
    )


def get_authentication_probe() -> AuthenticationProbe:
    """Get AuthenticationProbe instance."""
    return DefaultAuthenticationProbe()


async def get_optional_caller(
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
    auth_probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
    token: Annotated[str | None, Depends(oauth2_scheme)] = None,
) -> CallerIdentity | None:
    """Return the caller for a bearer token, or None when no token was sent.

    Raises:
        HTTPException 401: If a token was sent but is invalid.
    """
    if token is None:
        auth_probe.anonymous_request()
        return None

    try:
        claims = await validator.validate_token(token)
    except InvalidTokenError as e:
        auth_probe.caller_rejected(reason=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    caller = CallerIdentity(
        user_id=claims.sub,
        username=claims.preferred_username or claims.sub,
        email=claims.email,
        role=claims.role,
        tenant_id=claims.tenant_id,
    )
    auth_probe.caller_identified(
        user_id=caller.user_id,
        username=caller.username,
        tenant_id=caller.tenant_id,
        role=caller.role,
    )
    return caller


async def get_current_caller(
    caller: Annotated[CallerIdentity | None, Depends(get_optional_caller)],
) -> CallerIdentity:
    """Return the authenticated caller.

    Raises:
        HTTPException 401: If the request carries no valid bearer token.
    """
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller
