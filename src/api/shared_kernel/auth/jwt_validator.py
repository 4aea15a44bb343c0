"""Bearer token validation against the OIDC provider's signing keys.

Tokens are verified with the provider's JWKS (RS256, issuer, audience,
expiry). The caller's identity and application tenant are read from
configurable claims, so the same validator works with providers that put
the tenant under a custom claim name.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NoReturn

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from shared_kernel.single_flight import SingleFlight

if TYPE_CHECKING:
    from shared_kernel.auth.observability import JWTValidatorProbe

DEFAULT_JWKS_TTL_SECONDS = 24 * 60 * 60
JWKS_FETCH_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class TokenClaims:
    """Validated JWT claims.

    ``tenant_id`` is the application tenant the user is provisioned into;
    it is None for accounts that have not been assigned a tenant yet.
    """

    sub: str
    preferred_username: str | None
    email: str | None = None
    role: str | None = None
    tenant_id: str | None = None


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be accepted."""


def _optional_str(claims: dict[str, Any], name: str) -> str | None:
    value = claims.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _claims_rejection(error: JWTClaimsError) -> tuple[str, str]:
    """Map a claims error to (probe reason, caller message)."""
    text = str(error).lower()
    if "audience" in text:
        return "Invalid audience", "Invalid audience claim"
    if "issuer" in text:
        return "Invalid issuer", "Invalid issuer claim"
    return f"Claims error: {error}", f"Invalid token claims: {error}"


class JWTValidator:
    """Validates bearer tokens and extracts the caller's claims.

    The JWKS is fetched through the issuer's discovery document and kept
    for ``jwks_ttl_seconds``. Concurrent validations that find the keys
    missing or stale share one refresh.
    """

    def __init__(
        self,
        issuer_url: str,
        audience: str,
        probe: JWTValidatorProbe,
        user_id_claim: str = "sub",
        username_claim: str = "preferred_username",
        email_claim: str = "email",
        role_claim: str = "role",
        tenant_id_claim: str = "tenant_id",
        jwks_ttl_seconds: float = DEFAULT_JWKS_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._issuer_url = issuer_url.rstrip("/")
        self._audience = audience
        self._probe = probe
        self._user_id_claim = user_id_claim
        self._username_claim = username_claim
        self._email_claim = email_claim
        self._role_claim = role_claim
        self._tenant_id_claim = tenant_id_claim
        self._jwks_ttl_seconds = jwks_ttl_seconds
        self._clock = clock

        self._jwks: dict[str, Any] | None = None
        self._jwks_expires_at = 0.0
        self._refresh: SingleFlight[str, dict[str, Any]] = SingleFlight()

    async def validate_token(self, token: str) -> TokenClaims:
        """Verify ``token`` and return its claims.

        Raises:
            InvalidTokenError: If the token is malformed, expired, signed by
                an unknown key, issued for another audience or issuer, lacks
                the user ID claim, or the signing keys cannot be fetched.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            self._reject(f"Malformed token: {e}", f"Invalid token format: {e}", e)
        if not header:
            self._reject("Missing token header", "Invalid token: missing header")

        jwks = await self._signing_keys()

        try:
            claims = jwt.decode(
                token=token,
                key=jwks,
                algorithms=["RS256"],
                audience=self._audience,
                issuer=self._issuer_url,
            )
        except ExpiredSignatureError as e:
            self._reject("Token expired", "Token has expired", e)
        except JWTClaimsError as e:
            self._reject(*_claims_rejection(e), e)
        except JWTError as e:
            if "signature" in str(e).lower():
                self._reject("Invalid signature", "Invalid token signature", e)
            self._reject(f"JWT error: {e}", f"Invalid token: {e}", e)

        user_id = _optional_str(claims, self._user_id_claim)
        if user_id is None:
            self._reject(
                f"Missing {self._user_id_claim} claim",
                f"Missing required claim: {self._user_id_claim}",
            )

        token_claims = TokenClaims(
            sub=user_id,
            preferred_username=_optional_str(claims, self._username_claim),
            email=_optional_str(claims, self._email_claim),
            role=_optional_str(claims, self._role_claim),
            tenant_id=_optional_str(claims, self._tenant_id_claim),
        )
        self._probe.token_accepted(
            user_id=token_claims.sub, tenant_id=token_claims.tenant_id
        )
        return token_claims

    def _reject(
        self, reason: str, message: str, cause: Exception | None = None
    ) -> NoReturn:
        self._probe.token_rejected(reason=reason)
        raise InvalidTokenError(message) from cause

    async def _signing_keys(self) -> dict[str, Any]:
        if self._jwks is not None and self._clock() < self._jwks_expires_at:
            self._probe.signing_keys_reused()
            return self._jwks
        return await self._refresh.do(self._issuer_url, self._fetch_jwks)

    async def _fetch_jwks(self) -> dict[str, Any]:
        """Fetch the JWKS named by the issuer's discovery document.

        Raises:
            InvalidTokenError: If discovery or the JWKS request fails.
        """
        discovery_url = f"{self._issuer_url}/.well-known/openid-configuration"
        try:
            async with httpx.AsyncClient(timeout=JWKS_FETCH_TIMEOUT_SECONDS) as client:
                discovery = await client.get(discovery_url)
                discovery.raise_for_status()
                jwks_uri = discovery.json().get("jwks_uri")
                if not jwks_uri:
                    self._probe.signing_keys_unavailable(
                        error="Missing jwks_uri in OpenID configuration"
                    )
                    raise InvalidTokenError(
                        "OIDC provider missing jwks_uri in configuration"
                    )

                response = await client.get(jwks_uri)
                response.raise_for_status()
                jwks = response.json()
        except httpx.HTTPError as e:
            self._probe.signing_keys_unavailable(error=str(e))
            raise InvalidTokenError(
                f"Failed to fetch JWKS from OIDC provider: {e}"
            ) from e

        self._jwks = jwks
        self._jwks_expires_at = self._clock() + self._jwks_ttl_seconds
        self._probe.signing_keys_refreshed(key_count=len(jwks.get("keys", [])))
        return jwks
