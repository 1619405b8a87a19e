"""Cross-origin access policy.

Decides which ``Access-Control-Allow-*`` headers a response carries, given
the request ``Origin`` and the configured allowed origins. The server never
rejects a request for its origin; without an allow-origin header the
browser blocks the response on the client side.
"""

from dataclasses import dataclass


WILDCARD = "*"

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, X-API-Key"


@dataclass(frozen=True)
class OriginPolicy:
    """Origin policy over an ordered list of allowed origins."""

    allowed_origins: tuple[str, ...]
    allow_credentials: bool = True

    @classmethod
    def from_list(cls, origins: list[str]) -> "OriginPolicy":
        """Build a policy from a parsed origins list."""
        return cls(allowed_origins=tuple(origins))

    @property
    def allows_all(self) -> bool:
        """Whether the wildcard entry is configured."""
        return WILDCARD in self.allowed_origins

    def allowed_origin(self, origin: str | None) -> str | None:
        """Return the value for ``Access-Control-Allow-Origin``, if any.

        With the wildcard and credentials, the requesting origin is echoed
        back because browsers refuse ``*`` on credentialed requests.
        """
        if not self.allowed_origins:
            return None

        origin = (origin or "").strip()

        if self.allows_all:
            if self.allow_credentials:
                return origin or WILDCARD
            return WILDCARD

        return origin if origin in self.allowed_origins else None

    def headers_for(self, origin: str | None) -> dict[str, str]:
        """Headers to add to a response for the given request origin."""
        allow_origin = self.allowed_origin(origin)
        if not allow_origin:
            return {}

        headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        if allow_origin != WILDCARD:
            headers["Vary"] = "Origin"
        return headers
