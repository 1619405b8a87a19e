"""Client IP resolution from proxy forwarding headers.

Trust boundary: the headers below are taken at face value. Behind a real
reverse proxy or CDN that overwrites them this yields the visitor's IP;
when the app is reachable directly, any client can set them and spoof the
recorded address. Deploy behind a proxy that strips inbound copies.
"""

from starlette.requests import HTTPConnection


# Checked in order; the first non-empty header wins.
FORWARDING_HEADERS: tuple[str, ...] = (
    "cf-connecting-ip",
    "client-ip",
    "x-forwarded-for",
    "x-forwarded",
    "x-cluster-client-ip",
    "forwarded-for",
    "forwarded",
)


def first_address(value: str) -> str:
    """Take the first entry of a comma-separated address list, trimmed."""
    return value.split(",", 1)[0].strip()


def resolve_client_ip(connection: HTTPConnection) -> str:
    """Resolve the caller's IP address.

    Args:
        connection: Incoming request or websocket connection.

    Returns:
        The first non-empty forwarding header value (first list entry),
        else the direct peer address, else an empty string.
    """
    for header in FORWARDING_HEADERS:
        value = connection.headers.get(header)
        if value:
            return first_address(value)

    if connection.client and connection.client.host:
        return connection.client.host.strip()

    return ""
