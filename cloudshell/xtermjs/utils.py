"""Helpers for accepting websocket upgrade requests."""


def requester_hostname(host):
    """Strip any port from a Host header value."""
    if ":" in host:
        return host.split(":")[0]
    return host


def check_origin(host, allowed_hostnames, logger):
    """Return whether the requesting host is among the allowed hostnames."""
    hostname = requester_hostname(host)
    if hostname in allowed_hostnames:
        return True
    logger.warn(
        "failed to find '%s' in the list of allowed hostnames ('%s')",
        hostname,
        "', '".join(allowed_hostnames),
    )
    return False