"""Target address safety policy.

Decides whether a long address may be stored as a redirect target. The check
is pure: it never resolves DNS or opens sockets, so the same input and the
same ``strict`` flag always produce the same verdict.

Decision Diagram: validate_target()
====================================
::
    ┌─────────────┐
    │   target    │
    └──────┬──────┘
           ▼
    ┌─────────────┐  no   ┌──────────────────┐
    │ has scheme? ├──────►│ MALFORMED        │
    └──────┬──────┘       └──────────────────┘
           ▼
    ┌─────────────┐  no   ┌──────────────────┐
    │ http/https? ├──────►│ SCHEME_NOT_ALLOWED│
    └──────┬──────┘       └──────────────────┘
           ▼
    ┌─────────────┐  no   ┌──────────────────┐
    │ well-formed ├──────►│ MALFORMED        │
    │ URL + host? │       └──────────────────┘
    └──────┬──────┘
           ▼
    ┌─────────────┐  no   ┌──────────────────┐
    │  strict?    ├──────►│ OK               │
    └──────┬──────┘       └──────────────────┘
           ▼
    ┌─────────────┐  yes  ┌──────────────────┐
    │ loopback or ├──────►│ LOOPBACK_HOST /  │
    │ private IP? │       │ PRIVATE_NETWORK  │
    └──────┬──────┘       └──────────────────┘
           ▼
          OK

Key Behaviours
===============
- Only ``http`` and ``https`` are accepted, in every mode. ``javascript:``,
  ``data:``, ``file:``, ``vbscript:``, ``ftp:`` and the rest fail the same way.
- Loopback names and addresses (``localhost`` and its subdomains, 127.0.0.0/8,
  ``0.0.0.0``, ``::1``) and the private IPv4 ranges 10/8, 172.16/12 and
  192.168/16 are refused only when ``strict`` is true.
- IPv4-mapped IPv6 hosts are judged by their embedded IPv4 address.
- Host matching is lexical: names are never resolved.
"""

from dataclasses import dataclass
from ipaddress import IPv4Address, IPv6Address, ip_address, ip_network
from urllib.parse import urlsplit

import validators

from shortlinks.enums import TargetRejection

__all__ = ["ALLOWED_SCHEMES", "TargetVerdict", "validate_target"]

ALLOWED_SCHEMES = frozenset({"http", "https"})
LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1"})
PRIVATE_NETWORKS = (
    ip_network("10.0.0.0/8"),
    ip_network("172.16.0.0/12"),
    ip_network("192.168.0.0/16"),
)


@dataclass(frozen=True)
class TargetVerdict:
    """Outcome of a safety check; ``reason`` is None when the target is accepted."""

    reason: TargetRejection | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None


ACCEPTED = TargetVerdict()


def validate_target(target: str, strict: bool) -> TargetVerdict:
    """Check ``target`` against the scheme allow-list and, if strict, the host policy.

    Args:
        target: Candidate absolute address.
        strict: Refuse loopback and private-network hosts as well.

    Returns:
        TargetVerdict: ``ok`` is True when the target may be stored.
    """
    if not target or not target.strip():
        return TargetVerdict(TargetRejection.EMPTY)

    try:
        parts = urlsplit(target)
        hostname = parts.hostname
    except ValueError:
        return TargetVerdict(TargetRejection.MALFORMED)

    if not parts.scheme:
        return TargetVerdict(TargetRejection.MALFORMED)
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return TargetVerdict(TargetRejection.SCHEME_NOT_ALLOWED)
    if not hostname or not validators.url(target, simple_host=True, strict_query=False):
        return TargetVerdict(TargetRejection.MALFORMED)

    if strict:
        rejection = _host_rejection(hostname)
        if rejection is not None:
            return TargetVerdict(rejection)
    return ACCEPTED


def _host_rejection(hostname: str) -> TargetRejection | None:
    host = hostname.lower().rstrip(".")
    if host in LOOPBACK_HOSTS or host.endswith(".localhost"):
        return TargetRejection.LOOPBACK_HOST

    try:
        address: IPv4Address | IPv6Address = ip_address(host)
    except ValueError:
        return None

    if isinstance(address, IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    if address.is_loopback or address.is_unspecified:
        return TargetRejection.LOOPBACK_HOST
    if isinstance(address, IPv4Address) and any(address in network for network in PRIVATE_NETWORKS):
        return TargetRejection.PRIVATE_NETWORK
    return None
