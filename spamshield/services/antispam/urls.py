"""
SpamShield - URL Extraction & Domain Classification
===================================================

Pulls http(s) URLs out of message text and rates each host as trusted
or suspicious.

Policy, in order:
1. Static deny-list hit (shorteners, invites, phishing targets) -> suspicious
2. Trust list configured -> suspicious unless the host matches an entry
3. Otherwise: very short hosts or disposable TLDs -> suspicious

A URL whose host cannot be parsed, or holds characters no valid host
can contain (e.g. the trailing `>` of `<https://...>`), is suspicious.
"""

from typing import List, Optional, Sequence
from urllib.parse import urlsplit

from .constants import (
    DISPOSABLE_DOMAIN_MARKERS,
    FORBIDDEN_HOST_CHARS,
    MIN_DOMAIN_LENGTH,
    SUSPICIOUS_DOMAINS,
    URL_PATTERN,
)
from .models import UrlInfo


# =============================================================================
# Domain Classification
# =============================================================================

def is_suspicious_domain(hostname: str, trusted_domains: Optional[Sequence[str]] = None) -> bool:
    """
    Check if a hostname looks like spam/phishing.

    Args:
        hostname: Host part of a URL.
        trusted_domains: Allow-list; when non-empty it replaces the
            length/TLD heuristics for hosts not on the deny-list.

    Returns:
        True if the host should count as a suspicious link.
    """
    domain = hostname.lower()

    if any(suspicious in domain for suspicious in SUSPICIOUS_DOMAINS):
        return True

    if trusted_domains:
        return not any(trusted.lower() in domain for trusted in trusted_domains)

    if len(domain) < MIN_DOMAIN_LENGTH:
        return True

    return any(marker in domain for marker in DISPOSABLE_DOMAIN_MARKERS)


def _parse_hostname(url: str) -> Optional[str]:
    """Return the URL's host, or None when it cannot be parsed."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        _ = parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if not hostname or any(char in FORBIDDEN_HOST_CHARS for char in hostname):
        return None
    return hostname


# =============================================================================
# Extraction
# =============================================================================

def extract_urls(content: str, trusted_domains: Optional[Sequence[str]] = None) -> List[UrlInfo]:
    """
    Extract and classify every http(s) URL in message text.

    Args:
        content: Raw message content.
        trusted_domains: Current trust list.

    Returns:
        UrlInfo per match, in order of appearance.
    """
    if not content:
        return []

    urls = []
    for raw in URL_PATTERN.findall(content):
        hostname = _parse_hostname(raw)
        if hostname is None:
            urls.append(UrlInfo(raw_text=raw, domain=raw, is_suspicious=True))
            continue
        urls.append(UrlInfo(
            raw_text=raw,
            domain=hostname.lower(),
            is_suspicious=is_suspicious_domain(hostname, trusted_domains),
        ))
    return urls


__all__ = [
    "extract_urls",
    "is_suspicious_domain",
]
