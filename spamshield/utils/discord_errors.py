"""
Discord Error Logging
=====================

Uniform logging for HTTP failures raised by discord.py.

Usage:
    from spamshield.utils.discord_errors import log_http_error

    try:
        await member.add_roles(role, reason=reason)
    except discord.HTTPException as e:
        log_http_error(e, "Add Role", [("User", str(member.id))])
"""

from typing import List, Optional, Tuple

import discord

from spamshield.core.logger import logger


# HTTP status code descriptions for logging
HTTP_STATUS_DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def describe_http_error(e: discord.HTTPException) -> str:
    """Short 'status (description)' text for result values and replies."""
    status_desc = HTTP_STATUS_DESCRIPTIONS.get(e.status, "Unknown")
    return f"{e.status} ({status_desc})"


def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[List[Tuple[str, str]]] = None,
) -> None:
    """
    Log a Discord HTTPException with status details.

    Args:
        e: The HTTPException that occurred
        operation: Description of what operation failed
        context: Additional context tuples for logging [(key, value), ...]
    """
    retry_after = getattr(e, "retry_after", None)

    log_items = [
        ("Status", describe_http_error(e)),
        ("Error", str(e.text) if getattr(e, "text", None) else str(e)),
    ]

    if retry_after:
        log_items.append(("Retry After", f"{retry_after:.1f}s"))

    if context:
        log_items.extend(context)

    # Rate limits and permission denials are expected; anything else is an error
    if e.status == 429:
        logger.warning(f"🚦 {operation} Rate Limited", log_items)
    elif e.status == 403:
        logger.warning(f"🚫 {operation} Forbidden", log_items)
    elif e.status == 404:
        logger.warning(f"❓ {operation} Not Found", log_items)
    else:
        logger.error(f"❌ {operation} Failed", log_items)


__all__ = [
    "HTTP_STATUS_DESCRIPTIONS",
    "describe_http_error",
    "log_http_error",
]
