"""
SpamShield - Configuration Module
=================================

Centralized configuration management with environment variable validation.

DESIGN:
    A single source of truth for all configuration, loaded from environment
    variables at startup.

    Key patterns:
    - Singleton via get_config() ensures one Config instance
    - Validation happens once at load time, not on every access
    - Anti-spam settings live in their own dataclass so the detection
      engine can be constructed from them without the bot token
    - Only `enabled` and `trusted_domains` change after startup
      (through operator commands)
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Set

from spamshield.core.constants import MAX_TIMEOUT_MS


# =============================================================================
# Anti-Spam Configuration
# =============================================================================

@dataclass
class AntiSpamConfig:
    """
    Detection and quarantine settings.

    Attributes:
        enabled: Master switch, flipped at runtime by `!antispam toggle`.
        time_window_ms: Trailing window used for one classification pass.
        image_threshold: Reported in status; no rule consults it.
        link_threshold: Total links across 2+ channels that count as spam.
        exempt_user_ids: Users never classified.
        exempt_role_ids: Holders of any of these roles are never classified.
        trusted_domains: Allow-list; when non-empty, every other host is suspicious.
        compromised_role_id: Suspension role added on quarantine.
        preserve_role_ids: Roles never stripped on quarantine.
        timeout_duration_ms: Timeout applied on quarantine.
        history_max_age_ms: Ledger retention horizon.
        cleanup_interval_s: Seconds between ledger sweeps.
    """

    enabled: bool = True
    time_window_ms: int = 30000
    image_threshold: int = 2
    link_threshold: int = 3

    exempt_user_ids: Set[int] = field(default_factory=set)
    exempt_role_ids: Set[int] = field(default_factory=set)
    trusted_domains: List[str] = field(default_factory=list)

    compromised_role_id: Optional[int] = None
    preserve_role_ids: Set[int] = field(default_factory=set)
    timeout_duration_ms: int = 86400000

    # -------------------------------------------------------------------------
    # Notification Channels
    # -------------------------------------------------------------------------

    log_channel_id: Optional[int] = None
    alert_channel_id: Optional[int] = None
    notification_channel_id: Optional[int] = None
    dm_fail_log_channel_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Memory Management
    # -------------------------------------------------------------------------

    history_max_age_ms: int = 3600000
    cleanup_interval_s: int = 300


# =============================================================================
# Bot Configuration
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        discord_token: Discord bot authentication token.
        command_prefix: Prefix for operator commands.
        command_role_ids: Roles allowed to run `!antispam` commands.
        developer_id: Always allowed to run operator commands.
        antispam: Detection engine settings.
    """

    discord_token: str
    command_prefix: str = "!"
    command_role_ids: Set[int] = field(default_factory=set)
    developer_id: Optional[int] = None
    antispam: AntiSpamConfig = field(default_factory=AntiSpamConfig)


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


def _parse_int_optional(value: Optional[str]) -> Optional[int]:
    """
    Parse optional string to integer, returning None on failure.

    Args:
        value: String value from environment variable, may be None.

    Returns:
        Parsed integer or None if parsing fails.
    """
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_int_set(value: Optional[str]) -> Set[int]:
    """
    Parse comma-separated string to set of integers.

    Args:
        value: Comma-separated string of integers (e.g., "123,456,789").

    Returns:
        Set of parsed integers, empty set if input is None or empty.
    """
    if not value:
        return set()
    result = set()
    for part in value.split(","):
        part = part.strip()
        if part:
            try:
                result.add(int(part))
            except ValueError:
                pass  # Skip invalid entries silently
    return result


def _parse_domain_list(value: Optional[str]) -> List[str]:
    """
    Parse comma-separated domains, lowercased, order kept, duplicates dropped.
    """
    if not value:
        return []
    domains: List[str] = []
    for part in value.split(","):
        part = part.strip().lower()
        if part and part not in domains:
            domains.append(part)
    return domains


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int_with_default(
    value: Optional[str],
    default: int,
    name: str,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """
    Parse optional integer with default and range validation.

    Args:
        value: String value from environment variable.
        default: Default value if not set or invalid.
        name: Variable name for warning messages.
        min_val: Minimum allowed value (inclusive).
        max_val: Maximum allowed value (inclusive).

    Returns:
        Parsed integer within valid range, or default.
    """
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        from spamshield.core.logger import logger
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default

    if min_val is not None and parsed < min_val:
        from spamshield.core.logger import logger
        logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
        return min_val
    if max_val is not None and parsed > max_val:
        from spamshield.core.logger import logger
        logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
        return max_val
    return parsed


# =============================================================================
# Configuration Loading
# =============================================================================

def load_antispam_config() -> AntiSpamConfig:
    """Load the ANTISPAM_* variables into an AntiSpamConfig."""
    return AntiSpamConfig(
        enabled=_parse_bool(os.getenv("ANTISPAM_ENABLED"), True),
        time_window_ms=_parse_int_with_default(
            os.getenv("ANTISPAM_TIME_WINDOW_MS"), 30000, "ANTISPAM_TIME_WINDOW_MS",
            min_val=1000, max_val=600000,
        ),
        image_threshold=_parse_int_with_default(
            os.getenv("ANTISPAM_IMAGE_THRESHOLD"), 2, "ANTISPAM_IMAGE_THRESHOLD", min_val=1,
        ),
        link_threshold=_parse_int_with_default(
            os.getenv("ANTISPAM_LINK_THRESHOLD"), 3, "ANTISPAM_LINK_THRESHOLD", min_val=1,
        ),
        exempt_user_ids=_parse_int_set(os.getenv("ANTISPAM_EXEMPT_USER_IDS")),
        exempt_role_ids=_parse_int_set(os.getenv("ANTISPAM_EXEMPT_ROLE_IDS")),
        trusted_domains=_parse_domain_list(os.getenv("ANTISPAM_TRUSTED_DOMAINS")),
        compromised_role_id=_parse_int_optional(os.getenv("ANTISPAM_COMPROMISED_ROLE_ID")),
        preserve_role_ids=_parse_int_set(os.getenv("ANTISPAM_PRESERVE_ROLE_IDS")),
        timeout_duration_ms=_parse_int_with_default(
            os.getenv("ANTISPAM_TIMEOUT_MS"), 86400000, "ANTISPAM_TIMEOUT_MS",
            min_val=60000, max_val=MAX_TIMEOUT_MS,
        ),
        log_channel_id=_parse_int_optional(os.getenv("ANTISPAM_LOG_CHANNEL_ID")),
        alert_channel_id=_parse_int_optional(os.getenv("ANTISPAM_ALERT_CHANNEL_ID")),
        notification_channel_id=_parse_int_optional(os.getenv("ANTISPAM_NOTIFICATION_CHANNEL_ID")),
        dm_fail_log_channel_id=_parse_int_optional(os.getenv("ANTISPAM_DM_FAIL_LOG_CHANNEL_ID")),
        history_max_age_ms=_parse_int_with_default(
            os.getenv("ANTISPAM_HISTORY_MAX_AGE_MS"), 3600000, "ANTISPAM_HISTORY_MAX_AGE_MS",
            min_val=60000,
        ),
        cleanup_interval_s=_parse_int_with_default(
            os.getenv("ANTISPAM_CLEANUP_INTERVAL_S"), 300, "ANTISPAM_CLEANUP_INTERVAL_S",
            min_val=10, max_val=86400,
        ),
    )


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated Config object with all settings.

    Raises:
        ConfigValidationError: If any required variable is missing or invalid.
    """
    discord_token = os.getenv("DISCORD_TOKEN")
    if not discord_token:
        raise ConfigValidationError("Missing required environment variables: DISCORD_TOKEN")

    developer_id_str = os.getenv("DEVELOPER_ID")
    developer_id = None
    if developer_id_str:
        try:
            developer_id = int(developer_id_str)
        except ValueError:
            raise ConfigValidationError(f"Invalid integer for DEVELOPER_ID: {developer_id_str}")

    return Config(
        discord_token=discord_token,
        command_prefix=os.getenv("COMMAND_PREFIX", "!") or "!",
        command_role_ids=_parse_int_set(os.getenv("COMMAND_ROLE_IDS")),
        developer_id=developer_id,
        antispam=load_antispam_config(),
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def validate_and_log_config() -> None:
    """
    Validate configuration and log a summary at startup.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    from spamshield.core.logger import logger

    config = get_config()
    antispam = config.antispam

    missing_optional = [
        name for name, value in (
            ("ANTISPAM_LOG_CHANNEL_ID", antispam.log_channel_id),
            ("ANTISPAM_ALERT_CHANNEL_ID", antispam.alert_channel_id),
            ("ANTISPAM_NOTIFICATION_CHANNEL_ID", antispam.notification_channel_id),
            ("ANTISPAM_COMPROMISED_ROLE_ID", antispam.compromised_role_id),
            ("COMMAND_ROLE_IDS", config.command_role_ids),
        )
        if not value
    ]
    for var in missing_optional:
        logger.info(f"Optional config not set: {var}")

    logger.tree("Configuration Validated", [
        ("Enabled", str(antispam.enabled)),
        ("Time Window", f"{antispam.time_window_ms}ms"),
        ("Link Threshold", str(antispam.link_threshold)),
        ("Trusted Domains", str(len(antispam.trusted_domains))),
        ("Exempt Users/Roles", f"{len(antispam.exempt_user_ids)}/{len(antispam.exempt_role_ids)}"),
        ("Command Prefix", config.command_prefix),
    ], emoji="⚙️")


# =============================================================================
# Permission Helpers
# =============================================================================

def has_command_permission(member, config: Optional[Config] = None) -> bool:
    """
    Check whether a member may run operator commands.

    Args:
        member: Discord member invoking the command.
        config: Config to check against (defaults to the global one).

    Returns:
        True for the developer, administrators, and holders of a command role.
    """
    if member is None:
        return False

    config = config or get_config()

    if config.developer_id and member.id == config.developer_id:
        return True

    permissions = getattr(member, "guild_permissions", None)
    if permissions is not None and permissions.administrator:
        return True

    return any(role.id in config.command_role_ids for role in getattr(member, "roles", []))


__all__ = [
    "AntiSpamConfig",
    "Config",
    "ConfigValidationError",
    "get_config",
    "load_config",
    "load_antispam_config",
    "validate_and_log_config",
    "has_command_permission",
]
