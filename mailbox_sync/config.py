"""
Configuration settings for the mailbox_sync app.

This module centralizes all configuration settings for the mailbox sync app,
pulling values from environment variables with sensible defaults.
"""

import os

from django.conf import settings

# Default values - will be overridden by environment variables if set
DEFAULT_CONFIG = {
    # Periodic sync interval registered for new accounts, in minutes.
    # Zero or a negative value disables periodic sync.
    "SYNC_INTERVAL_MINUTES": 15,
    # Messages fetched per pull sync before the delta hint is applied
    "MAX_MESSAGES_PER_SYNC": 25,
    # Upper bound for the delta message count hint
    "MAX_DELTA_MESSAGES": 500,
    # Connection timeout for IMAP/POP3/SMTP, in seconds
    "DEFAULT_TIMEOUT": 30,
    "IMAP_DEFAULT_PORT": 993,
    "POP3_DEFAULT_PORT": 995,
    "SMTP_DEFAULT_PORT": 587,
    # Channel layer group prefix for sync progress notifications
    "STATUS_GROUP_PREFIX": "mailbox_sync",
}


def get_config(key, default=None):
    """
    Get a configuration value from environment variables or settings with fallback.

    Args:
        key: The configuration key to look up
        default: Default value if not found

    Returns:
        The configuration value
    """
    if default is None:
        default = DEFAULT_CONFIG.get(key)

    # Check if the key exists in the environment with MAILSYNC_ prefix
    env_key = f"MAILSYNC_{key}"
    if env_key in os.environ:
        value = os.environ[env_key]

        # Try to convert value to appropriate type based on default
        if isinstance(default, bool):
            return value.lower() in ("true", "yes", "1")
        elif isinstance(default, int):
            try:
                return int(value)
            except (ValueError, TypeError):
                return default
        return value

    # Check if the key exists in Django settings
    if hasattr(settings, env_key):
        return getattr(settings, env_key)

    return default

