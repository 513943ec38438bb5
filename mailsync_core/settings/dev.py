from .base import *

# Development-specific settings
DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

# Use local sqlite database for development
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    },
}

# No Redis needed to watch progress locally
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    },
}

LOGGING["loggers"]["mailbox_sync"]["level"] = "DEBUG"
