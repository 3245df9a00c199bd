"""Constants for pysmartme."""

from __future__ import annotations


# API Configuration
DEFAULT_BASE_URL = "https://api.smart-me.com"
DEFAULT_TIMEOUT = 30  # seconds

# Config Store
CONFIG_PROJECT_NAME = "smartme-cli"
CONFIG_FILE_NAME = "config.json"
CONFIG_KEY_API_KEY = "apiKey"
CONFIG_KEY_USERNAME = "username"
CONFIG_KEY_PASSWORD = "password"
CONFIG_KEYS = (CONFIG_KEY_API_KEY, CONFIG_KEY_USERNAME, CONFIG_KEY_PASSWORD)

# Table rendering
MAX_COLUMN_WIDTH = 40
COLUMN_SEPARATOR = "  "

# Masks shown by `config show`, independent of the secret's length
API_KEY_MASK = "*" * 16
PASSWORD_MASK = "*" * 8

# Switch state values accepted on the command line
SWITCH_ON_VALUES = frozenset({"on", "1", "true"})
SWITCH_OFF_VALUES = frozenset({"off", "0", "false"})
