"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before anything imports app.core.config, so
the module-level settings are built with predictable values.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("APP_SUPPORTED_LOCALES", "en,th,ja")
os.environ.setdefault("APP_DEFAULT_LOCALE", "en")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "5")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_MS", "60000")
os.environ.setdefault("LOG_LEVEL", "WARNING")
