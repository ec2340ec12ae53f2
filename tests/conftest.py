"""Shared test fixtures for the recipe sharing service tests."""

from __future__ import annotations

import os


# Settings are loaded from config/environments/test when the suite runs.
os.environ.setdefault("APP_ENV", "test")
