"""Pytest package configuration for the gateway tests."""

from __future__ import annotations

import os

# Importing the app factory must never bind the Prometheus port during tests.
os.environ.setdefault("FACTIFY_DISABLE_METRICS", "1")
