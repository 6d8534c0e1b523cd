# src/narrative/runtime/apply/__init__.py
from __future__ import annotations

"""Domain apply modules (stories, treasury)."""
