"""Repository layer: SQL text, parameter binding and row mapping (SQLite).

No I/O happens here; services execute the statements built by these helpers.
"""
from __future__ import annotations

