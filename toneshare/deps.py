"""Graceful optional dependency imports.

The editor core runs on the standard library alone; the HTTP server and
the text-generation service need their libraries.  Availability flags live
here so the try/except blocks live in exactly one place.
"""

from __future__ import annotations

# -- Flask (persistence API server) ------------------------------------------

try:
    import flask
    HAS_FLASK = True
except ImportError:
    flask = None  # type: ignore[assignment]
    HAS_FLASK = False

# -- Claude Agent SDK (generative text) --------------------------------------

try:
    import claude_agent_sdk
    HAS_AGENT_SDK = True
except ImportError:
    claude_agent_sdk = None  # type: ignore[assignment]
    HAS_AGENT_SDK = False
