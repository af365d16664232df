"""
Gatekeeper — Application Package Initializer
==============================================

What: Marks the `gatekeeper` directory as a Python package.
Why:  Enables module imports like `from gatekeeper.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:

    ┌─────────────────────────────────────┐
    │     Interception (Rule Chain)       │  ← logging, Basic auth
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← reached only on pass-through
    └─────────────────────────────────────┘

    Every request to a protected path walks the rule chain first. Rules
    either let it continue to the routes or answer it themselves.
"""

__version__ = "1.0.0"
