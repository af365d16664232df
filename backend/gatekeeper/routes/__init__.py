# Routes package init
"""
Gatekeeper — Routes Package
=============================

What:  HTTP route handlers reached once the interception chain passes a request through.

Route Inventory:
    - health.py:  GET /health   (service health check, never intercepted)
    - home.py:    GET /         (landing page, behind Basic auth)
"""
