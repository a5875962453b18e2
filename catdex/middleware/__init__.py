"""
Catdex — Middleware Package
=============================

Middleware Chain:
    Request → [Request ID] → [Access log] → Route Handler

Request ID runs first so the access log line and any error response carry
the same correlation ID.
"""
