# Middleware package init
"""
Jotter Backend — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID first: every later log line and error body can carry it
    2. Logging: one access line per request, with status and duration
    3. CORS: FastAPI's CORSMiddleware, credentials allowed for the session cookie
"""
