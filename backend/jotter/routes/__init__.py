# Routes package init
"""
Jotter Backend — API Routes Package
=====================================

Route Inventory:
    - auth.py:    POST   /auth     (ID token → session cookie)
    - notes.py:   GET    /notes    (list my notes)
                  POST   /notes    (create)
                  PUT    /notes    (update)
                  DELETE /notes    (delete)
    - health.py:  GET    /health   (service health check)

Routes stay thin: read the request, call a service, pick the status code.
"""
