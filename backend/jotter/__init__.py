"""
Jotter Backend — Application Package Initializer
==================================================

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes + Dependencies (API)     │  ← HTTP, cookies, session guard
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← identity, sessions, notes store
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← pool owned by the app instance
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
