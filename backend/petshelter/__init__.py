"""
Shelter Pets Backend: Application Package
==========================================

What: The `petshelter` package, a FastAPI service for shelter pet records.
Who:  Imported by uvicorn (`petshelter.main:app`), Alembic, and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Mood, Pets, Files)    │  ← Business rules
    ├─────────────────────────────────────┤
    │            Repositories             │  ← Per-record persistence
    ├─────────────────────────────────────┤
    │   Models & Schemas │ Database       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

Routes translate HTTP into service calls, services raise typed errors from
`petshelter.exceptions`, and the handlers in `main.py` turn those into
status codes.
"""

__version__ = "1.0.0"
