"""
PokéCompanion Backend: Application Package
===========================================

REST backend for a Pokémon companion app: user accounts, favorites,
bounded search history and custom Pokémon lists.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP, auth, ownership checks
    ├─────────────────────────────────────┤
    │   Services / HistoryStore (Logic)   │  ← queries, business rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
