"""
DraftSwiss v1.0 - Swiss tournament engine for draft card game events

Runs multi-round Swiss tournaments: ranks players after each round,
pairs them for the next one, and keeps a per-round countdown clock.

Main components:
- swiss: Pure engine (standings, pairing, draft seating, timer arithmetic)
- services: Persistence-bound operations (setup, seating, rounds, timer)
- db: SQLAlchemy models and session management
- web: FastAPI JSON surface for the engine operations
"""

__version__ = "1.0.0"
