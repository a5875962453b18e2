"""
Catdex — A small catalog service for cats and their pictures.

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (validation, uploads,    │  ← ordering of side effects
    │   orchestration, repository)        │
    ├─────────────────────────────────────┤
    │   Blocking worker pool + DB pool    │  ← all synchronous I/O runs here
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
