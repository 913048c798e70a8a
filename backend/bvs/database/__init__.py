"""
Database package initialization.

- base: declarative base and mixins
- connection: async engine and session management
- models: ORM models

Submodules are imported explicitly where needed to avoid circular imports.
"""

__all__ = []
