"""AI-Premise provisioner: turn an Arch Linux host into a local AI server.

Core design goals:
- Ordered, idempotent steps (check-then-skip against live host state)
- Host access behind one narrow interface
- Configuration rendered from versioned templates
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = []
