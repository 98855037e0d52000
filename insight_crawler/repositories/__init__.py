# repositories/__init__.py

"""
Source, article and crawl log storage.
"""

from .in_memory_repository import InMemorySourceRepository, apply_resolution

__all__ = ["InMemorySourceRepository", "apply_resolution"]
