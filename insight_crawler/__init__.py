"""
Insight article crawler: strategy resolution, technique adapters and a
quality-gated fallback engine.
"""

__version__ = "0.1.0"
