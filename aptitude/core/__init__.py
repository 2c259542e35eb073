"""
Core module for engine configuration, the CAT core and the recommendation engine.
"""
from .config import settings

__all__ = ["settings"]
