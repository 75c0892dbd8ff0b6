"""
Services module initialization.
"""

__all__ = []
