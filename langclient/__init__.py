"""
Editor-side bootstrap for out-of-process language servers.
"""

__version__ = "1.0.0"
