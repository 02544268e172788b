"""
tasklane - fractional ordering and import reconciliation for a personal task manager.
"""

__version__ = "1.0.0"
