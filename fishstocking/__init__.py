"""
Fish Stocking Registry
Lifecycle engine and HTTP service for fish stocking events
"""

__version__ = "1.0.0"
