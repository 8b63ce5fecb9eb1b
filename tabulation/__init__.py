"""
Tabulation backend for multi-round, multi-judge scored events.
"""
__version__ = "1.0.0"
