"""
ZameenHub API: real-estate listing marketplace backend.
"""

__version__ = "1.0.0"
