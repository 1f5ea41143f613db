"""
batchsettle: atomic multi-venue batch settlement
"""

__version__ = "0.1.0"
