"""
weekplanner - multi-user weekly calendar with automatic event scheduling.
"""

__version__ = "0.1.0"
