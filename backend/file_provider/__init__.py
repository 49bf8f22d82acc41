"""
File Provider
=============
Dual-backend (disk / object store) file persistence with image
quality reduction.
"""

__version__ = "1.0.0"
