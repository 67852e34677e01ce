"""
Procedural hill terrain and plant scattering.
"""

__version__ = "0.1.0"
