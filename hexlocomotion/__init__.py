"""Locomotion control for six-legged robots: gaits, terrain adaptation, stability and manual posing."""

__version__ = "0.1.0"