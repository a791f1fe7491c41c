"""OMNI-AWARE synthetic hazard-perception engine."""

__version__ = "2.1.0"
