"""
expo_floor.domain — Canonical data models and enumerations.

This package defines the source-of-truth types shared across every layer
of the floor plan service. Nothing in here should import from other
expo_floor sub-packages except ``core`` (only stdlib / Pydantic).
"""
