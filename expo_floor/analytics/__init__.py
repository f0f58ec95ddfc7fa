"""
expo_floor.analytics — Read-only statistics derived from floor plans.
"""
