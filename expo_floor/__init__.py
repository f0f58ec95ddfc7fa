"""
expo_floor — Exhibition floor plan service.

Floor plans are canvases of shapes; booths are the shapes with a business
lifecycle (status, exhibitor binding).  The HTTP surface lives in
``expo_floor.app``.
"""

__version__ = "1.0.0"
