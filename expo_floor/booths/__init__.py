"""
expo_floor.booths — Booth lifecycle and derived booth views.

Import surface::

    from expo_floor.booths.state_machine import set_status, add_booth
    from expo_floor.booths.resolver      import resolve_for_exhibitor
    from expo_floor.booths.neighbors     import get_neighboring_booths
"""
