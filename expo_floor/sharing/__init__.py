"""
expo_floor.sharing — Share links and exports.

Import surface::

    from expo_floor.sharing.share_links import generate_share_link, resolve_share_token
    from expo_floor.sharing.export      import export_floor_plan, RenderClient
"""
