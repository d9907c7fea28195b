"""
GroupGo trip-planning data layer.

Stores in groupgo.stores wrap the document store, groupgo.auth holds the
signed-in identity, and groupgo.services talks to the payment backend.
groupgo.app.build_app() wires them together.
"""

__all__: list[str] = []
