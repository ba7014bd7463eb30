"""Routers mounted by ``myrefell.api.app.create_app``."""

from myrefell.api.routes import crime, events, inventory, religion, system, taxes, travel

ROUTERS = [
    system.router,
    crime.router,
    events.router,
    taxes.router,
    religion.router,
    inventory.router,
    travel.router,
]

__all__ = ["ROUTERS"]
