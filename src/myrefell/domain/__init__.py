"""Game rules for Myrefell.

``enums`` holds the status and type vocabularies stored in the database and
``rules`` holds the static tables (crime types, event types, religion tiers,
travel constants) that services and seed data read from.
"""

from . import enums, rules

__all__ = ["enums", "rules"]
