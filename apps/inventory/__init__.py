"""Inventory app package.

Holds the bookable units offered on the marketplace (room types, vehicles,
tours), their static price components and the blocked periods declared by
their owners. From the engine's point of view this data is read-only: it is
created and edited by owner tooling and only read here through
``apps.inventory.adapter.InventoryAdapter``.
"""
