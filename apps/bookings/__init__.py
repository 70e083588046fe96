"""Bookings app package.

This app holds the availability and pricing engine: the conflict resolver,
the pricing calculator, alternative-date suggestions and the booking
commit that re-checks capacity under the unit's row lock before writing.
`apps.bookings.engine.get_engine()` is the entry point for callers.
"""
