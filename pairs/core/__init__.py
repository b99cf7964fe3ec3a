"""Core pairs-game primitives (deck, roster, context, resolution, events).

Kept free of FastAPI and Redis concerns so the scheduler, API routes, and tests
can all drive the same pure functions.
"""
