"""
Service layer.

Each service encapsulates the business logic for one area and talks to
the database through ``core.db``.  Services raise ``ValueError`` for
missing rows and invalid state and ``PermissionError`` for ownership
violations; the endpoints translate both into HTTP errors.
"""
