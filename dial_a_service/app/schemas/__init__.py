"""
Pydantic schema definitions for API payloads.

Schemas are separated from the SQL rows so that the API representation
can change independently of the tables.
"""
