"""
Endpoint subpackage for API v1.

Each module defines an APIRouter for one area (auth, providers, jobs,
slots, ...).  The routers are aggregated in ``router.py``.
"""
