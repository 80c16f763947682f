"""
Public Pydantic schemas used by FastAPI routes, actions, and tests.

Schemas are grouped by domain module (business, catalog, expense, etc.) and
also include common reusable models such as the result envelope.
"""

from .common import Envelope, MessageResponse  # noqa: F401
