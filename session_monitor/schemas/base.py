"""
Shared Pydantic base model for strict validation.

All operation schema models in the application should inherit from StrictModel.
This module re-exports BaseStrictModel as StrictModel for the operations/ package.
"""

from __future__ import annotations

from session_monitor.schemas.types import BaseStrictModel


class StrictModel(BaseStrictModel):
    """Operations-layer strict model.

    Inherits from BaseStrictModel (extra='forbid', strict=True, frozen=True).
    Used by session_monitor/schemas/operations/ package.
    """

    pass
