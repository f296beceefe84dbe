"""
Shared type definitions for schemas.

Centralizes common type annotations used across session and operation schemas.

Layering:
- This module provides FOUNDATION types (BaseStrictModel, PermissiveModel, JsonDatetime)
- Domain packages (session/, operations/) import from here
- Domain packages may define their own StrictModel that inherits from BaseStrictModel
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

import pydantic

# ==============================================================================
# Base Strict Model (Foundation)
# ==============================================================================


class BaseStrictModel(pydantic.BaseModel):
    """
    Foundation strict model - domain packages inherit from this.

    Uses extra='forbid' to reject unknown fields. Everything built on it is
    frozen, so values handed to subscribers can never be mutated by them.
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',  # Reject unknown fields (fail-fast)
        strict=True,  # Strict type coercion
        frozen=True,  # Immutable after creation
    )


# ==============================================================================
# Permissive Model (Foundation)
# ==============================================================================


class PermissiveModel(pydantic.BaseModel):
    """
    Foundation permissive model for records written by an external program.

    Symmetry with BaseStrictModel:
    - BaseStrictModel: extra='forbid' (rejects unknown fields)
    - PermissiveModel: extra='ignore' (tolerates unknown fields)

    The session log format grows new fields with every Claude Code release.
    Raw log records only declare the fields the monitor reads, so a new field
    never turns a well-formed record into a decode failure.
    """

    model_config = pydantic.ConfigDict(
        extra='ignore',  # Tolerate unknown fields (format drifts across versions)
        frozen=True,  # Immutable after creation
        populate_by_name=True,
    )


# ==============================================================================
# Datetime Types
# ==============================================================================

# Pydantic-enhanced datetime for JSON serialization (allows string->datetime conversion)
JsonDatetime = Annotated[datetime, pydantic.Field(strict=False)]
