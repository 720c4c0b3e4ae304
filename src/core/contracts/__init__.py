"""Контракты оракула: JSON Schema + инварианты снапшотов и audit событий."""

from .validators import (
    SCHEMA_DIR,
    ObservationValidator,
    OracleStateValidator,
    load_schema,
    validate_observation,
    validate_oracle_state,
)

__all__ = [
    "SCHEMA_DIR",
    "load_schema",
    "OracleStateValidator",
    "ObservationValidator",
    "validate_oracle_state",
    "validate_observation",
]
