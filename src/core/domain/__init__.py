"""
Domain models and value objects.

Contains oracle state entities (Instrument, DiscountParameters, UpdateLimits,
PriceCacheState, OracleState) and audit observations.
"""

from src.core.domain.observations import (
    CapabilityChanged,
    LimitsChanged,
    Observation,
    ObservationType,
    ParameterChanged,
    PriceUpdated,
)
from src.core.domain.parameters import (
    DEFAULT_MIN_UPDATE_INTERVAL_SEC,
    UNBOUNDED_DELTA,
    DiscountParameters,
    Instrument,
    OracleState,
    PriceCacheState,
    UpdateLimits,
)

__all__ = [
    # State constants
    "DEFAULT_MIN_UPDATE_INTERVAL_SEC",
    "UNBOUNDED_DELTA",
    # State models
    "Instrument",
    "DiscountParameters",
    "UpdateLimits",
    "PriceCacheState",
    "OracleState",
    # Observations
    "Observation",
    "ObservationType",
    "ParameterChanged",
    "PriceUpdated",
    "LimitsChanged",
    "CapabilityChanged",
]
