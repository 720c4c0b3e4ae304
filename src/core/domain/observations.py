"""
Observations — структурированные события для audit sink

Каждая мутация состояния оракула зеркалируется в audit sink одним
из событий ниже. События immutable и сериализуются в JSON согласно
contracts/schema/observation.json.

События содержат старые и новые значения, чтобы audit log был
самодостаточным без доступа к предыдущему состоянию.
"""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field


class ObservationType(str, Enum):
    """Тип события."""

    PARAMETER_CHANGED = "ParameterChanged"
    PRICE_UPDATED = "PriceUpdated"
    LIMITS_CHANGED = "LimitsChanged"
    CAPABILITY_CHANGED = "CapabilityChanged"


class ParameterChanged(BaseModel):
    """Обновление slope/intercept."""

    type: Literal[ObservationType.PARAMETER_CHANGED] = ObservationType.PARAMETER_CHANGED
    ts: int = Field(..., ge=0, description="Timestamp commit (UTC, секунды)")
    old_slope: int = Field(..., ge=0)
    old_intercept: int = Field(..., ge=0)
    slope: int = Field(..., ge=0)
    intercept: int = Field(..., ge=0)

    model_config = {"frozen": True}


class PriceUpdated(BaseModel):
    """Запись новой цены в кэш."""

    type: Literal[ObservationType.PRICE_UPDATED] = ObservationType.PRICE_UPDATED
    ts: int = Field(..., ge=0)
    price: int = Field(..., ge=0)
    underlying_price: int = Field(..., ge=0)
    discount: int = Field(..., ge=0)

    model_config = {"frozen": True}


class LimitsChanged(BaseModel):
    """Замена UpdateLimits."""

    type: Literal[ObservationType.LIMITS_CHANGED] = ObservationType.LIMITS_CHANGED
    ts: int = Field(..., ge=0)
    old_min_update_interval_sec: int = Field(..., ge=0)
    old_max_slope_delta: int = Field(..., ge=0)
    old_max_intercept_delta: int = Field(..., ge=0)
    min_update_interval_sec: int = Field(..., ge=0)
    max_slope_delta: int = Field(..., ge=0)
    max_intercept_delta: int = Field(..., ge=0)

    model_config = {"frozen": True}


class CapabilityChanged(BaseModel):
    """Выдача или отзыв capability в access gateway."""

    type: Literal[ObservationType.CAPABILITY_CHANGED] = ObservationType.CAPABILITY_CHANGED
    principal: str = Field(..., min_length=1)
    capability: str = Field(..., min_length=1)
    granted: bool

    model_config = {"frozen": True}


Observation = Union[ParameterChanged, PriceUpdated, LimitsChanged, CapabilityChanged]
