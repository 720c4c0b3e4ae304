"""
Oracle Config — конфигурация развёртывания оракула

OracleConfig: frozen dataclass с безопасными значениями по умолчанию.
from_mapping() принимает конфигурацию хоста (dict из YAML/JSON/env)
и валидирует её через Pydantic до создания конфигурации.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import BaseModel, Field

from src.core.domain.parameters import (
    DEFAULT_MIN_UPDATE_INTERVAL_SEC,
    UNBOUNDED_DELTA,
    UpdateLimits,
)
from src.core.math.fixed_point import SCALE, SECONDS_PER_YEAR
from src.governance.parameter_store import SafetyHorizon


@dataclass(frozen=True)
class OracleConfig:
    """Конфигурация оракула.

    Slope/intercept и delta-лимиты в fixed-point (SCALE = 1e18).
    0 в max_slope_delta / max_intercept_delta означает отсутствие ограничения.
    """

    # Начальные параметры дисконта
    slope: int = 5 * 10**16  # 5% в год
    intercept: int = 0

    # Лимиты обновлений (permissive по умолчанию)
    min_update_interval_sec: int = DEFAULT_MIN_UPDATE_INTERVAL_SEC
    max_slope_delta: int = UNBOUNDED_DELTA
    max_intercept_delta: int = UNBOUNDED_DELTA

    # Модель времени
    seconds_per_year: int = SECONDS_PER_YEAR
    safety_horizon: SafetyHorizon = SafetyHorizon.ISSUANCE

    @property
    def limits(self) -> UpdateLimits:
        return UpdateLimits(
            min_update_interval_sec=self.min_update_interval_sec,
            max_slope_delta=self.max_slope_delta,
            max_intercept_delta=self.max_intercept_delta,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "OracleConfig":
        """Создание конфигурации из словаря хоста.

        Raises:
            pydantic.ValidationError: неизвестные ключи или невалидные значения
        """
        model = _OracleConfigModel.model_validate(dict(data))
        return cls(**model.model_dump())


class _OracleConfigModel(BaseModel):
    """Схема валидации конфигурации хоста."""

    slope: int = Field(default=5 * 10**16, ge=0, le=SCALE)
    intercept: int = Field(default=0, ge=0, le=SCALE)
    min_update_interval_sec: int = Field(default=DEFAULT_MIN_UPDATE_INTERVAL_SEC, ge=0)
    max_slope_delta: int = Field(default=UNBOUNDED_DELTA, ge=0)
    max_intercept_delta: int = Field(default=UNBOUNDED_DELTA, ge=0)
    seconds_per_year: int = Field(default=SECONDS_PER_YEAR, gt=0)
    safety_horizon: SafetyHorizon = SafetyHorizon.ISSUANCE

    model_config = {"extra": "forbid", "frozen": True}
