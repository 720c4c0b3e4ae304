"""
Oracle Contracts — проверка снапшотов состояния и audit событий

JSON Schema из contracts/schema/ задаёт форму данных. Поверх неё проверяются
инварианты оракула, которые схема выразить не может:

oracle_state:
- last_update_ts >= instrument.issuance_ts
- cache.updated_at >= instrument.issuance_ts
- пустой кэш (updated_at = null) хранит price = 0

observation:
- PriceUpdated: discount <= SCALE, price <= underlying_price
- ParameterChanged: старые и новые slope/intercept <= SCALE

Принимаются как pydantic модели (OracleState, Observation), так и dict,
например снапшот, который хост прочитал из своего хранилища.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from jsonschema import Draft202012Validator, SchemaError, ValidationError
from pydantic import BaseModel

from src.core.math.fixed_point import SCALE

# contracts/schema/ в корне репозитория
SCHEMA_DIR = Path(__file__).resolve().parents[3] / "contracts" / "schema"

Payload = Union[BaseModel, Mapping[str, Any]]


@lru_cache(maxsize=None)
def load_schema(name: str, schema_dir: Path = SCHEMA_DIR) -> Dict[str, Any]:
    """
    Загрузка схемы контракта с meta-validation (Draft 2020-12).

    Raises:
        FileNotFoundError: файл схемы не найден
        ValueError: схема не проходит meta-validation
    """
    path = schema_dir / f"{name}.json"
    if not path.is_file():
        raise FileNotFoundError(f"Schema not found: {path}")

    schema = json.loads(path.read_text(encoding="utf-8"))
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as e:
        raise ValueError(f"Invalid JSON Schema in {path.name}: {e.message}") from e
    return schema


def _as_payload(data: Payload) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return dict(data)


def _shape_errors(validator: Draft202012Validator, payload: Dict[str, Any]) -> List[str]:
    return [
        f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
        for e in validator.iter_errors(payload)
    ]


# =============================================================================
# ORACLE STATE
# =============================================================================


class OracleStateValidator:
    """Снапшот состояния оракула: схема + временные инварианты."""

    def __init__(self):
        self._validator = Draft202012Validator(load_schema("oracle_state"))

    def violations(self, state: Payload) -> List[str]:
        """Список нарушений (пустой для корректного снапшота).

        Инварианты проверяются только для снапшота правильной формы.
        """
        payload = _as_payload(state)
        errors = _shape_errors(self._validator, payload)
        if errors:
            return errors

        issuance_ts = payload["instrument"]["issuance_ts"]
        cache = payload["cache"]

        if payload["last_update_ts"] < issuance_ts:
            errors.append(
                f"last_update_ts ({payload['last_update_ts']}) precedes issuance_ts ({issuance_ts})"
            )
        if cache["updated_at"] is None:
            if cache["price"] != 0:
                errors.append(f"empty cache holds price {cache['price']}")
        elif cache["updated_at"] < issuance_ts:
            errors.append(
                f"cache.updated_at ({cache['updated_at']}) precedes issuance_ts ({issuance_ts})"
            )
        return errors

    def is_valid(self, state: Payload) -> bool:
        return not self.violations(state)

    def validate(self, state: Payload) -> None:
        """
        Raises:
            ValidationError: снапшот нарушает схему или инварианты
        """
        errors = self.violations(state)
        if errors:
            raise ValidationError("; ".join(errors))


# =============================================================================
# OBSERVATIONS
# =============================================================================


class ObservationValidator:
    """Audit событие: схема + согласованность значений события."""

    def __init__(self):
        self._validator = Draft202012Validator(load_schema("observation"))

    def violations(self, observation: Payload) -> List[str]:
        payload = _as_payload(observation)
        errors = _shape_errors(self._validator, payload)
        if errors:
            return errors

        kind = payload["type"]
        if kind == "PriceUpdated":
            if payload["discount"] > SCALE:
                errors.append(f"discount {payload['discount']} exceeds {SCALE}")
            if payload["price"] > payload["underlying_price"]:
                errors.append(
                    f"price {payload['price']} exceeds underlying_price {payload['underlying_price']}"
                )
        elif kind == "ParameterChanged":
            for field in ("old_slope", "old_intercept", "slope", "intercept"):
                if payload[field] > SCALE:
                    errors.append(f"{field} {payload[field]} exceeds {SCALE}")
        return errors

    def is_valid(self, observation: Payload) -> bool:
        return not self.violations(observation)

    def validate(self, observation: Payload) -> None:
        """
        Raises:
            ValidationError: событие нарушает схему или инварианты
        """
        errors = self.violations(observation)
        if errors:
            raise ValidationError("; ".join(errors))


def validate_oracle_state(state: Payload) -> None:
    OracleStateValidator().validate(state)


def validate_observation(observation: Payload) -> None:
    ObservationValidator().validate(observation)
