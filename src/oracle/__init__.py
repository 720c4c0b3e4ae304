"""Oracle — конфигурация и сборка PT oracle."""

from .config import OracleConfig
from .deploy import PtOracle, deploy_oracle

__all__ = [
    "OracleConfig",
    "PtOracle",
    "deploy_oracle",
]
