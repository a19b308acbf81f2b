"""Pydantic models for rebalancer.yaml validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from rebalancer.config.defaults import (
    AUTH_DEFAULTS,
    BASIS_POINTS,
    PORTFOLIO_DEFAULTS,
    REBALANCE_DEFAULTS,
    STORAGE_BACKENDS,
    STORAGE_DEFAULTS,
)


class PortfolioConfig(BaseModel):
    max_asset_slots: int = Field(
        default=PORTFOLIO_DEFAULTS["max_asset_slots"],
        ge=1,
        le=PORTFOLIO_DEFAULTS["max_asset_slots_limit"],
    )
    default_threshold: int = PORTFOLIO_DEFAULTS["default_threshold"]

    @field_validator("default_threshold")
    @classmethod
    def threshold_in_range(cls, v: int) -> int:
        if not 0 <= v <= BASIS_POINTS:
            raise ValueError(f"default_threshold must be within 0..{BASIS_POINTS} bp, got {v}")
        return v


class RebalanceConfig(BaseModel):
    enforce_target_sum: bool = REBALANCE_DEFAULTS["enforce_target_sum"]


class AuthConfig(BaseModel):
    admins: list[str] = Field(default_factory=lambda: list(AUTH_DEFAULTS["admins"]))
    default_identity: str = AUTH_DEFAULTS["default_identity"]

    @field_validator("admins")
    @classmethod
    def admins_not_empty(cls, v: list[str]) -> list[str]:
        cleaned = [a.strip() for a in v if a and a.strip()]
        if not cleaned:
            raise ValueError("auth.admins must name at least one identity")
        return cleaned


class StorageConfig(BaseModel):
    backend: str = STORAGE_DEFAULTS["backend"]
    path: str = STORAGE_DEFAULTS["path"]

    @field_validator("backend")
    @classmethod
    def known_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(f"storage.backend must be one of {STORAGE_BACKENDS}, got {v!r}")
        return v


# ---------------------------------------------------------------------------
# Top-Level Config
# ---------------------------------------------------------------------------

class RebalancerConfig(BaseModel):
    """Root configuration model for the rebalancer."""

    version: int = 1
    portfolio: PortfolioConfig = Field(default_factory=PortfolioConfig)
    rebalance: RebalanceConfig = Field(default_factory=RebalanceConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @model_validator(mode="before")
    @classmethod
    def coerce_none_to_defaults(cls, data: Any) -> Any:
        """YAML parses empty sections as None. Drop them so defaults apply."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data
