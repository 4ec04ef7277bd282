"""
Application configuration for Series Sentinel.

Provides environment-aware settings with conservative defaults. Every alert
threshold is configurable to avoid hard-coded "magic numbers"; the legacy
camelCase option names of stored configuration documents are accepted as
aliases so those documents can be validated directly.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SelectionCriterion(str, Enum):
	"""Information criterion used to rank ARIMA candidates."""

	AIC = "AIC"
	BIC = "BIC"


class AlertConfig(BaseModel):
	"""
	Thresholds and model limits for both alert families.

	Rationale:
	- ARIMA search limits follow a small auto-ARIMA grid (p, q <= 3, d <= 2).
	- Margin tiers widen the band for volatile series and keep a floor for
	  very stable ones, so near-constant series do not alert on noise.
	- Severity and triple-validation thresholds are independent so the alert
	  decision and its tier can be tuned separately.
	"""

	model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

	# History requirements
	min_periods: int = Field(12, ge=1, alias="periodosMinimos")
	robust_model_periods: int = Field(24, ge=1, alias="periodosModeloRobusto")

	# ARIMA search grid and interval
	max_p: int = Field(3, ge=0, alias="maxP")
	max_q: int = Field(3, ge=0, alias="maxQ")
	max_d: int = Field(2, ge=0, alias="maxD")
	selection_criterion: SelectionCriterion = Field(SelectionCriterion.AIC, alias="criterioSeleccion")
	z_value: float = Field(1.96, gt=0.0, alias="valorZ")
	confidence_level: float = Field(0.95, gt=0.0, lt=1.0, alias="nivelConfianza")

	# Adaptive margin
	stable_threshold: float = Field(0.01, ge=0.0, alias="umbralEstable")
	volatility_threshold: float = Field(0.05, ge=0.0, alias="umbralVolatilidad")
	stable_factor: float = Field(1.5, ge=0.0, alias="factorSeriesEstables")
	medium_volatility_factor: float = Field(1.3, ge=0.0, alias="factorVolatilidadMedia")
	min_margin: float = Field(0.01, ge=0.0, alias="limiteMinimoMargen")
	max_margin: float = Field(0.20, ge=0.0, alias="limiteMaximoMargen")

	# Triple validation
	min_abs_difference: float = Field(0.01, ge=0.0, alias="umbralDiferenciaMinima")
	min_zscore: float = Field(1.0, ge=0.0, alias="umbralZScoreMinimo")
	use_triple_validation: bool = Field(True, alias="usarValidacionTriple")

	# Severity tiers on |z|
	critical_threshold: float = Field(2.5, ge=0.0, alias="umbralCritico")
	high_threshold: float = Field(1.96, ge=0.0, alias="umbralAlto")
	moderate_threshold: float = Field(1.0, ge=0.0, alias="umbralModerado")

	# Historical sigma guards for the z-score family
	sigma_floor: float = Field(0.01, gt=0.0, description="Replaces a zero or NaN sigma")
	sigma_cap: float = Field(2.0, gt=0.0, description="Upper bound on sigma (200%)")

	# Exclusions applied before grouping
	excluded_concepts: List[str] = Field(
		default_factory=list,
		validation_alias=AliasChoices("conceptosExcluidos", "excluded_concepts"),
	)
	excluded_business_units: List[str] = Field(
		default_factory=list,
		validation_alias=AliasChoices("negociosExcluidos", "excluded_business_units"),
	)
	excluded_positions: List[str] = Field(
		default_factory=list,
		validation_alias=AliasChoices("puestosExcluidos", "excluded_positions"),
	)

	max_workers: int = Field(1, ge=1, description="Threads used to evaluate keys")

	@field_validator("selection_criterion", mode="before")
	@classmethod
	def _upper_criterion(cls, value: object) -> object:
		if isinstance(value, str):
			return value.strip().upper()
		return value

	@field_validator("excluded_concepts", "excluded_business_units", "excluded_positions", mode="before")
	@classmethod
	def _stringify_exclusions(cls, value: object) -> object:
		if value is None:
			return []
		if isinstance(value, (list, tuple, set)):
			return [str(item).strip() for item in value]
		return value

	@model_validator(mode="after")
	def _check_ordering(self) -> "AlertConfig":
		if not self.critical_threshold > self.high_threshold > self.moderate_threshold:
			raise ValueError("severity thresholds must satisfy critical > high > moderate")
		if self.min_margin >= self.max_margin:
			raise ValueError("min_margin must be lower than max_margin")
		if self.stable_threshold >= self.volatility_threshold:
			raise ValueError("stable_threshold must be lower than volatility_threshold")
		if self.sigma_floor >= self.sigma_cap:
			raise ValueError("sigma_floor must be lower than sigma_cap")
		return self

	@classmethod
	def conservative(cls) -> "AlertConfig":
		"""Fewer parameters and a BIC ranking: more stable, less sensitive models."""
		return cls(
			min_periods=16,
			max_p=2,
			max_q=2,
			max_d=1,
			selection_criterion=SelectionCriterion.BIC,
		)

	@classmethod
	def exhaustive(cls) -> "AlertConfig":
		"""Wider ARIMA search grid; slower."""
		return cls(max_p=5, max_q=5, max_d=2)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="SENTINEL_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	log_to_file: bool = Field(True, description="Also write a rotating log file under logs_dir")
	alerts: AlertConfig = AlertConfig()

	def model_post_init(self, __context: object) -> None:
		if self.log_to_file:
			self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
