import dataclasses
from typing import Dict, List, Optional, Union


@dataclasses.dataclass(frozen=True)
class ConsumptionInputs:
    driving_consumption_kwh_per_100km: float  # As entered, even where the range uses a derived consumption
    terrain_factor: float
    climate_control_enabled: bool
    climate_factor: float


@dataclasses.dataclass(frozen=True)
class DegradationParameters:
    state_of_charge: float  # Percentage of rated capacity in the range [0, 100]
    battery_capacity_kwh: float
    driving_consumption_kwh_per_100km: float
    temperature_c: float
    base_efficiency: float
    charging_degradation: float  # Efficiency loss from the charging behaviour (1.0 = none)
    battery_age_cycles: float
    battery_age_years: float
    terrain_factor: float  # Multiplier on consumption (1.0 = flat)
    climate_control_enabled: bool
    climate_factor: float  # Only applied when climate control is enabled
    regen_braking_enabled: bool
    regen_factor: float  # Only applied when regenerative braking is enabled
    consumption_inputs: Optional[ConsumptionInputs] = None  # Basis of the consumption breakdown, if it differs


@dataclasses.dataclass(frozen=True)
class EpaParameters:
    battery_capacity_kwh: float
    epa_range_miles: float
    current_charge_percent: float
    temperature_f: float
    avg_speed_mph: float
    climate_usage: str  # One of "Low", "Medium" or "High"
    terrain_type: str  # One of "Flat", "Hilly" or "Mountain"


@dataclasses.dataclass(frozen=True)
class DynamicDefaults:
    driving_consumption_kwh_per_100km: float
    terrain_factor: float


@dataclasses.dataclass(frozen=True)
class ConsumptionBreakdown:
    driving: float
    climate: float
    other: float


@dataclasses.dataclass(frozen=True)
class SensitivityEntry:
    label: str  # Human readable description of the variation
    value: float  # The varied input value
    range_estimate: float  # The resulting range


@dataclasses.dataclass(frozen=True)
class FactorImpact:
    factor: float
    reduction_percent: int
    severity: str  # One of "critical", "caution" or "nominal"


@dataclasses.dataclass(frozen=True)
class DegradationResult:
    range_km: float
    effective_capacity_kwh: float
    degradation: Dict[str, float]  # Percentages for "cycle", "calendar" and "total"
    temp_factor: float
    energy_consumption_kwh_per_100km: float
    range_status: str
    consumption_breakdown: ConsumptionBreakdown
    sensitivity: List[SensitivityEntry]


@dataclasses.dataclass(frozen=True)
class EpaResult:
    range_miles: float
    efficiency_miles_per_kwh: float
    impacts: Dict[str, FactorImpact]  # Keyed by "temperature", "speed", "climate" and "terrain"
    sensitivity: List[SensitivityEntry]


@dataclasses.dataclass(frozen=True)
class EstimateResponse:
    success: bool  # Whether the parameters were valid and a range could be computed
    reason: str  # Reason that the estimate could not be computed (empty on success)
    result: Optional[Union[DegradationResult, EpaResult]]  # None if not successful
