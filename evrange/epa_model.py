from typing import Any, Dict, List, Mapping

from evrange.constants import REFERENCE_TEMPERATURE_F, TEMPERATURE_PENALTY_PER_F, REFERENCE_SPEED_MPH, SPEED_PENALTY, \
    EPA_FACTOR_FLOOR, CLIMATE_USAGE_FACTORS, TERRAIN_TYPE_FACTORS, SCENARIO_TEMPERATURE_DROP_F, \
    SCENARIO_SPEED_INCREASE_MPH, IMPACT_CRITICAL_BELOW, IMPACT_CAUTION_BELOW, SEVERITY_CRITICAL, SEVERITY_CAUTION, \
    SEVERITY_NOMINAL
from evrange.rounding import round_half_up
from evrange.types import EpaParameters, EpaResult, FactorImpact, SensitivityEntry
from evrange.validation import require_numbers, require_choice

DOMAINS = [
    ("battery_capacity_kwh", (0.0, 200.0)),
    ("epa_range_miles", (0.0, 1000.0)),
    ("current_charge_percent", (0.0, 100.0)),
    ("temperature_f", (-20.0, 120.0)),
    ("avg_speed_mph", (5.0, 85.0)),
]


def calculate_temperature_factor(temperature_f: float) -> float:
    """
    Calculate the range multiplier for the outside temperature, penalizing any deviation from the reference
    temperature. The factor is floored so that extreme temperatures cannot make the range negative.

    :param temperature_f: The outside temperature in Fahrenheit
    :return: The temperature factor
    """
    return max(EPA_FACTOR_FLOOR, 1.0 - abs(temperature_f - REFERENCE_TEMPERATURE_F) * TEMPERATURE_PENALTY_PER_F)


def calculate_speed_factor(avg_speed_mph: float) -> float:
    """
    Calculate the range multiplier for the average speed. Only speeds above the reference speed are penalized.

    :param avg_speed_mph: The average speed in mph
    :return: The speed factor, floored like the temperature factor
    """
    excess_speed = max(0.0, avg_speed_mph - REFERENCE_SPEED_MPH)
    return max(EPA_FACTOR_FLOOR, 1.0 - excess_speed ** 2 * SPEED_PENALTY)


def calculate_factors(params: EpaParameters) -> Dict[str, float]:
    return dict(temperature=calculate_temperature_factor(params.temperature_f),
                speed=calculate_speed_factor(params.avg_speed_mph),
                climate=CLIMATE_USAGE_FACTORS[params.climate_usage],
                terrain=TERRAIN_TYPE_FACTORS[params.terrain_type])


def estimate_range(params: EpaParameters, factors: Dict[str, float]) -> float:
    """
    Scale the EPA range by the current charge and the given condition factors

    :param params: The parameters to use
    :param factors: The temperature, speed, climate and terrain factors
    :return: The estimated range in miles
    """
    return params.epa_range_miles * (params.current_charge_percent / 100.0) * factors["temperature"] * \
        factors["speed"] * factors["climate"] * factors["terrain"]


def calculate_efficiency(params: EpaParameters, range_miles: float) -> float:
    available_kwh = params.battery_capacity_kwh * (params.current_charge_percent / 100.0)
    if available_kwh <= 0:
        return 0.0
    return range_miles / available_kwh


def classify_factor(factor: float) -> str:
    if factor < IMPACT_CRITICAL_BELOW:
        return SEVERITY_CRITICAL
    if factor < IMPACT_CAUTION_BELOW:
        return SEVERITY_CAUTION
    return SEVERITY_NOMINAL


def calculate_impacts(factors: Dict[str, float]) -> Dict[str, FactorImpact]:
    return {name: FactorImpact(factor=factor, reduction_percent=int(round_half_up((1.0 - factor) * 100.0)),
                               severity=classify_factor(factor))
            for name, factor in factors.items()}


def calculate_sensitivity(params: EpaParameters, factors: Dict[str, float]) -> List[SensitivityEntry]:
    """
    Recalculate the range for three fixed scenarios, each one varying a single factor while holding the others at
    their current values

    :param params: The parameters to use
    :param factors: The current temperature, speed, climate and terrain factors
    :return: The colder, faster and high climate use scenarios, in that order
    """
    colder_f = params.temperature_f - SCENARIO_TEMPERATURE_DROP_F
    faster_mph = params.avg_speed_mph + SCENARIO_SPEED_INCREASE_MPH
    high_climate = CLIMATE_USAGE_FACTORS["High"]
    scenarios = [
        (f"{SCENARIO_TEMPERATURE_DROP_F:g}°F colder", colder_f,
         dict(temperature=calculate_temperature_factor(colder_f))),
        (f"+{SCENARIO_SPEED_INCREASE_MPH:g} mph faster", faster_mph,
         dict(speed=calculate_speed_factor(faster_mph))),
        ("High climate use", high_climate, dict(climate=high_climate)),
    ]
    return [SensitivityEntry(label=label, value=value, range_estimate=estimate_range(params, {**factors, **changed}))
            for label, value, changed in scenarios]


def compute_range(params: EpaParameters) -> EpaResult:
    factors = calculate_factors(params)
    range_miles = estimate_range(params, factors)
    return EpaResult(range_miles=range_miles,
                     efficiency_miles_per_kwh=calculate_efficiency(params, range_miles),
                     impacts=calculate_impacts(factors),
                     sensitivity=calculate_sensitivity(params, factors))


def resolve_parameters(raw: Mapping[str, Any], advanced: bool = False) -> EpaParameters:
    """
    Validate raw inputs into EPA model parameters. All inputs are required; the EPA model has no advanced mode, so
    the flag is accepted only for a uniform calling convention.

    :param raw: The raw inputs, keyed by parameter name
    :param advanced: Ignored
    :return: The validated parameters
    """
    numbers = require_numbers(raw, DOMAINS)
    return EpaParameters(climate_usage=require_choice(raw, "climate_usage", CLIMATE_USAGE_FACTORS.keys()),
                         terrain_type=require_choice(raw, "terrain_type", TERRAIN_TYPE_FACTORS.keys()),
                         **numbers)
