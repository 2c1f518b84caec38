from typing import Any, List, Mapping, Tuple
import dataclasses
import math

from evrange.constants import REFERENCE_TEMPERATURE_C, TEMPERATURE_PENALTY_PER_C, TEMPERATURE_FACTOR_FLOOR, \
    DEGRADATION_FLOOR, CYCLE_DEGRADATION_LINEAR, CYCLE_DEGRADATION_QUADRATIC, CALENDAR_DEGRADATION_SQRT, \
    OTHER_CONSUMPTION_SHARE, DEFAULT_TEMPERATURE_C, DEFAULT_BASE_EFFICIENCY, DEFAULT_CHARGING_DEGRADATION, \
    DEFAULT_BATTERY_AGE_CYCLES, DEFAULT_BATTERY_AGE_YEARS, DEFAULT_CLIMATE_CONTROL_ENABLED, DEFAULT_CLIMATE_FACTOR, \
    DEFAULT_REGEN_BRAKING_ENABLED, DEFAULT_REGEN_FACTOR, LARGE_VEHICLE_CAPACITY_KWH, SMALL_VEHICLE_CAPACITY_KWH, \
    LARGE_VEHICLE_CONSUMPTION, MEDIUM_VEHICLE_CONSUMPTION, SMALL_VEHICLE_CONSUMPTION, LARGE_VEHICLE_TERRAIN_FACTOR, \
    DEFAULT_TERRAIN_FACTOR, SENSITIVITY_STATES_OF_CHARGE, RANGE_CRITICAL_BELOW_KM, RANGE_CAUTION_BELOW_KM, \
    CHARGING_BEHAVIOR_DEGRADATION, DRIVING_STYLE_CONSUMPTION, TERRAIN_PRESET_FACTORS, SEVERITY_CRITICAL, \
    SEVERITY_CAUTION, SEVERITY_NOMINAL
from evrange.rounding import round_half_up
from evrange.types import DegradationParameters, DegradationResult, DynamicDefaults, ConsumptionBreakdown, \
    ConsumptionInputs, SensitivityEntry
from evrange.validation import require_number, require_numbers, optional_number, optional_flag, lookup_preset, \
    is_missing

# Inputs needed in every mode
BASIC_DOMAINS = [
    ("state_of_charge", (0.0, 100.0)),
    ("battery_capacity_kwh", (10.0, 200.0)),
    ("driving_consumption_kwh_per_100km", (5.0, 50.0)),
]

# Additional inputs needed when the advanced parameters are in use
ADVANCED_DOMAINS = [
    ("temperature_c", (-20.0, 50.0)),
    ("base_efficiency", (0.5, 1.0)),
    ("charging_degradation", (0.5, 1.0)),
    ("battery_age_cycles", (0.0, 2000.0)),
    ("battery_age_years", (0.0, 20.0)),
    ("terrain_factor", (1.0, 2.0)),
    ("climate_factor", (0.5, 1.0)),
    ("regen_factor", (1.0, 1.5)),
]

# Named presets and the numeric input each of them fills in
PRESETS = [
    ("charging_behavior", "charging_degradation", CHARGING_BEHAVIOR_DEGRADATION),
    ("driving_style", "driving_consumption_kwh_per_100km", DRIVING_STYLE_CONSUMPTION),
    ("terrain", "terrain_factor", TERRAIN_PRESET_FACTORS),
]


def derive_defaults(battery_capacity_kwh: float) -> DynamicDefaults:
    """
    Derive the consumption and terrain factor to use when no advanced parameters are given. The battery capacity acts
    as a proxy for the vehicle class.

    :param battery_capacity_kwh: The rated battery capacity
    :return: The derived defaults
    """
    if battery_capacity_kwh > LARGE_VEHICLE_CAPACITY_KWH:
        consumption = LARGE_VEHICLE_CONSUMPTION
    elif battery_capacity_kwh < SMALL_VEHICLE_CAPACITY_KWH:
        consumption = SMALL_VEHICLE_CONSUMPTION
    else:
        consumption = MEDIUM_VEHICLE_CONSUMPTION
    terrain_factor = LARGE_VEHICLE_TERRAIN_FACTOR if battery_capacity_kwh > LARGE_VEHICLE_CAPACITY_KWH \
        else DEFAULT_TERRAIN_FACTOR
    return DynamicDefaults(driving_consumption_kwh_per_100km=consumption, terrain_factor=terrain_factor)


def calculate_degradation(battery_age_cycles: float, battery_age_years: float) -> Tuple[float, float, float]:
    """
    Calculate the capacity loss from charge cycles and calendar age

    :param battery_age_cycles: The number of full charge cycles
    :param battery_age_years: The age of the battery in years
    :return: The cycle degradation, the calendar degradation and the remaining capacity fraction
    """
    cycle_degradation = CYCLE_DEGRADATION_LINEAR * battery_age_cycles + \
        CYCLE_DEGRADATION_QUADRATIC * battery_age_cycles ** 2
    calendar_degradation = CALENDAR_DEGRADATION_SQRT * math.sqrt(battery_age_years)
    remaining = max(DEGRADATION_FLOOR, 1.0 - (cycle_degradation + calendar_degradation))
    return cycle_degradation, calendar_degradation, remaining


def calculate_temperature_factor(temperature_c: float) -> float:
    # Symmetric penalty around the reference temperature
    return max(TEMPERATURE_FACTOR_FLOOR,
               1.0 - TEMPERATURE_PENALTY_PER_C * abs(temperature_c - REFERENCE_TEMPERATURE_C))


def calculate_effective_capacity(params: DegradationParameters) -> float:
    """
    Calculate the energy that is actually available for driving

    :param params: The parameters to use
    :return: The effective capacity in kWh
    """
    _, _, remaining = calculate_degradation(params.battery_age_cycles, params.battery_age_years)
    climate_factor = params.climate_factor if params.climate_control_enabled else 1.0
    regen_factor = params.regen_factor if params.regen_braking_enabled else 1.0
    return params.battery_capacity_kwh * (params.state_of_charge / 100.0) * remaining * params.base_efficiency * \
        params.charging_degradation * calculate_temperature_factor(params.temperature_c) * climate_factor * \
        regen_factor


def calculate_energy_consumption(params: DegradationParameters) -> float:
    return params.driving_consumption_kwh_per_100km * params.terrain_factor


def calculate_range(params: DegradationParameters) -> float:
    """
    Calculate the predicted range

    :param params: The parameters to use
    :return: The range in kilometers, rounded to one decimal and never negative
    """
    range_km = calculate_effective_capacity(params) / calculate_energy_consumption(params) * 100.0
    return round_half_up(max(0.0, range_km), 1)


def calculate_sensitivity(params: DegradationParameters) -> List[SensitivityEntry]:
    """
    Recalculate the range for a fixed set of states of charge, holding all other parameters fixed

    :param params: The parameters to use
    :return: One entry per state of charge, in ascending order of state of charge
    """
    return [SensitivityEntry(label=f"{soc}%", value=float(soc),
                             range_estimate=calculate_range(dataclasses.replace(params, state_of_charge=soc)))
            for soc in SENSITIVITY_STATES_OF_CHARGE]


def calculate_consumption_breakdown(params: DegradationParameters) -> ConsumptionBreakdown:
    """
    Split the consumption into driving, climate control and other losses. This is informational only and does not
    feed back into the range. It is based on the consumption inputs as entered where those are known, so in basic
    mode it reflects the entered consumption rather than the one derived from the battery capacity.
    """
    inputs = params.consumption_inputs
    if inputs is None:
        inputs = ConsumptionInputs(driving_consumption_kwh_per_100km=params.driving_consumption_kwh_per_100km,
                                   terrain_factor=params.terrain_factor,
                                   climate_control_enabled=params.climate_control_enabled,
                                   climate_factor=params.climate_factor)
    consumption = inputs.driving_consumption_kwh_per_100km
    climate = consumption * (1.0 - inputs.climate_factor) if inputs.climate_control_enabled else 0.0
    return ConsumptionBreakdown(driving=round_half_up(consumption * inputs.terrain_factor, 2),
                                climate=round_half_up(climate, 2),
                                other=round_half_up(consumption * OTHER_CONSUMPTION_SHARE, 2))


def classify_range(range_km: float) -> str:
    if range_km < RANGE_CRITICAL_BELOW_KM:
        return SEVERITY_CRITICAL
    if range_km < RANGE_CAUTION_BELOW_KM:
        return SEVERITY_CAUTION
    return SEVERITY_NOMINAL


def compute_range(params: DegradationParameters) -> DegradationResult:
    cycle_degradation, calendar_degradation, remaining = calculate_degradation(params.battery_age_cycles,
                                                                               params.battery_age_years)
    range_km = calculate_range(params)
    return DegradationResult(
        range_km=range_km,
        effective_capacity_kwh=round_half_up(calculate_effective_capacity(params), 2),
        degradation=dict(cycle=round_half_up(cycle_degradation * 100.0, 2),
                         calendar=round_half_up(calendar_degradation * 100.0, 2),
                         total=round_half_up((1.0 - remaining) * 100.0, 2)),
        temp_factor=round_half_up(calculate_temperature_factor(params.temperature_c), 3),
        energy_consumption_kwh_per_100km=round_half_up(calculate_energy_consumption(params), 2),
        range_status=classify_range(range_km),
        consumption_breakdown=calculate_consumption_breakdown(params),
        sensitivity=calculate_sensitivity(params),
    )


def apply_presets(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    """
    Fill in numeric inputs from named presets (e.g. driving_style="eco") where the numeric input itself is absent

    :param raw: The raw inputs
    :return: A copy of the raw inputs with presets applied
    """
    resolved = dict(raw)
    for preset_key, target_key, presets in PRESETS:
        value = lookup_preset(raw, preset_key, presets)
        if value is not None and is_missing(raw, target_key):
            resolved[target_key] = value
    return resolved


def resolve_parameters(raw: Mapping[str, Any], advanced: bool = False) -> DegradationParameters:
    """
    Validate raw inputs and resolve them into a full set of parameters.

    In basic mode only the state of charge, battery capacity and driving consumption are required. The driving
    consumption is validated, but the consumption and terrain factor actually used are derived from the battery
    capacity, and all other parameters take their defaults. The entered consumption, terrain factor and climate
    control settings are kept for the consumption breakdown. In advanced mode every numeric parameter is required.

    :param raw: The raw inputs, keyed by parameter name
    :param advanced: Whether the advanced parameters are in use
    :return: The resolved parameters
    """
    raw = apply_presets(raw)
    basic = require_numbers(raw, BASIC_DOMAINS)
    domains = dict(ADVANCED_DOMAINS)
    consumption_inputs = ConsumptionInputs(
        driving_consumption_kwh_per_100km=basic["driving_consumption_kwh_per_100km"],
        terrain_factor=optional_number(raw, "terrain_factor", DEFAULT_TERRAIN_FACTOR, domains["terrain_factor"]),
        climate_control_enabled=optional_flag(raw, "climate_control_enabled", DEFAULT_CLIMATE_CONTROL_ENABLED),
        climate_factor=optional_number(raw, "climate_factor", DEFAULT_CLIMATE_FACTOR, domains["climate_factor"]),
    )
    if not advanced:
        defaults = derive_defaults(basic["battery_capacity_kwh"])
        return DegradationParameters(
            state_of_charge=basic["state_of_charge"],
            battery_capacity_kwh=basic["battery_capacity_kwh"],
            driving_consumption_kwh_per_100km=defaults.driving_consumption_kwh_per_100km,
            temperature_c=DEFAULT_TEMPERATURE_C,
            base_efficiency=DEFAULT_BASE_EFFICIENCY,
            charging_degradation=DEFAULT_CHARGING_DEGRADATION,
            battery_age_cycles=DEFAULT_BATTERY_AGE_CYCLES,
            battery_age_years=DEFAULT_BATTERY_AGE_YEARS,
            terrain_factor=defaults.terrain_factor,
            climate_control_enabled=DEFAULT_CLIMATE_CONTROL_ENABLED,
            climate_factor=DEFAULT_CLIMATE_FACTOR,
            regen_braking_enabled=DEFAULT_REGEN_BRAKING_ENABLED,
            regen_factor=DEFAULT_REGEN_FACTOR,
            consumption_inputs=consumption_inputs,
        )

    advanced_values = require_numbers(raw, ADVANCED_DOMAINS)
    return DegradationParameters(
        climate_control_enabled=optional_flag(raw, "climate_control_enabled", DEFAULT_CLIMATE_CONTROL_ENABLED),
        regen_braking_enabled=optional_flag(raw, "regen_braking_enabled", DEFAULT_REGEN_BRAKING_ENABLED),
        consumption_inputs=consumption_inputs,
        **basic,
        **advanced_values,
    )


def resolve_capacity(raw: Mapping[str, Any]) -> float:
    """
    Validate just the battery capacity, e.g. for looking up the derived defaults
    """
    return require_number(raw, "battery_capacity_kwh", dict(BASIC_DOMAINS)["battery_capacity_kwh"])

