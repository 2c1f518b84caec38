import dataclasses
from typing import Any, Dict

import pytest

from evrange.degradation_model import derive_defaults, calculate_degradation, calculate_temperature_factor, \
    calculate_range, calculate_sensitivity, calculate_consumption_breakdown, classify_range, compute_range, \
    apply_presets, resolve_parameters, resolve_capacity
from evrange.estimator import estimate_range
from evrange.types import ConsumptionInputs, DegradationParameters, DynamicDefaults
from evrange.validation import ValidationError


@pytest.fixture()
def basic_inputs() -> Dict[str, Any]:
    return dict(state_of_charge=80, battery_capacity_kwh=60, driving_consumption_kwh_per_100km=16)


@pytest.fixture()
def advanced_inputs(basic_inputs: Dict[str, Any]) -> Dict[str, Any]:
    return dict(basic_inputs, temperature_c=25, base_efficiency=0.98, charging_degradation=0.98, battery_age_cycles=100,
                battery_age_years=2, terrain_factor=1.0, climate_factor=0.85, regen_factor=1.05)


@pytest.fixture()
def default_parameters(basic_inputs: Dict[str, Any]) -> DegradationParameters:
    return resolve_parameters(basic_inputs)


def test_derive_defaults() -> None:
    assert derive_defaults(30) == DynamicDefaults(14.0, 1.0)
    assert derive_defaults(39.9) == DynamicDefaults(14.0, 1.0)
    assert derive_defaults(40) == DynamicDefaults(16.0, 1.0)
    assert derive_defaults(60) == DynamicDefaults(16.0, 1.0)
    assert derive_defaults(75) == DynamicDefaults(16.0, 1.0)
    assert derive_defaults(75.1) == DynamicDefaults(18.0, 1.05)
    assert derive_defaults(100) == DynamicDefaults(18.0, 1.05)


def test_calculate_degradation() -> None:
    cycle, calendar, remaining = calculate_degradation(100, 2)
    assert cycle == pytest.approx(0.0102)
    assert calendar == pytest.approx(0.0282843, abs=1e-6)
    assert remaining == pytest.approx(1.0 - 0.0102 - 0.0282843, abs=1e-6)

    # A new battery has not degraded at all
    assert calculate_degradation(0, 0) == (0.0, 0.0, 1.0)


def test_calculate_degradation_is_floored() -> None:
    assert calculate_degradation(2000, 20)[2] == 0.7
    assert calculate_degradation(1e6, 1e4)[2] == 0.7


def test_calculate_temperature_factor() -> None:
    assert calculate_temperature_factor(25) == 1.0
    assert calculate_temperature_factor(5) == pytest.approx(0.9)
    assert calculate_temperature_factor(45) == pytest.approx(0.9)
    assert calculate_temperature_factor(-20) == pytest.approx(0.775)
    assert calculate_temperature_factor(-45) == 0.7


def test_compute_range_regression(default_parameters: DegradationParameters) -> None:
    result = compute_range(default_parameters)
    assert result.range_km == 290.9
    assert result.effective_capacity_kwh == 46.54
    assert result.degradation == dict(cycle=1.02, calendar=2.83, total=3.85)
    assert result.temp_factor == 1.0
    assert result.energy_consumption_kwh_per_100km == 16.0
    assert result.range_status == "nominal"


def test_compute_range_is_pure(default_parameters: DegradationParameters) -> None:
    assert compute_range(default_parameters) == compute_range(dataclasses.replace(default_parameters))


def test_compute_range_reports_floored_degradation(default_parameters: DegradationParameters) -> None:
    result = compute_range(dataclasses.replace(default_parameters, battery_age_cycles=2000, battery_age_years=20))
    assert result.degradation["total"] == 30.0
    assert result.degradation["cycle"] == 28.0


def test_calculate_range_never_negative(default_parameters: DegradationParameters) -> None:
    assert calculate_range(dataclasses.replace(default_parameters, state_of_charge=0)) == 0.0


def test_climate_and_regen_only_apply_when_enabled(default_parameters: DegradationParameters) -> None:
    base = calculate_range(dataclasses.replace(default_parameters, regen_braking_enabled=False))

    # Changing the factors has no effect while the features are disabled
    changed = dataclasses.replace(default_parameters, regen_braking_enabled=False, climate_factor=0.5,
                                  regen_factor=1.5)
    assert calculate_range(changed) == base

    with_climate = dataclasses.replace(default_parameters, regen_braking_enabled=False, climate_control_enabled=True)
    assert calculate_range(with_climate) < base
    assert calculate_range(dataclasses.replace(default_parameters)) > base


def test_terrain_factor_reduces_range(default_parameters: DegradationParameters) -> None:
    hilly = dataclasses.replace(default_parameters, terrain_factor=1.1)
    assert calculate_range(hilly) < calculate_range(default_parameters)
    assert compute_range(hilly).energy_consumption_kwh_per_100km == 17.6


def test_calculate_sensitivity(default_parameters: DegradationParameters) -> None:
    sensitivity = calculate_sensitivity(default_parameters)
    assert [s.value for s in sensitivity] == [10.0, 30.0, 50.0, 70.0, 90.0]
    assert [s.label for s in sensitivity] == ["10%", "30%", "50%", "70%", "90%"]
    assert [s.range_estimate for s in sensitivity] == [36.4, 109.1, 181.8, 254.5, 327.2]


def test_calculate_sensitivity_is_monotonic(advanced_inputs: Dict[str, Any]) -> None:
    for temperature_c in (-20, 0, 25, 50):
        for terrain_factor in (1.0, 1.5, 2.0):
            params = resolve_parameters(dict(advanced_inputs, temperature_c=temperature_c,
                                             terrain_factor=terrain_factor, climate_control_enabled=True),
                                        advanced=True)
            ranges = [s.range_estimate for s in calculate_sensitivity(params)]
            assert ranges == sorted(ranges)


def test_calculate_consumption_breakdown(default_parameters: DegradationParameters) -> None:
    breakdown = calculate_consumption_breakdown(default_parameters)
    assert breakdown.driving == 16.0
    assert breakdown.climate == 0.0
    assert breakdown.other == 1.6

    inputs = ConsumptionInputs(driving_consumption_kwh_per_100km=16, terrain_factor=1.2, climate_control_enabled=True,
                               climate_factor=0.85)
    breakdown = calculate_consumption_breakdown(dataclasses.replace(default_parameters, consumption_inputs=inputs))
    assert breakdown.driving == 19.2
    assert breakdown.climate == 2.4
    assert breakdown.other == 1.6

    # Without known inputs, the breakdown falls back to the parameters used for the range
    breakdown = calculate_consumption_breakdown(dataclasses.replace(default_parameters, consumption_inputs=None,
                                                                    terrain_factor=1.1, climate_control_enabled=True))
    assert breakdown.driving == 17.6
    assert breakdown.climate == 2.4


def test_consumption_breakdown_uses_entered_consumption_in_basic_mode() -> None:
    """
    Test that basic mode derives the consumption used for the range from the battery capacity, while the consumption
    breakdown reflects the consumption that was entered
    """
    response = estimate_range("degradation", dict(state_of_charge=80, battery_capacity_kwh=100,
                                                  driving_consumption_kwh_per_100km=25))
    assert response.success is True
    assert response.result.energy_consumption_kwh_per_100km == 18.9
    breakdown = response.result.consumption_breakdown
    assert (breakdown.driving, breakdown.other) == (25.0, 2.5)
    assert breakdown.climate == 0.0

    # The entered terrain factor and climate control settings are used as well
    response = estimate_range("degradation", dict(state_of_charge=80, battery_capacity_kwh=100,
                                                  driving_consumption_kwh_per_100km=20, terrain_factor=1.2,
                                                  climate_control_enabled=True, climate_factor=0.75))
    breakdown = response.result.consumption_breakdown
    assert (breakdown.driving, breakdown.climate, breakdown.other) == (24.0, 5.0, 2.0)
    assert response.result.energy_consumption_kwh_per_100km == 18.9


def test_compute_range_rounds_ties_up(advanced_inputs: Dict[str, Any]) -> None:
    params = resolve_parameters(dict(advanced_inputs, driving_consumption_kwh_per_100km=5.125), advanced=True)
    result = compute_range(params)
    assert result.energy_consumption_kwh_per_100km == 5.13
    assert result.consumption_breakdown.driving == 5.13


def test_classify_range() -> None:
    assert classify_range(0) == "critical"
    assert classify_range(49.9) == "critical"
    assert classify_range(50) == "caution"
    assert classify_range(149.9) == "caution"
    assert classify_range(150) == "nominal"


def test_resolve_parameters_basic_mode_uses_defaults(basic_inputs: Dict[str, Any]) -> None:
    # Advanced inputs are ignored in basic mode, and consumption is derived from capacity
    params = resolve_parameters(dict(basic_inputs, battery_capacity_kwh=100, driving_consumption_kwh_per_100km=25,
                                     temperature_c=-10, climate_control_enabled=True))
    assert params.driving_consumption_kwh_per_100km == 18.0
    assert params.terrain_factor == 1.05
    assert params.temperature_c == 25.0
    assert params.base_efficiency == 0.98
    assert params.charging_degradation == 0.98
    assert params.battery_age_cycles == 100
    assert params.battery_age_years == 2
    assert params.climate_control_enabled is False
    assert params.climate_factor == 0.85
    assert params.regen_braking_enabled is True
    assert params.regen_factor == 1.05


def test_resolve_parameters_advanced_mode(advanced_inputs: Dict[str, Any]) -> None:
    params = resolve_parameters(dict(advanced_inputs, driving_consumption_kwh_per_100km=20, temperature_c=5,
                                     regen_braking_enabled=False), advanced=True)
    assert params.driving_consumption_kwh_per_100km == 20.0
    assert params.temperature_c == 5.0
    assert params.climate_control_enabled is False
    assert params.regen_braking_enabled is False

    # With every advanced input at its default, the result matches basic mode
    assert resolve_parameters(advanced_inputs, advanced=True) == resolve_parameters(advanced_inputs)


def test_resolve_parameters_accepts_numeric_strings(basic_inputs: Dict[str, Any]) -> None:
    as_strings = {key: str(value) for key, value in basic_inputs.items()}
    assert resolve_parameters(as_strings) == resolve_parameters(basic_inputs)


@pytest.mark.parametrize("key", ["state_of_charge", "battery_capacity_kwh", "driving_consumption_kwh_per_100km"])
@pytest.mark.parametrize("value", [None, "", "  ", "abc", True, "nan", float("inf"), [80]])
def test_resolve_parameters_rejects_invalid_required(basic_inputs: Dict[str, Any], key: str, value: Any) -> None:
    with pytest.raises(ValidationError) as e:
        resolve_parameters(dict(basic_inputs, **{key: value}))
    assert e.value.field == key


def test_resolve_parameters_rejects_missing_required(basic_inputs: Dict[str, Any]) -> None:
    del basic_inputs["driving_consumption_kwh_per_100km"]
    with pytest.raises(ValidationError, match="driving_consumption_kwh_per_100km: is required"):
        resolve_parameters(basic_inputs)


def test_resolve_parameters_advanced_requires_all(advanced_inputs: Dict[str, Any]) -> None:
    for key in ["temperature_c", "base_efficiency", "charging_degradation", "battery_age_cycles", "battery_age_years",
                "terrain_factor", "climate_factor", "regen_factor"]:
        inputs = dict(advanced_inputs)
        del inputs[key]
        with pytest.raises(ValidationError) as e:
            resolve_parameters(inputs, advanced=True)
        assert e.value.field == key

        # Basic mode does not need the advanced inputs
        resolve_parameters(inputs, advanced=False)


@pytest.mark.parametrize("key, value", [
    ("state_of_charge", -1), ("state_of_charge", 100.5), ("battery_capacity_kwh", 5),
    ("battery_capacity_kwh", 201), ("driving_consumption_kwh_per_100km", 0), ("temperature_c", 51),
    ("base_efficiency", 0.4), ("charging_degradation", 1.1), ("battery_age_cycles", 2001),
    ("battery_age_years", -1), ("terrain_factor", 0.9), ("climate_factor", 1.2), ("regen_factor", 1.6),
])
def test_resolve_parameters_rejects_out_of_domain(advanced_inputs: Dict[str, Any], key: str, value: float) -> None:
    with pytest.raises(ValidationError, match="has to be in range"):
        resolve_parameters(dict(advanced_inputs, **{key: value}), advanced=True)


def test_resolve_parameters_rejects_non_boolean_flags(advanced_inputs: Dict[str, Any]) -> None:
    with pytest.raises(ValidationError) as e:
        resolve_parameters(dict(advanced_inputs, climate_control_enabled="yes"), advanced=True)
    assert e.value.field == "climate_control_enabled"


def test_apply_presets(advanced_inputs: Dict[str, Any]) -> None:
    del advanced_inputs["charging_degradation"]
    del advanced_inputs["terrain_factor"]
    del advanced_inputs["driving_consumption_kwh_per_100km"]
    inputs = dict(advanced_inputs, charging_behavior="fast", driving_style="aggressive", terrain="mountainous")
    resolved = apply_presets(inputs)
    assert resolved["charging_degradation"] == 0.90
    assert resolved["driving_consumption_kwh_per_100km"] == 20.0
    assert resolved["terrain_factor"] == 1.2
    assert "charging_degradation" not in inputs

    params = resolve_parameters(inputs, advanced=True)
    assert params.charging_degradation == 0.90


def test_apply_presets_keeps_explicit_values(advanced_inputs: Dict[str, Any]) -> None:
    resolved = apply_presets(dict(advanced_inputs, driving_style="eco", terrain="hilly"))
    assert resolved["driving_consumption_kwh_per_100km"] == 16
    assert resolved["terrain_factor"] == 1.0


def test_apply_presets_rejects_unknown_names(advanced_inputs: Dict[str, Any]) -> None:
    with pytest.raises(ValidationError) as e:
        apply_presets(dict(advanced_inputs, driving_style="reckless"))
    assert e.value.field == "driving_style"


def test_resolve_capacity() -> None:
    assert resolve_capacity(dict(battery_capacity_kwh="82")) == 82.0
    with pytest.raises(ValidationError):
        resolve_capacity(dict())
    with pytest.raises(ValidationError):
        resolve_capacity(dict(battery_capacity_kwh=500))
