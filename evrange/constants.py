# Degradation model (range in km)
REFERENCE_TEMPERATURE_C = 25.0
TEMPERATURE_PENALTY_PER_C = 0.005
TEMPERATURE_FACTOR_FLOOR = 0.7
DEGRADATION_FLOOR = 0.7  # Never assume less than 70% of the original capacity is left
CYCLE_DEGRADATION_LINEAR = 0.0001
CYCLE_DEGRADATION_QUADRATIC = 0.00000002
CALENDAR_DEGRADATION_SQRT = 0.02
OTHER_CONSUMPTION_SHARE = 0.1  # Unmodelled losses as a share of driving consumption

DEFAULT_TEMPERATURE_C = 25.0
DEFAULT_BASE_EFFICIENCY = 0.98
DEFAULT_CHARGING_DEGRADATION = 0.98
DEFAULT_BATTERY_AGE_CYCLES = 100
DEFAULT_BATTERY_AGE_YEARS = 2
DEFAULT_CLIMATE_CONTROL_ENABLED = False
DEFAULT_CLIMATE_FACTOR = 0.85
DEFAULT_REGEN_BRAKING_ENABLED = True
DEFAULT_REGEN_FACTOR = 1.05

# Capacity is used as a proxy for vehicle class when deriving defaults
LARGE_VEHICLE_CAPACITY_KWH = 75
SMALL_VEHICLE_CAPACITY_KWH = 40
LARGE_VEHICLE_CONSUMPTION = 18.0
MEDIUM_VEHICLE_CONSUMPTION = 16.0
SMALL_VEHICLE_CONSUMPTION = 14.0
LARGE_VEHICLE_TERRAIN_FACTOR = 1.05
DEFAULT_TERRAIN_FACTOR = 1.0

SENSITIVITY_STATES_OF_CHARGE = (10, 30, 50, 70, 90)

RANGE_CRITICAL_BELOW_KM = 50
RANGE_CAUTION_BELOW_KM = 150

# Presets offered by the calculator, each filling in one numeric input
CHARGING_BEHAVIOR_DEGRADATION = {"standard": 0.98, "fast": 0.90, "mixed": 0.94}
DRIVING_STYLE_CONSUMPTION = {"eco": 14.0, "normal": 16.0, "aggressive": 20.0}
TERRAIN_PRESET_FACTORS = {"flat": 1.0, "hilly": 1.1, "mountainous": 1.2}

# EPA model (range in miles)
REFERENCE_TEMPERATURE_F = 70.0
TEMPERATURE_PENALTY_PER_F = 0.015
REFERENCE_SPEED_MPH = 25.0
SPEED_PENALTY = 0.0008
EPA_FACTOR_FLOOR = 0.4
CLIMATE_USAGE_FACTORS = {"Low": 0.95, "Medium": 0.85, "High": 0.75}
TERRAIN_TYPE_FACTORS = {"Flat": 1.0, "Hilly": 0.9, "Mountain": 0.8}
SCENARIO_TEMPERATURE_DROP_F = 10.0
SCENARIO_SPEED_INCREASE_MPH = 10.0
IMPACT_CRITICAL_BELOW = 0.9  # More than a 10% reduction
IMPACT_CAUTION_BELOW = 0.95  # More than a 5% reduction

SEVERITY_CRITICAL = "critical"
SEVERITY_CAUTION = "caution"
SEVERITY_NOMINAL = "nominal"
