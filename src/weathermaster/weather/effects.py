"""Severity-dependent weather effect strings and gameplay effect keys."""

from typing import Dict, List, Tuple

# Gameplay effect keys per condition; conditions not listed carry none
GAMEPLAY_EFFECTS: Dict[str, Tuple[str, ...]] = {
    "Light Rain": ("fire_damage_penalty",),
    "Rain": ("slowed_wagon_travel", "rest_save_dc12", "fire_damage_penalty"),
    "Heavy Rain": ("slowed_wagon_travel", "rest_save_dc16", "fire_damage_penalty", "flooding_risk"),
    "Light Snow": ("cold_damage_bonus",),
    "Snow": ("half_travel_speed", "heavy_cloud_cover", "cold_damage_bonus"),
    "Heavy Snow": ("half_travel_speed", "difficult_terrain", "heavy_cloud_cover", "cold_damage_bonus"),
    "Sleet": ("slippery_ground", "half_travel_speed"),
    "Freezing Rain": ("icy_ground", "half_travel_speed", "ranged_disadvantage"),
    "Thunderstorm": ("lightly_obscured", "lightning_strike_risk", "ranged_disadvantage", "slowed_wagon_travel"),
    "Blizzard": ("heavily_obscured", "difficult_terrain", "exposure_save", "cold_damage_bonus"),
    "Fog": ("heavily_obscured",),
    "Mist": ("lightly_obscured",),
    "Overcast": ("heavy_cloud_cover",),
}


def gameplay_effects(condition: str) -> Tuple[str, ...]:
    return GAMEPLAY_EFFECTS.get(condition, ())


def weather_effects(condition: str, temperature: float, wind_speed: float, precip_heavy: bool) -> List[str]:
    """Human-readable effects for an hour.

    Args:
        condition: Condition label
        temperature: Air temperature °F
        wind_speed: Sustained wind mph
        precip_heavy: True when precipitation intensity is heavy

    Returns:
        Effect strings ordered by severity group
    """
    effects: List[str] = []
    if temperature <= -10:
        effects.append("Extreme cold: exposed skin freezes within minutes")
    elif temperature <= 0:
        effects.append("Severe cold: exposure risk without proper gear")
    if temperature >= 100:
        effects.append("Extreme heat: double water consumption, exhaustion risk")
    elif temperature >= 90:
        effects.append("High heat: increased water consumption")
    if wind_speed >= 40:
        effects.append("Gale force winds: ranged attacks at disadvantage, flying hampered")
    elif wind_speed >= 25:
        effects.append("Strong winds: ranged attacks penalized")
    if precip_heavy and condition not in ("Thunderstorm", "Blizzard"):
        effects.append("Heavy precipitation: visibility and travel reduced")
    if condition == "Freezing Rain":
        effects.append("Freezing rain: ice glazes every surface")
    if condition == "Fog":
        effects.append("Dense fog: heavily obscured beyond 30 feet")
    if condition == "Thunderstorm":
        effects.append("Thunderstorm: lightning strike risk during extended travel")
    if condition == "Blizzard":
        effects.append("Blizzard: whiteout conditions and dangerous exposure")
    return effects
