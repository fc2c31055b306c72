from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

ARCHETYPES = ("tropical_wet", "monsoon", "maritime", "polar", "temperate", "continental")


class StreakCaps(BaseModel):
  model_config = ConfigDict(frozen=True)

  soft: int = Field(gt=0)
  hard: int = Field(gt=0)

  @model_validator(mode="after")
  def _ordered(self):
    if self.hard <= self.soft:
      raise ValueError(f"hard cap ({self.hard}) must exceed soft cap ({self.soft})")
    return self


def _default_caps() -> Dict[str, StreakCaps]:
  return {
    "tropical_wet": StreakCaps(soft=10, hard=20),
    "monsoon": StreakCaps(soft=14, hard=28),
    "maritime": StreakCaps(soft=10, hard=20),
    "polar": StreakCaps(soft=6, hard=14),
    "temperate": StreakCaps(soft=8, hard=16),
    "continental": StreakCaps(soft=6, hard=12),
  }


class EngineSettings(BaseModel):
  model_config = ConfigDict(frozen=True)

  cycle_length_days: int = Field(default=4, gt=0)
  blend_hours: int = Field(default=12, ge=0)
  pattern_epoch_cycles: int = Field(default=16, gt=1)
  pattern_fatigue: Tuple[float, float, float] = (0.5, 0.25, 0.1)

  hourly_precip_scale: float = 0.3
  max_hourly_precip: float = Field(default=0.85, gt=0.0, lt=1.0)
  streak_caps: Dict[str, StreakCaps] = Field(default_factory=_default_caps)
  streak_decay_floor: float = Field(default=0.15, gt=0.0, le=1.0)
  forced_break_hours: int = Field(default=3, gt=0)
  event_reset_hours: int = Field(default=3, gt=0)
  lull_block_hours: int = Field(default=48, gt=0)
  lull_hours: int = Field(default=3, gt=0)
  trend_hours: int = Field(default=3, gt=0)

  ground_lookback_multiplier: float = 1.0
  snow_replay_days: int = Field(default=14, gt=0)
  drought_lookback_days: int = Field(default=30, gt=0)
  flood_lookback_days: int = Field(default=14, gt=0)
  temperature_lookback_days: int = Field(default=14, gt=0)

  cache_max_entries: Optional[int] = 200000

  @model_validator(mode="after")
  def _check(self):
    missing = [a for a in ARCHETYPES if a not in self.streak_caps]
    if missing:
      raise ValueError(f"streak_caps missing archetypes: {', '.join(missing)}")
    # three raw-dry hours must be able to absorb a full forced break
    if self.lull_hours < self.event_reset_hours or self.forced_break_hours > self.event_reset_hours:
      raise ValueError("lull_hours and forced_break_hours must fit the event reset window")
    return self

  def caps_for(self, archetype: str) -> StreakCaps:
    return self.streak_caps.get(archetype, self.streak_caps["temperate"])

  @property
  def replay_limit_hours(self) -> int:
    return 2 * self.lull_block_hours + self.lull_hours + 1


def load_settings(path: Optional[Union[str, Path]] = None) -> EngineSettings:
  if path is None:
    path = Path(__file__).parent.parent / "config" / "engine.yaml"
  raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
  return EngineSettings(**raw.get("engine", raw))
