"""Typed filter selection and plug-type naming tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


PLUG_TYPE_CODES = {
    "Typ2": "IEC_62196_T2",
    "CCS": "IEC_62196_T2_COMBO",
    "CHAdeMO": "CHADEMO",
    "Tesla": "TESLA",
}

_PLUG_DISPLAY_NAMES = {
    "IEC_62196_T2": "Typ2",
    "IEC_62196_T2_COMBO": "CCS",
    "CHADEMO": "CHAdeMO",
    "TESLA": "Tesla",
}


class SpeedTier(str, Enum):
    """Coarse maximum-power buckets offered by the filter."""

    all = "all"
    upto_50 = "upto_50"
    from_50 = "from_50"
    from_100 = "from_100"
    from_200 = "from_200"
    from_300 = "from_300"

    @property
    def threshold_kw(self) -> Optional[int]:
        return _SPEED_THRESHOLDS.get(self)

    @classmethod
    def parse(cls, value: str | None) -> "SpeedTier":
        """Lenient lookup used for persisted values; unknown tiers mean ``all``."""
        if value is None:
            return cls.all
        try:
            return cls(value.strip())
        except ValueError:
            return cls.all


_SPEED_THRESHOLDS = {
    SpeedTier.upto_50: 50,
    SpeedTier.from_50: 50,
    SpeedTier.from_100: 100,
    SpeedTier.from_200: 200,
    SpeedTier.from_300: 300,
}


def to_plug_code(plug: str) -> str:
    """Map a friendly plug name to its technical code, passing codes through."""
    return PLUG_TYPE_CODES.get(plug, plug)


def format_plug_type(plug_type: str) -> str:
    return _PLUG_DISPLAY_NAMES.get(plug_type, plug_type)


@dataclass(frozen=True)
class FilterSelection:
    speed_tier: SpeedTier = SpeedTier.all
    plug_types: FrozenSet[str] = field(default_factory=frozenset)
    require_parking_sensor: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.speed_tier, SpeedTier):
            object.__setattr__(self, "speed_tier", SpeedTier(self.speed_tier))
        if not isinstance(self.plug_types, frozenset):
            object.__setattr__(self, "plug_types", frozenset(self.plug_types))

    @property
    def plug_codes(self) -> FrozenSet[str]:
        return frozenset(to_plug_code(plug) for plug in self.plug_types)
