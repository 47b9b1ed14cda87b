"""Physical parameters of a double helix.

All lengths are expressed in nanometers and all angles in radians.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict

__all__ = ["HelixParameters", "GEARY_2014_DNA"]


@dataclass(frozen=True)
class HelixParameters:
    """Geometry of a double helix.

    Attributes:
        rise: Distance between two consecutive base pairs along the axis.
        helix_radius: Distance between the axis and a nucleotide.
        bases_per_turn: Number of base pairs in one full turn of the helix.
        groove_angle: Angle between the two nucleotides of a base pair.
        inter_helix_gap: Minimum distance between the surfaces of two helices.
        inclination: Shift, along the axis, of the backward strand
            nucleotides relative to the forward ones.
    """

    rise: float = 0.332
    helix_radius: float = 1.0
    bases_per_turn: float = 10.44
    groove_angle: float = -24.0 * math.pi / 34.0
    inter_helix_gap: float = 0.65
    inclination: float = 0.0

    def __post_init__(self) -> None:
        if self.rise <= 0:
            raise ValueError("rise must be positive")
        if self.helix_radius <= 0:
            raise ValueError("helix radius must be positive")
        if self.bases_per_turn <= 0:
            raise ValueError("bases per turn must be positive")

    def inter_helix_axis_gap(self) -> float:
        """Distance between the axes of two neighbouring helices."""
        return 2.0 * self.helix_radius + self.inter_helix_gap

    def dist_ac(self) -> float:
        """Distance between two consecutive nucleotides of the same strand."""
        chord = (
            math.sqrt(2.0)
            * math.sqrt(1.0 - math.cos(2.0 * math.pi / self.bases_per_turn))
            * self.helix_radius
        )
        return math.sqrt(chord * chord + self.rise * self.rise)

    def theta(self, n: int, forward: bool, roll: float = 0.0) -> float:
        """Phase of nucleotide ``n`` around the helix axis."""
        shift = 0.0 if forward else self.groove_angle
        return n * 2.0 * math.pi / self.bases_per_turn + shift + roll + math.pi

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HelixParameters":
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"unknown helix parameter(s): {', '.join(sorted(unknown))}")
        return cls(**{key: float(value) for key, value in data.items()})


GEARY_2014_DNA = HelixParameters()
