"""
Bot colors for Cellbots.

A bot's color is both a display attribute and a hereditary marker: it is
copied to offspring, drifts under mutation, and is tinted toward a fixed
palette color every time the bot performs an action. Channels are unit
floats in [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value to [low, high]."""
    return max(low, min(high, value))


@dataclass(slots=True)
class Color:
    """
    RGBA color with unit-float channels.

    Attributes:
        r, g, b: Channel intensities in [0, 1].
        a: Opacity in [0, 1].
    """
    r: float
    g: float
    b: float
    a: float = 1.0

    @classmethod
    def random(cls, rng: np.random.Generator) -> Color:
        """Uniformly random opaque color."""
        return cls(
            r=float(rng.random()),
            g=float(rng.random()),
            b=float(rng.random()),
        )

    @classmethod
    def from_rgb255(cls, r: int, g: int, b: int) -> Color:
        return cls(r / 255.0, g / 255.0, b / 255.0)

    def interpolate(self, target: Color, t: float) -> Color:
        """
        Linear blend toward `target`.

        Args:
            target: Color to blend toward.
            t: Blend factor; 0 keeps self, 1 yields target.

        Returns:
            A new Color.
        """
        return Color(
            r=self.r + (target.r - self.r) * t,
            g=self.g + (target.g - self.g) * t,
            b=self.b + (target.b - self.b) * t,
            a=self.a + (target.a - self.a) * t,
        )

    def mutate(self, rng: np.random.Generator) -> None:
        """
        Jitter exactly one of r/g/b by a multiplicative factor.

        The factor is 1 + m or 1 - m with m ~ U(0, 1); the result is
        clamped to [0, 1].
        """
        channel = ("r", "g", "b")[int(rng.integers(0, 3))]
        mul = float(rng.random())
        if rng.integers(0, 2):
            factor = 1.0 - mul
        else:
            factor = 1.0 + mul
        setattr(self, channel, clamp(getattr(self, channel) * factor, 0.0, 1.0))

    def copy(self) -> Color:
        return Color(self.r, self.g, self.b, self.a)

    def to_rgba255(self) -> tuple[int, int, int, int]:
        """Channels as 0-255 integers, for presentation layers."""
        return tuple(int(round(clamp(c, 0.0, 1.0) * 255)) for c in (self.r, self.g, self.b, self.a))

    def to_list(self) -> list[float]:
        return [round(self.r, 6), round(self.g, 6), round(self.b, 6), round(self.a, 6)]


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------

BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
GREEN = Color.from_rgb255(50, 200, 50)
RED = Color.from_rgb255(200, 50, 50)
BLUE = Color.from_rgb255(50, 50, 200)
GRAY = Color.from_rgb255(100, 100, 100)

# Blend factor applied when a bot performs an action
ACTION_TINT = 0.03

# Blend toward black when a bot dies
DEATH_TINT = 0.5
