"""
Particle field driven by interaction snapshots.

Holds tens of thousands of points column-wise in numpy arrays. Every render
tick each particle eases toward a target derived from the latest snapshot:

    target = initial * scale + noise(t, initial) [+ jitter while contracted]
    position += (target - position) * smoothing_rate

Smoothing rates are drawn once per particle so points desynchronize even
though they share one target law.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from core.types import InteractionState
from modules.animation.transforms import rotate_points

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 12000
DISTRIBUTIONS = ("sphere", "cone")


def hex_to_rgb(value: str) -> np.ndarray:
    """'#00f2ff' -> array([0.0, 0.949, 1.0])."""
    text = value.lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Expected a #rrggbb colour, got '{value}'")
    return np.array([int(text[i:i + 2], 16) / 255.0 for i in (0, 2, 4)])


# =============================================================================
# Spatial Distributions
# =============================================================================

def sample_sphere(rng: np.random.Generator, count: int, radius: float) -> np.ndarray:
    """Uniform-in-volume points inside a sphere."""
    r = radius * np.cbrt(rng.random(count))
    theta = rng.random(count) * 2.0 * np.pi
    phi = np.arccos(2.0 * rng.random(count) - 1.0)
    return np.column_stack([
        r * np.sin(phi) * np.cos(theta),
        r * np.sin(phi) * np.sin(theta),
        r * np.cos(phi),
    ])


def sample_cone(rng: np.random.Generator, count: int, height: float,
                base_radius: float) -> np.ndarray:
    """Points inside an upright cone, denser toward the base.

    Height fraction t (0 = base, 1 = apex) is drawn with density 2(1 - t),
    which matches the shrinking cross-section.
    """
    t = 1.0 - np.sqrt(rng.random(count))
    ring = base_radius * (1.0 - t) * np.sqrt(rng.random(count))
    angle = rng.random(count) * 2.0 * np.pi
    return np.column_stack([
        ring * np.cos(angle),
        -height / 2.0 + t * height,
        ring * np.sin(angle),
    ])


# =============================================================================
# Burst Effect
# =============================================================================

class BurstEffect:
    """Stochastic colour flash, edge-triggered by the burst counter.

    The last observed counter value is remembered; any increase fires one
    flash, however many gesture ticks were skipped in between.
    """

    def __init__(self, base_color: np.ndarray, palette: Sequence[np.ndarray],
                 rng: np.random.Generator, initial_trigger: int = 0):
        if not palette:
            raise ValueError("Burst palette needs at least one colour")
        self._base = np.asarray(base_color, dtype=np.float64)
        self._palette = [np.asarray(c, dtype=np.float64) for c in palette]
        self._rng = rng
        self._last_seen = initial_trigger
        self._fired = 0

    def apply(self, colors: np.ndarray, trigger: int) -> bool:
        """Recolour in place if ``trigger`` moved past the last seen value."""
        if trigger <= self._last_seen:
            return False

        target = self._palette[int(self._rng.integers(len(self._palette)))]
        mix = self._rng.random(len(colors))[:, None]
        colors[:] = self._base * (1.0 - mix) + target * mix

        logger.debug("Colour burst %d -> %d", self._last_seen, trigger)
        self._last_seen = trigger
        self._fired += 1
        return True

    @property
    def last_seen(self) -> int:
        return self._last_seen

    @property
    def fired(self) -> int:
        return self._fired


# =============================================================================
# Particle Field
# =============================================================================

class ParticleField:
    """Smoothed particle cloud consuming InteractionState snapshots."""

    def __init__(self, config: dict = None, rng: np.random.Generator = None):
        config = config or {}
        self._count = int(config.get("count", DEFAULT_COUNT))
        if self._count <= 0:
            raise ValueError(f"Particle count must be positive, got {self._count}")

        self._distribution = config.get("distribution", "sphere")
        if self._distribution not in DISTRIBUTIONS:
            raise ValueError(
                f"Unknown distribution '{self._distribution}', expected one of {DISTRIBUTIONS}"
            )

        self._rng = rng if rng is not None else np.random.default_rng(config.get("seed"))

        self._noise_amplitude = float(config.get("noise_amplitude", 0.1))
        self._noise_scale = float(config.get("noise_scale", 0.5))
        self._jitter = float(config.get("jitter", 0.2))
        self._rotation_lerp = float(config.get("rotation_lerp", 0.1))
        base_smoothing = float(config.get("base_smoothing", 0.1))
        smoothing_spread = float(config.get("smoothing_spread", 0.05))

        if self._distribution == "sphere":
            self.initial_positions = sample_sphere(
                self._rng, self._count, float(config.get("radius", 5.0)))
        else:
            self.initial_positions = sample_cone(
                self._rng, self._count,
                float(config.get("height", 8.0)),
                float(config.get("base_radius", 3.5)),
            )
        self.initial_positions.setflags(write=False)

        self.positions = self.initial_positions.copy()
        self.smoothing_rates = base_smoothing + self._rng.random(self._count) * smoothing_spread
        self.smoothing_rates.setflags(write=False)

        self.base_color = hex_to_rgb(config.get("base_color", "#00f2ff"))
        self.colors = np.tile(self.base_color, (self._count, 1))
        palette = [hex_to_rgb(c) for c in config.get("burst_colors", ["#ff0055", "#facc15"])]
        self._burst = BurstEffect(self.base_color, palette, self._rng)

        self.orientation = np.zeros(3)
        self._elapsed = 0.0

        logger.info("Particle field ready: %d particles (%s)", self._count, self._distribution)

    # =========================================================================
    # Per-tick Update
    # =========================================================================

    def update(self, state: InteractionState, dt: float) -> bool:
        """Advance one render tick.

        Returns:
            True if a colour burst fired on this tick
        """
        self._elapsed += max(dt, 0.0)

        burst = self._burst.apply(self.colors, state.color_burst_trigger)

        targets = self.compute_targets(state.scale, state.is_contracted, self._elapsed)
        self.positions += (targets - self.positions) * self.smoothing_rates[:, None]

        rotation = np.asarray(state.rotation, dtype=np.float64)
        self.orientation += (rotation - self.orientation) * self._rotation_lerp
        return burst

    def compute_targets(self, scale: float, contracted: bool = False,
                        elapsed: float = None) -> np.ndarray:
        """Target positions for every particle at time ``elapsed``."""
        if elapsed is None:
            elapsed = self._elapsed
        targets = self.initial_positions * scale + self.noise(elapsed)
        if contracted and self._jitter > 0:
            targets += (self._rng.random((self._count, 3)) - 0.5) * self._jitter
        return targets

    def noise(self, elapsed: float) -> np.ndarray:
        """Stateless low-frequency drift, amplitude ``noise_amplitude``."""
        if self._noise_amplitude == 0:
            return np.zeros_like(self.initial_positions)
        x0 = self.initial_positions[:, 0]
        y0 = self.initial_positions[:, 1]
        z0 = self.initial_positions[:, 2]
        k = self._noise_scale
        return np.column_stack([
            np.sin(elapsed * 0.5 + y0 * k),
            np.cos(elapsed * 0.3 + x0 * k),
            np.sin(elapsed * 0.4 + z0 * k),
        ]) * self._noise_amplitude

    def world_positions(self) -> np.ndarray:
        """Current positions rotated by the smoothed field orientation."""
        return rotate_points(self.positions, self.orientation)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def count(self) -> int:
        return self._count

    @property
    def distribution(self) -> str:
        return self._distribution

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def burst(self) -> BurstEffect:
        return self._burst

    @property
    def orientation_tuple(self) -> Tuple[float, float, float]:
        return tuple(float(v) for v in self.orientation)
