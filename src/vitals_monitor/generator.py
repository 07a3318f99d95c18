"""
Simulated biometric readings.

Bounded random walk over heart rate and blood oxygen, with an occasional
stress spike layered on the heart-rate jitter.
"""

import logging
import random
from datetime import datetime
from typing import Callable, Optional

from .models import (
    BLOOD_OXYGEN_BOUNDS,
    HEART_RATE_BOUNDS,
    Reading,
    clamp,
    utc_now,
)

logger = logging.getLogger(__name__)


class VitalsGenerator:
    """
    Produces the next reading from the previous one.

    Configuration:
        rng: Random source; pass a seeded random.Random for reproducible runs
        jitter: Half-width of the symmetric base perturbation
        spike_probability: Chance of a stress spike on a heart-rate step
        spike_amplitude: Half-width of the stress spike
        oxygen_damping: Scale applied to the blood-oxygen perturbation
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        jitter: float = 1.0,
        spike_probability: float = 0.05,
        spike_amplitude: float = 5.0,
        oxygen_damping: float = 0.5,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.rng = rng if rng is not None else random.Random()
        self.jitter = jitter
        self.spike_probability = spike_probability
        self.spike_amplitude = spike_amplitude
        self.oxygen_damping = oxygen_damping
        self.clock = clock

    def _base_variation(self) -> float:
        return (self.rng.random() - 0.5) * 2 * self.jitter

    def heart_rate_variation(self) -> float:
        variation = self._base_variation()
        if self.rng.random() > 1 - self.spike_probability:
            spike = (self.rng.random() - 0.5) * 2 * self.spike_amplitude
            logger.debug(f"[GENERATOR] Stress spike {spike:+.1f} bpm")
            variation += spike
        return variation

    def blood_oxygen_variation(self) -> float:
        return self._base_variation() * self.oxygen_damping

    def next(self, previous: Reading) -> Reading:
        """Perturb both metrics independently and clamp to simulation bounds."""
        heart_rate = clamp(previous.heart_rate + self.heart_rate_variation(), HEART_RATE_BOUNDS)
        blood_oxygen = clamp(
            previous.blood_oxygen + self.blood_oxygen_variation(), BLOOD_OXYGEN_BOUNDS
        )
        return Reading(heart_rate=heart_rate, blood_oxygen=blood_oxygen, captured_at=self.clock())
