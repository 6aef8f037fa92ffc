# overtone_spectrum.py

"""
Overtone spectrum data model.

An ``OvertoneSpectrum`` holds a fundamental partial with a real frequency (Hz)
and amplitude, plus an ordered list of overtone partials described by
frequency and amplitude *ratios* to the fundamental. Each element carries a
mute flag and a dissonance accumulator that records how much it contributed
to the last dissonance calculation.

Invariants kept by every mutator:
  - partials are sorted by ascending frequency ratio;
  - no partial has ratio 1 (reserved for the fundamental);
  - no two ratios r, s satisfy 1/min_interval <= r/s <= min_interval.

Invalid values raise ``InvalidInputError`` and leave the spectrum unchanged.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from dissonance_errors import InvalidInputError

logger = logging.getLogger(__name__)

FREQUENCY_COLUMN = "Frequency (Hz)"
AMPLITUDE_COLUMN = "Amplitude"


@dataclass
class Partial:
    """A sinusoidal component: frequency/amplitude (ratios or real values), mute flag, accumulator."""

    frequency: float = 0.0
    amplitude: float = 0.0
    muted: bool = False
    dissonance: float = 0.0

    def __lt__(self, other: "Partial") -> bool:
        return self.frequency < other.frequency

    def copy(self) -> "Partial":
        """Value copy. The dissonance accumulator is not carried over."""
        return Partial(self.frequency, self.amplitude, self.muted, 0.0)


def _invalid(msg: str) -> InvalidInputError:
    logger.error(msg)
    return InvalidInputError(msg)


class OvertoneSpectrum:
    """Fundamental plus overtone partials of one sound."""

    def __init__(self, name: str = "untitled", min_interval: float = 1.0):
        if min_interval < 1:
            raise _invalid(f"Minimum interval must be >= 1: {min_interval}")
        self.name = name
        self._min_interval = float(min_interval)
        self._muted = False
        self._fundamental = Partial()
        self._partials: List[Partial] = []

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def harmonic(cls,
                 num_partials: int,
                 decay: float = 0.88,
                 fundamental_freq: Optional[float] = None,
                 fundamental_amp: float = 1.0,
                 name: Optional[str] = None) -> "OvertoneSpectrum":
        """
        Harmonic series: partial k (k = 2..num_partials) has ratio k and
        amplitude ratio decay**(k-1). ``num_partials`` counts the fundamental.
        """
        if num_partials < 1:
            raise _invalid(f"A harmonic spectrum needs at least one partial: {num_partials}")
        if decay <= 0:
            raise _invalid(f"Amplitude decay must be positive: {decay}")

        spectrum = cls(name or f"harmonic-{num_partials}")
        for k in range(2, num_partials + 1):
            spectrum.add_partial(float(k), decay ** (k - 1))
        if fundamental_freq is not None:
            spectrum.set_fundamental(fundamental_freq, fundamental_amp)
        return spectrum

    @classmethod
    def from_frame(cls, df: pd.DataFrame, name: str = "untitled",
                   min_interval: float = 1.0) -> "OvertoneSpectrum":
        """
        Build a spectrum from a peak table with "Frequency (Hz)" and "Amplitude" columns.

        The lowest-frequency row becomes the fundamental; every other row is
        stored as a ratio to it. Rows with non-positive values are ignored.
        """
        if df is None or df.empty:
            raise _invalid("Empty DataFrame given to OvertoneSpectrum.from_frame")
        if FREQUENCY_COLUMN not in df.columns or AMPLITUDE_COLUMN not in df.columns:
            raise _invalid(
                f"DataFrame must contain '{FREQUENCY_COLUMN}' and '{AMPLITUDE_COLUMN}' columns"
            )

        dfx = df[(df[FREQUENCY_COLUMN] > 0) & (df[AMPLITUDE_COLUMN] > 0)]
        if dfx.empty:
            raise _invalid("DataFrame has no rows with positive frequency and amplitude")
        dfx = dfx.sort_values(FREQUENCY_COLUMN)
        freqs = dfx[FREQUENCY_COLUMN].to_numpy(dtype=float)
        amps = dfx[AMPLITUDE_COLUMN].to_numpy(dtype=float)

        spectrum = cls(name, min_interval)
        spectrum.set_fundamental(freqs[0], amps[0])
        for f, a in zip(freqs[1:], amps[1:]):
            spectrum.add_partial(f / freqs[0], a / amps[0])
        return spectrum

    def to_frame(self) -> pd.DataFrame:
        """Real frequencies, amplitudes, mute flags and accumulated dissonance, fundamental first."""
        rows = [{
            "Partial": 0,
            FREQUENCY_COLUMN: self.fundamental_frequency,
            AMPLITUDE_COLUMN: self.fundamental_amplitude,
            "Frequency Ratio": 1.0,
            "Muted": self._muted or self._fundamental.muted,
            "Dissonance": self._fundamental.dissonance,
        }]
        for i, partial in enumerate(self._partials):
            rows.append({
                "Partial": i + 1,
                FREQUENCY_COLUMN: self.get_real_frequency(i),
                AMPLITUDE_COLUMN: self.get_real_amplitude(i),
                "Frequency Ratio": partial.frequency,
                "Muted": self._muted or partial.muted,
                "Dissonance": partial.dissonance,
            })
        return pd.DataFrame(rows)

    def copy(self) -> "OvertoneSpectrum":
        """Deep value copy with every dissonance accumulator reset to zero."""
        other = OvertoneSpectrum(self.name, self._min_interval)
        other._muted = self._muted
        other._fundamental = self._fundamental.copy()
        other._partials = [p.copy() for p in self._partials]
        return other

    __copy__ = copy

    def __deepcopy__(self, memo) -> "OvertoneSpectrum":
        return self.copy()

    def __repr__(self) -> str:
        return (f"OvertoneSpectrum(name={self.name!r}, f0={self.fundamental_frequency:g}, "
                f"partials={self.num_partials})")

    # ------------------------------------------------------------------
    # Partials
    # ------------------------------------------------------------------

    @property
    def num_partials(self) -> int:
        """Number of overtone partials, not counting the fundamental."""
        return len(self._partials)

    def __len__(self) -> int:
        return len(self._partials)

    def __iter__(self) -> Iterator[Partial]:
        return iter(self._partials)

    @property
    def frequency_ratios(self) -> List[float]:
        return [p.frequency for p in self._partials]

    @property
    def amplitude_ratios(self) -> List[float]:
        return [p.amplitude for p in self._partials]

    def _check_index(self, partial_num: int) -> None:
        if not 0 <= partial_num < len(self._partials):
            raise IndexError(
                f"Partial index {partial_num} out of range for '{self.name}' "
                f"({len(self._partials)} partials)"
            )

    def _conflicts(self, ratio: float, skip: Optional[int] = None) -> Optional[str]:
        """Reason why ``ratio`` cannot be stored, or None."""
        if ratio == 1.0:
            return "ratio 1 is reserved for the fundamental"
        low, high = 1.0 / self._min_interval, self._min_interval
        if self._min_interval > 1 and low <= ratio <= high:
            return f"ratio {ratio} is closer to the fundamental than min_interval {self._min_interval}"
        for i, partial in enumerate(self._partials):
            if i == skip:
                continue
            if ratio == partial.frequency:
                return f"a partial with ratio {ratio} already exists"
            if self._min_interval > 1 and low <= ratio / partial.frequency <= high:
                return (f"ratio {ratio} is closer to partial {partial.frequency} "
                        f"than min_interval {self._min_interval}")
        return None

    def add_partial(self, freq_ratio: float, amp_ratio: float) -> int:
        """
        Insert a partial keeping ascending ratio order.

        Returns the index at which the partial was stored.
        """
        if freq_ratio <= 0:
            raise _invalid(f"Frequency ratio must be positive: {freq_ratio}")
        if amp_ratio <= 0:
            raise _invalid(f"Amplitude ratio must be positive: {amp_ratio}")
        reason = self._conflicts(float(freq_ratio))
        if reason:
            raise _invalid(f"Cannot add partial to '{self.name}': {reason}")

        partial = Partial(float(freq_ratio), float(amp_ratio))
        index = bisect.bisect_left(self.frequency_ratios, partial.frequency)
        self._partials.insert(index, partial)
        return index

    def set_frequency_ratio(self, partial_num: int, new_freq_ratio: float) -> int:
        """Change a partial's ratio. Returns the partial's index after re-sorting."""
        self._check_index(partial_num)
        if new_freq_ratio <= 0:
            raise _invalid(f"Frequency ratio must be positive: {new_freq_ratio}")
        reason = self._conflicts(float(new_freq_ratio), skip=partial_num)
        if reason:
            raise _invalid(f"Cannot move partial {partial_num} of '{self.name}': {reason}")

        partial = self._partials.pop(partial_num)
        partial.frequency = float(new_freq_ratio)
        index = bisect.bisect_left(self.frequency_ratios, partial.frequency)
        self._partials.insert(index, partial)
        return index

    def set_amplitude_ratio(self, partial_num: int, new_amp_ratio: float) -> None:
        self._check_index(partial_num)
        if new_amp_ratio <= 0:
            raise _invalid(f"Amplitude ratio must be positive: {new_amp_ratio}")
        self._partials[partial_num].amplitude = float(new_amp_ratio)

    def get_frequency_ratio(self, partial_num: int) -> float:
        self._check_index(partial_num)
        return self._partials[partial_num].frequency

    def get_amplitude_ratio(self, partial_num: int) -> float:
        self._check_index(partial_num)
        return self._partials[partial_num].amplitude

    def get_real_frequency(self, partial_num: int) -> float:
        """Frequency ratio times the fundamental frequency."""
        self._check_index(partial_num)
        return self._partials[partial_num].frequency * self._fundamental.frequency

    def get_real_amplitude(self, partial_num: int) -> float:
        """Amplitude ratio times the fundamental amplitude."""
        self._check_index(partial_num)
        return self._partials[partial_num].amplitude * self._fundamental.amplitude

    def real_frequencies(self) -> np.ndarray:
        return np.asarray(self.frequency_ratios, dtype=float) * self._fundamental.frequency

    def remove_partial(self, partial_num: int) -> None:
        self._check_index(partial_num)
        del self._partials[partial_num]

    def clear_partials(self) -> None:
        self._partials.clear()

    # ------------------------------------------------------------------
    # Fundamental
    # ------------------------------------------------------------------

    def set_fundamental(self, freq: float, amp: float) -> None:
        """Set the real frequency (Hz) and amplitude of the fundamental. Both must be > 0."""
        if freq <= 0:
            raise _invalid(f"Fundamental frequency must be positive: {freq}")
        if amp <= 0:
            raise _invalid(f"Fundamental amplitude must be positive: {amp}")
        self._fundamental.frequency = float(freq)
        self._fundamental.amplitude = float(amp)

    def set_fundamental_frequency(self, freq: float) -> None:
        if freq <= 0:
            raise _invalid(f"Fundamental frequency must be positive: {freq}")
        self._fundamental.frequency = float(freq)

    def set_fundamental_amplitude(self, amp: float) -> None:
        if amp <= 0:
            raise _invalid(f"Fundamental amplitude must be positive: {amp}")
        self._fundamental.amplitude = float(amp)

    @property
    def fundamental_frequency(self) -> float:
        return self._fundamental.frequency

    @property
    def fundamental_amplitude(self) -> float:
        return self._fundamental.amplitude

    # ------------------------------------------------------------------
    # Muting
    # ------------------------------------------------------------------

    def mute(self, muted: bool = True) -> None:
        """Exclude (or re-include) the whole spectrum from dissonance calculations."""
        self._muted = bool(muted)

    def mute_fundamental(self, muted: bool = True) -> None:
        self._fundamental.muted = bool(muted)

    def mute_partial(self, partial_num: int, muted: bool = True) -> None:
        self._check_index(partial_num)
        self._partials[partial_num].muted = bool(muted)

    @property
    def is_muted(self) -> bool:
        return self._muted

    @property
    def fundamental_is_muted(self) -> bool:
        return self._fundamental.muted

    def partial_is_muted(self, partial_num: int) -> bool:
        self._check_index(partial_num)
        return self._partials[partial_num].muted

    def fundamental_is_active(self) -> bool:
        return not self._muted and not self._fundamental.muted

    def partial_is_active(self, partial_num: int) -> bool:
        return not self._muted and not self.partial_is_muted(partial_num)

    # ------------------------------------------------------------------
    # Dissonance accumulators
    # ------------------------------------------------------------------

    def add_partial_dissonance(self, partial_num: int, dissonance: float) -> None:
        self._check_index(partial_num)
        self._partials[partial_num].dissonance += dissonance

    def add_fundamental_dissonance(self, dissonance: float) -> None:
        self._fundamental.dissonance += dissonance

    def get_partial_dissonance(self, partial_num: int) -> float:
        self._check_index(partial_num)
        return self._partials[partial_num].dissonance

    @property
    def fundamental_dissonance(self) -> float:
        return self._fundamental.dissonance

    def get_total_dissonance(self) -> float:
        """Fundamental accumulator plus every partial accumulator."""
        return self._fundamental.dissonance + sum(p.dissonance for p in self._partials)

    def clear_dissonances(self) -> None:
        self._fundamental.dissonance = 0.0
        for partial in self._partials:
            partial.dissonance = 0.0

    # ------------------------------------------------------------------
    # Minimum interval
    # ------------------------------------------------------------------

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @min_interval.setter
    def min_interval(self, value: float) -> None:
        """Rejects values < 1 and values the current partials already violate."""
        if value < 1:
            raise _invalid(f"Minimum interval must be >= 1: {value}")
        ratios: Sequence[float] = [1.0] + self.frequency_ratios
        low, high = 1.0 / value, float(value)
        for i, r in enumerate(ratios):
            for s in ratios[i + 1:]:
                if value > 1 and low <= r / s <= high:
                    raise _invalid(
                        f"Minimum interval {value} is violated by ratios {r} and {s} in '{self.name}'"
                    )
        self._min_interval = float(value)


__all__ = ['Partial', 'OvertoneSpectrum', 'FREQUENCY_COLUMN', 'AMPLITUDE_COLUMN']
