# dissonance_calc.py

"""
Modular dissonance calculation.

``DissonanceCalculator`` owns a dissonance model, an ordered chain of
preprocessors and a list of overtone spectra, and computes:

  * the dissonance of the current spectra (single evaluation);
  * the dissonance of a list of predefined chords (batch);
  * dissonance maps: a curve (one spectrum's fundamental swept over a
    frequency range) or a surface (two spectra swept independently);
  * local minima/maxima of the dissonance curve.

Every evaluation works on a fresh deep copy of the owned spectra: the
preprocessors mute elements of the copy, the model reads it, and the copy is
discarded. Only a single evaluation with ``sum_partial_dissonances`` enabled
writes back into the owned spectra (the per-partial accumulators).
"""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from dissonance_errors import InvalidInputError, PreconditionError, PreprocessorContractError
from dissonance_models import DissonanceModel
from local_optimizer import LocalOptimizer, NelderMeadOptimizer
from overtone_spectrum import FREQUENCY_COLUMN, OvertoneSpectrum
from preprocessors import Preprocessor

logger = logging.getLogger(__name__)

# Start points of the multi-start optimization grow by this factor.
DEFAULT_GROWTH_FACTOR = 1.0008
# Optima closer than this frequency ratio are considered the same optimum.
OPTIMUM_TOLERANCE = 1.001


class MapDimensions(IntEnum):
    """Dimensionality of a dissonance map: frequency axes plus the dissonance axis."""

    TWO_DIMENSIONAL = 2      # one swept spectrum -> curve
    THREE_DIMENSIONAL = 3    # two swept spectra -> surface


@dataclass
class ChordNote:
    frequency: float
    amplitude: float


@dataclass
class Chord:
    """Fundamental (frequency, amplitude) for each spectrum, by spectrum index."""

    notes: List[ChordNote] = field(default_factory=list)

    def copy(self) -> "Chord":
        return Chord([ChordNote(n.frequency, n.amplitude) for n in self.notes])


def _invalid(msg: str) -> InvalidInputError:
    logger.error(msg)
    return InvalidInputError(msg)


def _check_index(index: int, size: int, what: str) -> None:
    if not 0 <= index < size:
        raise IndexError(f"{what} index {index} out of range ({size} available)")


def _structure(spectra: Sequence[OvertoneSpectrum]) -> Tuple[Tuple[float, ...], ...]:
    return tuple(tuple(s.frequency_ratios) for s in spectra)


def merge_optimum(optima: List[Tuple[float, float]],
                  candidate: Tuple[float, float],
                  minimize: bool = True,
                  tolerance: float = OPTIMUM_TOLERANCE) -> bool:
    """
    Insert ``candidate`` (frequency, value) into ``optima`` (sorted by frequency).

    Retained optima lying within [f / tolerance, f * tolerance] of the
    candidate compete with it: the candidate replaces them only if its value
    is strictly better (lower when minimizing, higher when maximizing);
    otherwise it is discarded. Returns True if the candidate was kept.
    """
    freq, value = candidate
    low, high = freq / tolerance, freq * tolerance
    neighbours = [i for i, (f, _) in enumerate(optima) if low <= f <= high]

    for i in neighbours:
        other = optima[i][1]
        if (value >= other) if minimize else (value <= other):
            return False

    for i in reversed(neighbours):
        del optima[i]
    bisect.insort(optima, (freq, value))
    return True


class DissonanceCalculator:
    """Computes dissonance values, chord batches, dissonance maps and optima."""

    def __init__(self,
                 model: Optional[DissonanceModel] = None,
                 preprocessors: Iterable[Preprocessor] = (),
                 spectra: Iterable[OvertoneSpectrum] = (),
                 sum_partial_dissonances: bool = True,
                 optimizer: Optional[LocalOptimizer] = None):
        self._model: Optional[DissonanceModel] = None
        self._preprocessors: List[Preprocessor] = []
        self._spectra: List[OvertoneSpectrum] = []
        self.sum_partial_dissonances = sum_partial_dissonances
        self.optimizer: LocalOptimizer = optimizer or NelderMeadOptimizer()

        # batch
        self._chords: List[Chord] = []
        self._chord_dissonances: List[float] = []

        # dissonance maps
        self._range: Optional[Tuple[float, float]] = None
        self._num_steps = 0
        self._step_size = 0.0
        self._log_steps = False
        self._dimensions = MapDimensions.TWO_DIMENSIONAL
        self._variable_spectrum = 0
        self._x_spectrum = 0
        self._y_spectrum = 1
        self._map = np.zeros(0)

        # optimization results: (frequency, dissonance), ascending frequency
        self._minima: List[Tuple[float, float]] = []
        self._maxima: List[Tuple[float, float]] = []

        if model is not None:
            self.set_model(model)
        for pre in preprocessors:
            self.add_preprocessor(pre)
        for spectrum in spectra:
            self.add_spectrum(spectrum)

    def copy(self) -> "DissonanceCalculator":
        """Independent calculator with cloned model, preprocessors, spectra, chords and map settings."""
        other = DissonanceCalculator(self._model, self._preprocessors, self._spectra,
                                     self.sum_partial_dissonances, self.optimizer)
        other._chords = [c.copy() for c in self._chords]
        other._chord_dissonances = list(self._chord_dissonances)
        other._range = self._range
        other._num_steps = self._num_steps
        other._step_size = self._step_size
        other._log_steps = self._log_steps
        other._dimensions = self._dimensions
        other._variable_spectrum = self._variable_spectrum
        other._x_spectrum = self._x_spectrum
        other._y_spectrum = self._y_spectrum
        other._map = self._map.copy()
        other._minima = list(self._minima)
        other._maxima = list(self._maxima)
        return other

    # ------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------

    def set_model(self, model: DissonanceModel) -> None:
        """Store a clone of ``model``."""
        self._model = model.clone()
        logger.debug(f"Model set to {self._model.name}")

    @property
    def model(self) -> Optional[DissonanceModel]:
        return self._model

    @property
    def model_name(self) -> Optional[str]:
        return self._model.name if self._model is not None else None

    def _require_model(self) -> DissonanceModel:
        if self._model is None:
            msg = "No dissonance model has been set"
            logger.error(msg)
            raise PreconditionError(msg)
        return self._model

    # ------------------------------------------------------------------
    # Preprocessors
    # ------------------------------------------------------------------

    def add_preprocessor(self, preprocessor: Preprocessor) -> int:
        """Append a clone of ``preprocessor`` to the chain. Returns its index."""
        self._preprocessors.append(preprocessor.clone())
        return len(self._preprocessors) - 1

    def move_preprocessor(self, current_index: int, new_index: int) -> None:
        """Move a preprocessor within the chain, changing the order in which they run."""
        _check_index(current_index, len(self._preprocessors), "Preprocessor")
        _check_index(new_index, len(self._preprocessors), "Preprocessor")
        self._preprocessors.insert(new_index, self._preprocessors.pop(current_index))

    def get_preprocessor(self, index: int) -> Preprocessor:
        _check_index(index, len(self._preprocessors), "Preprocessor")
        return self._preprocessors[index]

    def preprocessor_name(self, index: int) -> str:
        return self.get_preprocessor(index).name

    @property
    def preprocessor_names(self) -> List[str]:
        return [pre.name for pre in self._preprocessors]

    @property
    def num_preprocessors(self) -> int:
        return len(self._preprocessors)

    def remove_preprocessor(self, index: int) -> None:
        _check_index(index, len(self._preprocessors), "Preprocessor")
        del self._preprocessors[index]

    def clear_preprocessors(self) -> None:
        self._preprocessors.clear()

    # ------------------------------------------------------------------
    # Spectra
    # ------------------------------------------------------------------

    def add_spectrum(self, spectrum: OvertoneSpectrum) -> int:
        """
        Add a copy of ``spectrum``. Returns its index.

        The same spectrum may be added several times, e.g. for a chord of
        notes sharing one timbre.
        """
        self._spectra.append(spectrum.copy())
        return len(self._spectra) - 1

    def get_spectrum(self, index: int) -> OvertoneSpectrum:
        """The owned spectrum itself (not a copy); edits affect later calculations."""
        _check_index(index, len(self._spectra), "Spectrum")
        return self._spectra[index]

    @property
    def spectra(self) -> List[OvertoneSpectrum]:
        return list(self._spectra)

    @property
    def num_spectra(self) -> int:
        return len(self._spectra)

    def remove_spectrum(self, index: int) -> None:
        _check_index(index, len(self._spectra), "Spectrum")
        del self._spectra[index]

    def clear_spectra(self) -> None:
        self._spectra.clear()

    # ------------------------------------------------------------------
    # Evaluation primitive
    # ------------------------------------------------------------------

    def _snapshot(self, source: Optional[Sequence[OvertoneSpectrum]] = None) -> List[OvertoneSpectrum]:
        return [s.copy() for s in (self._spectra if source is None else source)]

    def _preprocess(self, working: List[OvertoneSpectrum]) -> None:
        structure = _structure(working)
        for pre in self._preprocessors:
            pre.process(working)
            if len(working) != len(structure) or _structure(working) != structure:
                msg = f"Preprocessor '{pre.name}' changed the partial structure of the spectra"
                logger.error(msg)
                raise PreprocessorContractError(msg)

    def _evaluate(self, working: List[OvertoneSpectrum], accumulate: bool = False) -> float:
        """Run the preprocessor chain on ``working`` and evaluate the model on it."""
        model = self._require_model()
        self._preprocess(working)
        return model.calculate_dissonance(working, accumulate)

    def calculate_dissonance(self) -> float:
        """
        Dissonance of the owned spectra as currently configured.

        With ``sum_partial_dissonances`` the owned spectra's accumulators are
        cleared, then receive the contribution of each fundamental and partial.
        """
        self._require_model()
        accumulate = self.sum_partial_dissonances
        if accumulate:
            for spectrum in self._spectra:
                spectrum.clear_dissonances()

        working = self._snapshot()
        dissonance = self._evaluate(working, accumulate)

        if accumulate:
            for owned, evaluated in zip(self._spectra, working):
                owned.add_fundamental_dissonance(evaluated.fundamental_dissonance)
                for p in range(owned.num_partials):
                    owned.add_partial_dissonance(p, evaluated.get_partial_dissonance(p))

        logger.debug(f"{self._model.name} dissonance of {len(self._spectra)} spectra: {dissonance:.6f}")
        return dissonance

    # ------------------------------------------------------------------
    # Chords (batch)
    # ------------------------------------------------------------------

    def add_chord(self, notes: Optional[Sequence[Tuple[float, float]]] = None) -> int:
        """
        Append a chord and return its index.

        ``notes`` gives (frequency, amplitude) for each spectrum, in spectrum
        order. Without it the chord starts from the spectra's current
        fundamentals; adjust it with ``set_frequency_in_chord`` and
        ``set_amplitude_in_chord``.
        """
        if notes is None:
            chord = Chord([ChordNote(s.fundamental_frequency, s.fundamental_amplitude)
                           for s in self._spectra])
        else:
            for freq, amp in notes:
                if freq <= 0 or amp <= 0:
                    raise _invalid(f"Chord frequencies and amplitudes must be positive: ({freq}, {amp})")
            chord = Chord([ChordNote(float(f), float(a)) for f, a in notes])
        self._chords.append(chord)
        self._chord_dissonances.append(math.nan)
        return len(self._chords) - 1

    def _chord_note(self, chord_index: int, spectrum_index: int) -> ChordNote:
        _check_index(chord_index, len(self._chords), "Chord")
        notes = self._chords[chord_index].notes
        _check_index(spectrum_index, len(notes), "Chord note")
        return notes[spectrum_index]

    def set_frequency_in_chord(self, chord_index: int, spectrum_index: int, freq: float) -> None:
        note = self._chord_note(chord_index, spectrum_index)
        if freq <= 0:
            raise _invalid(f"Chord frequency must be positive: {freq}")
        note.frequency = float(freq)

    def set_amplitude_in_chord(self, chord_index: int, spectrum_index: int, amp: float) -> None:
        note = self._chord_note(chord_index, spectrum_index)
        if amp <= 0:
            raise _invalid(f"Chord amplitude must be positive: {amp}")
        note.amplitude = float(amp)

    def get_frequency_in_chord(self, chord_index: int, spectrum_index: int) -> float:
        return self._chord_note(chord_index, spectrum_index).frequency

    def get_amplitude_in_chord(self, chord_index: int, spectrum_index: int) -> float:
        return self._chord_note(chord_index, spectrum_index).amplitude

    def remove_chord(self, chord_index: int) -> None:
        _check_index(chord_index, len(self._chords), "Chord")
        del self._chords[chord_index]
        del self._chord_dissonances[chord_index]

    def clear_chords(self) -> None:
        self._chords.clear()
        self._chord_dissonances.clear()

    @property
    def num_chords(self) -> int:
        return len(self._chords)

    def calculate_chord_dissonances(self) -> List[float]:
        """
        Dissonance of every chord, in chord order.

        Each chord overrides the fundamentals of a fresh copy of the spectra.
        Partial dissonances are never accumulated here: each chord would
        overwrite the previous one's.
        """
        self._require_model()
        for c, chord in enumerate(self._chords):
            if len(chord.notes) != len(self._spectra):
                msg = (f"Chord {c} defines {len(chord.notes)} notes but "
                       f"{len(self._spectra)} spectra are configured")
                logger.error(msg)
                raise PreconditionError(msg)
            if any(n.frequency <= 0 or n.amplitude <= 0 for n in chord.notes):
                msg = f"Chord {c} has a non-positive frequency or amplitude"
                logger.error(msg)
                raise PreconditionError(msg)

        if not self._chords:
            logger.warning("No chords defined; nothing to calculate")

        results = []
        for chord in self._chords:
            working = self._snapshot()
            for spectrum, note in zip(working, chord.notes):
                spectrum.set_fundamental(note.frequency, note.amplitude)
            results.append(self._evaluate(working, False))

        self._chord_dissonances = results
        logger.info(f"Calculated dissonance of {len(results)} chord(s) with {self._model.name}")
        return list(results)

    def get_chord_dissonance(self, chord_index: int) -> float:
        """Result of the last batch for this chord (NaN if not yet calculated)."""
        _check_index(chord_index, len(self._chords), "Chord")
        return self._chord_dissonances[chord_index]

    def chord_dissonance_frame(self) -> pd.DataFrame:
        """One row per chord: fundamental frequencies per spectrum and the dissonance."""
        rows = []
        for c, chord in enumerate(self._chords):
            row = {"Chord": c}
            for s, note in enumerate(chord.notes):
                row[f"Spectrum {s} {FREQUENCY_COLUMN}"] = note.frequency
                row[f"Spectrum {s} Amplitude"] = note.amplitude
            row["Dissonance"] = self._chord_dissonances[c]
            rows.append(row)
        return pd.DataFrame(rows)

    # ------------------------------------------------------------------
    # Dissonance map configuration
    # ------------------------------------------------------------------

    def set_num_dimensions(self, dimensions: MapDimensions) -> None:
        self._dimensions = MapDimensions(dimensions)
        self._resize_map()

    @property
    def num_dimensions(self) -> MapDimensions:
        return self._dimensions

    def set_range(self, start_freq: float, end_freq: float) -> None:
        """Frequency range (Hz) swept by the variable spectra. Requires 0 < start < end."""
        if start_freq <= 0:
            raise _invalid(f"Range start must be positive: {start_freq}")
        if end_freq <= start_freq:
            raise _invalid(f"Range end ({end_freq}) must be greater than start ({start_freq})")
        self._range = (float(start_freq), float(end_freq))
        self._update_step_size()

    @property
    def frequency_range(self) -> Optional[Tuple[float, float]]:
        return self._range

    def set_num_steps(self, num_steps: int) -> None:
        """Number of points per frequency axis."""
        if isinstance(num_steps, bool) or not isinstance(num_steps, (int, np.integer)) or num_steps <= 0:
            raise _invalid(f"Number of steps must be a positive integer: {num_steps}")
        self._num_steps = int(num_steps)
        self._resize_map()
        self._update_step_size()

    @property
    def num_steps(self) -> int:
        return self._num_steps

    def use_logarithmic_steps(self, use_log_steps: bool = True) -> None:
        """
        Logarithmic steps multiply the frequency by a constant ratio, so the
        resolution follows pitch perception; linear steps add a constant Hz
        offset.
        """
        self._log_steps = bool(use_log_steps)
        self._update_step_size()

    @property
    def using_logarithmic_steps(self) -> bool:
        return self._log_steps

    @property
    def step_size(self) -> float:
        """Ratio between steps (logarithmic) or Hz between steps (linear)."""
        return self._step_size

    def _update_step_size(self) -> None:
        if self._range is None or self._num_steps <= 0:
            return
        start, end = self._range
        if self._log_steps:
            self._step_size = (end / start) ** (1.0 / self._num_steps)
        else:
            self._step_size = (end - start) / self._num_steps

    def _increment(self, freq: float) -> float:
        return freq * self._step_size if self._log_steps else freq + self._step_size

    def _resize_map(self) -> None:
        n = self._num_steps
        if self._dimensions == MapDimensions.TWO_DIMENSIONAL:
            self._map = np.zeros(n)
        else:
            self._map = np.zeros((n, n))

    def set_variable_spectrum(self, index: int) -> None:
        """Spectrum whose fundamental is swept in a two-dimensional map."""
        _check_index(index, len(self._spectra), "Spectrum")
        self._variable_spectrum = index

    def set_x_variable_spectrum(self, index: int) -> None:
        """Spectrum swept along the X axis of a three-dimensional map."""
        _check_index(index, len(self._spectra), "Spectrum")
        self._x_spectrum = index

    def set_y_variable_spectrum(self, index: int) -> None:
        """Spectrum swept along the Y axis of a three-dimensional map."""
        _check_index(index, len(self._spectra), "Spectrum")
        self._y_spectrum = index

    @property
    def variable_spectrum_index(self) -> int:
        return self._variable_spectrum

    @property
    def x_variable_spectrum_index(self) -> int:
        return self._x_spectrum

    @property
    def y_variable_spectrum_index(self) -> int:
        return self._y_spectrum

    def _readiness_problems(self) -> List[str]:
        problems = []
        n = len(self._spectra)
        if n < 2:
            problems.append(f"at least two spectra are required ({n} configured)")
        if self._range is None:
            problems.append("no frequency range has been set")
        if self._model is None:
            problems.append("no dissonance model has been set")
        if self._num_steps <= 1:
            problems.append(f"number of steps must be greater than 1 ({self._num_steps})")

        # optimize sweeps the variable spectrum in either map mode
        if not 0 <= self._variable_spectrum < n:
            problems.append(f"variable spectrum index {self._variable_spectrum} is out of range")
        if self._dimensions == MapDimensions.THREE_DIMENSIONAL:
            for axis, index in (("X", self._x_spectrum), ("Y", self._y_spectrum)):
                if not 0 <= index < n:
                    problems.append(f"{axis} variable spectrum index {index} is out of range")
            if self._x_spectrum == self._y_spectrum:
                problems.append("X and Y variable spectra must differ")

        for i, spectrum in enumerate(self._spectra):
            if spectrum.fundamental_frequency <= 0 or spectrum.fundamental_amplitude <= 0:
                problems.append(f"spectrum {i} ('{spectrum.name}') has no positive fundamental")
            if any(r <= 0 for r in spectrum.frequency_ratios) or any(a <= 0 for a in spectrum.amplitude_ratios):
                problems.append(f"spectrum {i} ('{spectrum.name}') has a non-positive partial ratio")
        return problems

    def is_ready_to_process(self) -> bool:
        """True when a dissonance map or optimization can run."""
        return not self._readiness_problems()

    def _require_ready(self, action: str) -> None:
        problems = self._readiness_problems()
        if problems:
            msg = f"Cannot run {action}: " + "; ".join(problems)
            logger.error(msg)
            raise PreconditionError(msg)

    # ------------------------------------------------------------------
    # Dissonance maps
    # ------------------------------------------------------------------

    def calculate_dissonance_map(self) -> np.ndarray:
        """
        Sweep the variable spectrum (or the X and Y spectra) over the range.

        The owned variable spectra are stepped in place and are left one step
        past the last evaluated frequency (the range end for X/the curve; Y is
        reset to the range start after every X step). Returns a copy of the map.
        """
        self._require_ready("dissonance map")
        start, _ = self._range
        n = self._num_steps

        if self._dimensions == MapDimensions.TWO_DIMENSIONAL:
            values = np.zeros(n)
            variable = self._spectra[self._variable_spectrum]
            freq = start
            variable.set_fundamental_frequency(freq)
            for step in range(n):
                values[step] = self._evaluate(self._snapshot(), False)
                freq = self._increment(freq)
                variable.set_fundamental_frequency(freq)
        else:
            values = np.zeros((n, n))
            x_spectrum = self._spectra[self._x_spectrum]
            y_spectrum = self._spectra[self._y_spectrum]
            x_freq = y_freq = start
            x_spectrum.set_fundamental_frequency(x_freq)
            y_spectrum.set_fundamental_frequency(y_freq)
            for x_step in range(n):
                for y_step in range(n):
                    values[x_step, y_step] = self._evaluate(self._snapshot(), False)
                    y_freq = self._increment(y_freq)
                    y_spectrum.set_fundamental_frequency(y_freq)
                x_freq = self._increment(x_freq)
                x_spectrum.set_fundamental_frequency(x_freq)
                y_freq = start
                y_spectrum.set_fundamental_frequency(y_freq)

        self._map = values
        logger.info(f"Calculated {int(self._dimensions)}D dissonance map: {n} steps, "
                    f"{'logarithmic' if self._log_steps else 'linear'} step {self._step_size:.6g}")
        return values.copy()

    @property
    def dissonance_map(self) -> np.ndarray:
        return self._map.copy()

    def get_dissonance_at_step(self, step: int, y_step: Optional[int] = None) -> float:
        """Map value at ``step`` (curve) or at (``step``, ``y_step``) (surface)."""
        if self._map.ndim == 1:
            if y_step is not None:
                raise IndexError("The current dissonance map has a single frequency axis")
            _check_index(step, self._map.shape[0], "Step")
            return float(self._map[step])
        if y_step is None:
            raise IndexError("The current dissonance map needs an (x, y) step")
        _check_index(step, self._map.shape[0], "X step")
        _check_index(y_step, self._map.shape[1], "Y step")
        return float(self._map[step, y_step])

    def _require_steps(self) -> Tuple[float, float]:
        if self._range is None or self._num_steps <= 0:
            msg = "Frequency range and number of steps must be set first"
            logger.error(msg)
            raise PreconditionError(msg)
        return self._range

    def frequency_at_step(self, step: float) -> float:
        start, _ = self._require_steps()
        if self._log_steps:
            return start * self._step_size ** step
        return start + self._step_size * step

    def frequency_ratio_at_step(self, step: float) -> float:
        """Frequency at ``step`` relative to the range start."""
        return self.frequency_at_step(step) / self._require_steps()[0]

    def step_of_frequency(self, freq: float) -> float:
        """Fractional step at which the sweep reaches ``freq``."""
        start, _ = self._require_steps()
        if freq <= 0:
            raise _invalid(f"Frequency must be positive: {freq}")
        if self._log_steps:
            return math.log(freq / start) / math.log(self._step_size)
        return (freq - start) / self._step_size

    def map_frequencies(self) -> np.ndarray:
        """Frequency of every step of the swept axis."""
        return np.array([self.frequency_at_step(i) for i in range(self._num_steps)])

    def dissonance_at_frequency(self, freq: float, y_freq: Optional[float] = None) -> float:
        """
        Set the owned variable spectrum (or the X and Y spectra) to the given
        fundamental(s) and run a single evaluation.
        """
        if y_freq is None:
            self.get_spectrum(self._variable_spectrum).set_fundamental_frequency(freq)
        else:
            x_spectrum = self.get_spectrum(self._x_spectrum)
            y_spectrum = self.get_spectrum(self._y_spectrum)
            if freq <= 0 or y_freq <= 0:
                raise _invalid(f"Frequencies must be positive: ({freq}, {y_freq})")
            x_spectrum.set_fundamental_frequency(freq)
            y_spectrum.set_fundamental_frequency(y_freq)
        return self.calculate_dissonance()

    def dissonance_map_frame(self) -> pd.DataFrame:
        """The current map as a DataFrame (surface: X frequencies as index, Y as columns)."""
        freqs = self.map_frequencies()
        if self._map.ndim == 1:
            return pd.DataFrame({FREQUENCY_COLUMN: freqs, "Dissonance": self._map})
        frame = pd.DataFrame(self._map, index=freqs, columns=freqs)
        frame.index.name = f"X {FREQUENCY_COLUMN}"
        frame.columns.name = f"Y {FREQUENCY_COLUMN}"
        return frame

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def optimize(self,
                 minimize: bool = True,
                 lower_bound: Optional[float] = None,
                 upper_bound: Optional[float] = None,
                 growth_factor: float = DEFAULT_GROWTH_FACTOR) -> List[float]:
        """
        Local minima (or maxima) of dissonance as a function of the variable
        spectrum's fundamental frequency.

        Start points grow geometrically by ``growth_factor`` through the
        search bounds (the frequency range unless tighter bounds are given);
        the local optimizer runs once from each. Optima closer than 0.1% in
        frequency are merged, keeping the better one. The owned spectra are
        not modified.

        Returns the retained frequencies in ascending order.
        """
        self._require_ready("optimization")
        if growth_factor <= 1:
            raise _invalid(f"Growth factor must be greater than 1: {growth_factor}")
        start, end = self._range
        lower = lower_bound if lower_bound is not None and lower_bound > 0 else start
        upper = upper_bound if upper_bound is not None and upper_bound > 0 else end
        if upper <= lower:
            raise _invalid(f"Optimization bounds are empty: [{lower}, {upper}]")

        base = self._snapshot()
        variable = base[self._variable_spectrum]

        def objective(freq: float) -> float:
            variable.set_fundamental_frequency(freq)
            return self._evaluate(self._snapshot(base), False)

        optima: List[Tuple[float, float]] = []
        runs = 0
        x = lower
        while x < upper:
            candidate = self.optimizer.optimize(objective, x, (lower, upper), maximize=not minimize)
            merge_optimum(optima, candidate, minimize)
            runs += 1
            x *= growth_factor

        if minimize:
            self._minima = optima
        else:
            self._maxima = optima
        logger.info(f"Found {len(optima)} local {'minima' if minimize else 'maxima'} "
                    f"in [{lower:g}, {upper:g}] Hz from {runs} start points")
        return [f for f, _ in optima]

    def optimal_frequencies(self, minima: bool = True) -> List[float]:
        """Frequencies retained by the last ``optimize`` run in that direction."""
        return [f for f, _ in (self._minima if minima else self._maxima)]

    def optimal_values(self, minima: bool = True) -> List[Tuple[float, float]]:
        """(frequency, dissonance) pairs retained by the last ``optimize`` run."""
        return list(self._minima if minima else self._maxima)


__all__ = [
    'DissonanceCalculator',
    'MapDimensions',
    'Chord',
    'ChordNote',
    'merge_optimum',
    'DEFAULT_GROWTH_FACTOR',
    'OPTIMUM_TOLERANCE',
]
