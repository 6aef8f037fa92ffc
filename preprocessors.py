# preprocessors.py

"""
Preprocessors applied to working copies of spectra before a model runs.

A preprocessor may mute fundamentals or partials but must not add, remove
or reorder partials; the calculator checks this after every call.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, MutableSequence, Optional, Tuple

from dissonance_errors import InvalidInputError
from overtone_spectrum import OvertoneSpectrum

logger = logging.getLogger(__name__)

DEFAULT_HEARING_RANGE: Tuple[float, float] = (20.0, 20000.0)


class Preprocessor(ABC):
    """Base class for preprocessing algorithms."""

    def __init__(self, name: str = "", description: str = ""):
        self.name = name
        self.description = description

    @abstractmethod
    def process(self, spectra: MutableSequence[OvertoneSpectrum]) -> None:
        """Modify ``spectra`` in place."""

    def clone(self) -> "Preprocessor":
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class HearingRangePreprocessor(Preprocessor):
    """Band-pass: mutes every fundamental or partial whose real frequency is outside [low, high] Hz."""

    def __init__(self, low: float = DEFAULT_HEARING_RANGE[0], high: float = DEFAULT_HEARING_RANGE[1]):
        super().__init__(
            "Hearing Range",
            "Applies a bandpass filter to remove frequencies that lie outside the human hearing range.",
        )
        self._low = DEFAULT_HEARING_RANGE[0]
        self._high = DEFAULT_HEARING_RANGE[1]
        self.set_hearing_range(low, high)

    def set_hearing_range(self, low: float, high: float) -> None:
        if low < 0 or high <= low:
            msg = f"Invalid hearing range [{low}, {high}]: need 0 <= low < high"
            logger.error(msg)
            raise InvalidInputError(msg)
        self._low = float(low)
        self._high = float(high)

    @property
    def hearing_range(self) -> Tuple[float, float]:
        return self._low, self._high

    def _audible(self, freq: float) -> bool:
        return self._low <= freq <= self._high

    def process(self, spectra: MutableSequence[OvertoneSpectrum]) -> None:
        muted = 0
        for spectrum in spectra:
            if not self._audible(spectrum.fundamental_frequency):
                spectrum.mute_fundamental(True)
                muted += 1
            for p in range(spectrum.num_partials):
                if not self._audible(spectrum.get_real_frequency(p)):
                    spectrum.mute_partial(p, True)
                    muted += 1
        if muted:
            logger.debug(f"{self.name}: muted {muted} element(s) outside "
                         f"{self._low:g}-{self._high:g} Hz")


PreprocessorFactory = Callable[[], Preprocessor]

BUILTIN_PREPROCESSORS: Mapping[str, PreprocessorFactory] = {
    "hearing-range": HearingRangePreprocessor,
}


def get_preprocessor(name: str,
                     registry: Optional[Mapping[str, PreprocessorFactory]] = None) -> Preprocessor:
    """New preprocessor instance by name, from ``registry`` or the built-ins."""
    factories: Dict[str, PreprocessorFactory] = dict(
        registry if registry is not None else BUILTIN_PREPROCESSORS
    )
    key = name.strip().lower()
    if key in factories:
        return factories[key]()
    raise ValueError(f"Unknown preprocessor: {name}")


def list_available_preprocessors(registry: Optional[Mapping[str, PreprocessorFactory]] = None) -> List[str]:
    return list(registry if registry is not None else BUILTIN_PREPROCESSORS)


__all__ = [
    'Preprocessor',
    'HearingRangePreprocessor',
    'DEFAULT_HEARING_RANGE',
    'BUILTIN_PREPROCESSORS',
    'get_preprocessor',
    'list_available_preprocessors',
]
