import pytest

from dissonance_errors import InvalidInputError
from overtone_spectrum import OvertoneSpectrum
from preprocessors import (
    DEFAULT_HEARING_RANGE,
    HearingRangePreprocessor,
    get_preprocessor,
    list_available_preprocessors,
)


def _spectrum(freq, ratios):
    spectrum = OvertoneSpectrum()
    for r in ratios:
        spectrum.add_partial(r, 1.0)
    spectrum.set_fundamental(freq, 1.0)
    return spectrum


def test_default_hearing_range_mutes_inaudible_partials():
    spectrum = _spectrum(100.0, [0.15, 10.0])      # 15 Hz and 1000 Hz
    HearingRangePreprocessor().process([spectrum])

    assert spectrum.partial_is_muted(0)
    assert not spectrum.partial_is_muted(1)
    assert not spectrum.fundamental_is_muted


def test_hearing_range_mutes_fundamentals_and_high_partials():
    low = _spectrum(10.0, [4.0])                   # 10 Hz fundamental, 40 Hz partial
    high = _spectrum(15000.0, [2.0])               # 30 kHz partial
    HearingRangePreprocessor().process([low, high])

    assert low.fundamental_is_muted
    assert not low.partial_is_muted(0)
    assert not high.fundamental_is_muted
    assert high.partial_is_muted(0)


def test_custom_hearing_range():
    pre = HearingRangePreprocessor(100.0, 1000.0)
    spectrum = _spectrum(200.0, [2.0, 6.0])
    pre.process([spectrum])

    assert pre.hearing_range == (100.0, 1000.0)
    assert not spectrum.partial_is_muted(0)
    assert spectrum.partial_is_muted(1)


def test_invalid_hearing_range_leaves_range_unchanged():
    pre = HearingRangePreprocessor()
    with pytest.raises(InvalidInputError):
        pre.set_hearing_range(500.0, 100.0)
    assert pre.hearing_range == DEFAULT_HEARING_RANGE


def test_preprocessor_does_not_touch_structure():
    spectrum = _spectrum(50.0, [0.2, 2.0, 1000.0])
    HearingRangePreprocessor().process([spectrum])

    assert spectrum.frequency_ratios == [0.2, 2.0, 1000.0]


def test_clone_and_factory():
    pre = HearingRangePreprocessor(30.0, 15000.0)
    clone = pre.clone()
    clone.set_hearing_range(20.0, 20000.0)

    assert pre.hearing_range == (30.0, 15000.0)
    assert clone.name == "Hearing Range"
    assert clone.description

    assert list_available_preprocessors() == ["hearing-range"]
    assert isinstance(get_preprocessor("Hearing-Range"), HearingRangePreprocessor)
    with pytest.raises(ValueError):
        get_preprocessor("loudness")
