import pandas as pd
import pytest

from dissonance_errors import InvalidInputError
from overtone_spectrum import OvertoneSpectrum


def test_add_partial_keeps_ratios_sorted():
    spectrum = OvertoneSpectrum("test")
    for ratio in (3.0, 1.5, 5.0, 2.0, 0.5):
        spectrum.add_partial(ratio, 0.5)

    assert spectrum.frequency_ratios == [0.5, 1.5, 2.0, 3.0, 5.0]
    assert spectrum.num_partials == 5


def test_add_partial_returns_insertion_index():
    spectrum = OvertoneSpectrum()
    assert spectrum.add_partial(3.0, 1.0) == 0
    assert spectrum.add_partial(2.0, 1.0) == 0
    assert spectrum.add_partial(4.0, 1.0) == 2


@pytest.mark.parametrize("ratio, amp", [(0.0, 1.0), (-2.0, 1.0), (2.0, 0.0), (2.0, -1.0)])
def test_add_partial_rejects_non_positive_values(ratio, amp):
    spectrum = OvertoneSpectrum()
    with pytest.raises(InvalidInputError):
        spectrum.add_partial(ratio, amp)
    assert spectrum.num_partials == 0


def test_add_partial_rejects_duplicates_and_fundamental_ratio():
    spectrum = OvertoneSpectrum()
    spectrum.add_partial(2.0, 0.5)

    with pytest.raises(InvalidInputError):
        spectrum.add_partial(2.0, 0.3)
    with pytest.raises(InvalidInputError):
        spectrum.add_partial(1.0, 0.3)
    assert spectrum.frequency_ratios == [2.0]
    assert spectrum.get_amplitude_ratio(0) == 0.5


def test_min_interval_rejects_close_ratios_in_both_directions():
    spectrum = OvertoneSpectrum(min_interval=1.1)
    spectrum.add_partial(2.0, 1.0)

    with pytest.raises(InvalidInputError):
        spectrum.add_partial(2.1, 1.0)      # 2.1 / 2.0 = 1.05
    with pytest.raises(InvalidInputError):
        spectrum.add_partial(1.9, 1.0)      # 2.0 / 1.9 ~ 1.053
    with pytest.raises(InvalidInputError):
        spectrum.add_partial(1.05, 1.0)     # too close to the fundamental
    with pytest.raises(InvalidInputError):
        spectrum.add_partial(0.95, 1.0)

    spectrum.add_partial(2.3, 1.0)
    assert spectrum.frequency_ratios == [2.0, 2.3]


def test_sorted_and_spaced_after_many_insertions():
    spectrum = OvertoneSpectrum(min_interval=1.05)
    candidates = [1.5, 1.52, 3.0, 2.0, 2.04, 0.7, 4.4, 4.5, 6.1, 0.72]
    for ratio in candidates:
        try:
            spectrum.add_partial(ratio, 1.0)
        except InvalidInputError:
            pass

    ratios = [1.0] + spectrum.frequency_ratios
    assert spectrum.frequency_ratios == sorted(spectrum.frequency_ratios)
    for i, r in enumerate(ratios):
        for s in ratios[i + 1:]:
            assert not (1 / 1.05 <= r / s <= 1.05)


def test_set_frequency_ratio_resorts_and_ignores_itself():
    spectrum = OvertoneSpectrum(min_interval=1.1)
    spectrum.add_partial(2.0, 1.0)
    spectrum.add_partial(3.0, 0.5)

    # a small move of the same partial must not conflict with its old ratio
    assert spectrum.set_frequency_ratio(0, 2.05) == 0
    assert spectrum.set_frequency_ratio(0, 4.0) == 1
    assert spectrum.frequency_ratios == [3.0, 4.0]
    assert spectrum.get_amplitude_ratio(1) == 1.0

    with pytest.raises(InvalidInputError):
        spectrum.set_frequency_ratio(0, 4.2)
    assert spectrum.frequency_ratios == [3.0, 4.0]


def test_min_interval_setter_validates_existing_partials():
    spectrum = OvertoneSpectrum()
    spectrum.add_partial(2.0, 1.0)
    spectrum.add_partial(2.1, 1.0)

    with pytest.raises(InvalidInputError):
        spectrum.min_interval = 1.1
    with pytest.raises(InvalidInputError):
        spectrum.min_interval = 0.5
    assert spectrum.min_interval == 1.0

    spectrum.min_interval = 1.04
    assert spectrum.min_interval == 1.04


def test_real_values_scale_with_fundamental():
    spectrum = OvertoneSpectrum()
    spectrum.add_partial(2.0, 0.5)
    spectrum.set_fundamental(220.0, 0.8)

    assert spectrum.get_real_frequency(0) == pytest.approx(440.0)
    assert spectrum.get_real_amplitude(0) == pytest.approx(0.4)


def test_set_fundamental_rejects_invalid_values():
    spectrum = OvertoneSpectrum()
    spectrum.set_fundamental(100.0, 1.0)

    with pytest.raises(InvalidInputError):
        spectrum.set_fundamental(0.0, 1.0)
    with pytest.raises(InvalidInputError):
        spectrum.set_fundamental(100.0, -1.0)
    with pytest.raises(InvalidInputError):
        spectrum.set_fundamental_frequency(-5.0)
    assert spectrum.fundamental_frequency == 100.0
    assert spectrum.fundamental_amplitude == 1.0


def test_mute_flags_are_independent():
    spectrum = OvertoneSpectrum()
    spectrum.add_partial(2.0, 1.0)
    spectrum.set_fundamental(100.0, 1.0)

    spectrum.mute_partial(0)
    assert spectrum.partial_is_muted(0)
    assert not spectrum.fundamental_is_muted
    assert spectrum.fundamental_is_active()
    assert not spectrum.partial_is_active(0)

    spectrum.mute_partial(0, False)
    spectrum.mute(True)
    assert not spectrum.partial_is_muted(0)
    assert not spectrum.partial_is_active(0)
    assert not spectrum.fundamental_is_active()


def test_total_dissonance_and_clear():
    spectrum = OvertoneSpectrum()
    spectrum.add_partial(2.0, 1.0)
    spectrum.add_partial(3.0, 1.0)
    spectrum.add_fundamental_dissonance(0.5)
    spectrum.add_partial_dissonance(0, 0.25)
    spectrum.add_partial_dissonance(1, 0.125)

    assert spectrum.get_total_dissonance() == pytest.approx(0.875)

    spectrum.clear_dissonances()
    assert spectrum.get_total_dissonance() == 0.0
    assert spectrum.fundamental_dissonance == 0.0


def test_copy_is_deep_and_resets_accumulators():
    spectrum = OvertoneSpectrum("orig", min_interval=1.01)
    spectrum.add_partial(2.0, 0.5)
    spectrum.set_fundamental(100.0, 1.0)
    spectrum.mute_partial(0)
    spectrum.add_partial_dissonance(0, 3.0)
    spectrum.add_fundamental_dissonance(1.0)

    clone = spectrum.copy()
    assert clone.name == "orig"
    assert clone.min_interval == 1.01
    assert clone.frequency_ratios == [2.0]
    assert clone.partial_is_muted(0)
    assert clone.get_total_dissonance() == 0.0

    clone.set_amplitude_ratio(0, 0.9)
    clone.set_fundamental_frequency(300.0)
    assert spectrum.get_amplitude_ratio(0) == 0.5
    assert spectrum.fundamental_frequency == 100.0


def test_partial_index_out_of_range():
    spectrum = OvertoneSpectrum()
    spectrum.add_partial(2.0, 1.0)

    with pytest.raises(IndexError):
        spectrum.get_frequency_ratio(1)
    with pytest.raises(IndexError):
        spectrum.mute_partial(-1)
    with pytest.raises(IndexError):
        spectrum.remove_partial(5)


def test_harmonic_spectrum():
    spectrum = OvertoneSpectrum.harmonic(4, decay=0.5, fundamental_freq=110.0)

    assert spectrum.frequency_ratios == [2.0, 3.0, 4.0]
    assert spectrum.amplitude_ratios == pytest.approx([0.5, 0.25, 0.125])
    assert list(spectrum.real_frequencies()) == pytest.approx([220.0, 330.0, 440.0])


def test_from_frame_and_to_frame():
    df = pd.DataFrame({
        "Frequency (Hz)": [400.0, 200.0, 600.0, -1.0],
        "Amplitude": [0.5, 1.0, 0.25, 1.0],
    })
    spectrum = OvertoneSpectrum.from_frame(df, name="peaks")

    assert spectrum.fundamental_frequency == 200.0
    assert spectrum.frequency_ratios == pytest.approx([2.0, 3.0])
    assert spectrum.amplitude_ratios == pytest.approx([0.5, 0.25])

    out = spectrum.to_frame()
    assert list(out["Frequency (Hz)"]) == pytest.approx([200.0, 400.0, 600.0])
    assert list(out["Dissonance"]) == [0.0, 0.0, 0.0]


def test_from_frame_requires_columns():
    with pytest.raises(InvalidInputError):
        OvertoneSpectrum.from_frame(pd.DataFrame({"Frequency (Hz)": [100.0]}))
