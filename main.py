# main.py - Dissonance curve launcher

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from log_config import configure_root_logger
from dissonance_calc import DEFAULT_GROWTH_FACTOR, DissonanceCalculator
from dissonance_errors import DissonanceError
from dissonance_models import get_dissonance_model, list_available_models
from overtone_spectrum import OvertoneSpectrum
from preprocessors import HearingRangePreprocessor

logger = logging.getLogger(__name__)


def global_exception_hook(exc_type, exc_value, exc_traceback):
    """Log any unhandled exception with its traceback before the interpreter exits."""
    logging.critical("An unhandled exception occurred:", exc_info=(exc_type, exc_value, exc_traceback))
    traceback.print_exception(exc_type, exc_value, exc_traceback)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Dissonance curve of two harmonic tones: one fixed at --base, the other "
            "swept from --start to --end."
        )
    )
    parser.add_argument("--model", default="sethares", choices=list_available_models(),
                        help="Dissonance model (default: sethares).")
    parser.add_argument("--partials", type=int, default=6,
                        help="Partials per tone, fundamental included (default: 6).")
    parser.add_argument("--decay", type=float, default=0.88,
                        help="Amplitude of partial k is decay**(k-1) (default: 0.88).")
    parser.add_argument("--base", type=float, default=261.63,
                        help="Fundamental of the fixed tone in Hz (default: 261.63).")
    parser.add_argument("--start", type=float, default=None,
                        help="Sweep start in Hz (default: --base).")
    parser.add_argument("--end", type=float, default=None,
                        help="Sweep end in Hz (default: 2 x --base).")
    parser.add_argument("--steps", type=int, default=400, help="Number of steps (default: 400).")
    parser.add_argument("--log-steps", action="store_true", help="Use logarithmic steps.")
    parser.add_argument("--no-hearing-range", action="store_true",
                        help="Do not mute partials outside 20 Hz - 20 kHz.")
    parser.add_argument("--minima", action="store_true",
                        help="Also search for local minima of the curve.")
    parser.add_argument("--growth", type=float, default=DEFAULT_GROWTH_FACTOR,
                        help=f"Growth factor between optimizer start points (default: {DEFAULT_GROWTH_FACTOR}).")
    parser.add_argument("--output", type=Path, default=None,
                        help="CSV file for the curve (default: print a summary only).")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: $DISSONANCE_LOG_LEVEL or INFO).")
    return parser


def build_calculator(args: argparse.Namespace) -> DissonanceCalculator:
    start = args.start if args.start is not None else args.base
    end = args.end if args.end is not None else 2 * args.base

    tone = OvertoneSpectrum.harmonic(args.partials, args.decay, args.base, name="tone")
    calc = DissonanceCalculator(get_dissonance_model(args.model))
    if not args.no_hearing_range:
        calc.add_preprocessor(HearingRangePreprocessor())
    calc.add_spectrum(tone)
    calc.add_spectrum(tone)

    calc.set_variable_spectrum(1)
    calc.use_logarithmic_steps(args.log_steps)
    calc.set_range(start, end)
    calc.set_num_steps(args.steps)
    return calc


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the dissonance-map command."""
    args = build_parser().parse_args(argv)
    configure_root_logger(args.log_level)
    sys.excepthook = global_exception_hook

    try:
        calc = build_calculator(args)
        calc.calculate_dissonance_map()
        frame = calc.dissonance_map_frame()
        if args.output is not None:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            frame.to_csv(args.output, index=False)
            logger.info(f"Dissonance curve saved to {args.output}")

        peak = frame.loc[frame["Dissonance"].idxmax()]
        print(f"{calc.model_name}: {len(frame)} steps, "
              f"max dissonance {peak['Dissonance']:.4f} at {peak['Frequency (Hz)']:.2f} Hz")

        if args.minima:
            minima = calc.optimize(minimize=True, growth_factor=args.growth)
            ratios = ", ".join(f"{f:.2f} Hz ({f / args.base:.4f})" for f in minima)
            print(f"Local minima: {ratios or 'none'}")
    except DissonanceError as e:
        logger.error(f"Dissonance calculation failed: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
