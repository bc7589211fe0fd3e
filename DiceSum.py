import argparse
import json
import math
import os
import platform
import sys
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


## --- CONFIGURATION ---
debug = False

MIN_DICE = 1
MAX_DICE = 10
MIN_SIDES = 2
MAX_SIDES = 100

BAR_WIDTH = 30
DEFAULT_CHUNK_SIZE = 1_000_000
DEFAULT_OUTPUT_DIR = "results"

TABLE_RULE = "=" * 81


## --- PARAMETERS ---

@dataclass(frozen=True)
class SimulationParameters:
    dice_count: int
    side_count: int
    trial_count: int

    @property
    def min_sum(self):
        return self.dice_count

    @property
    def max_sum(self):
        return self.dice_count * self.side_count

    @property
    def sum_range(self):
        return range(self.min_sum, self.max_sum + 1)

    @property
    def degrees_of_freedom(self):
        return self.max_sum - self.min_sum

    @property
    def total_outcomes(self):
        return self.side_count ** self.dice_count

    @property
    def label(self):
        return f"{self.dice_count}d{self.side_count}"


@dataclass(frozen=True)
class ChiSquaredResult:
    statistic: float
    degrees_of_freedom: int


@dataclass(frozen=True)
class ExperimentResult:
    params: SimulationParameters
    expected: pd.Series
    observed: pd.Series
    chi_squared: ChiSquaredResult
    sample_mean: float
    sample_std: float
    elapsed_ms: float
    run_dir: Optional[Path]


def SumRange(dice_count, side_count):
    """Inclusive (min_sum, max_sum) of the totals `dice_count` dice can show."""
    return dice_count, dice_count * side_count


def _sum_index(min_sum, max_sum):
    return pd.RangeIndex(min_sum, max_sum + 1, name="Sum")


def _check_bounded_int(value, lower, upper, name):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < lower or (upper is not None and value > upper):
        if upper is None:
            raise ValueError(f"{name} must be at least {lower}, got {value}")
        raise ValueError(f"{name} must be between {lower} and {upper}, got {value}")
    return int(value)


def _check_dice_count(value):
    return _check_bounded_int(value, MIN_DICE, MAX_DICE, "dice count")


def _check_side_count(value):
    return _check_bounded_int(value, MIN_SIDES, MAX_SIDES, "side count")


def _check_trial_count(value):
    return _check_bounded_int(value, 1, None, "trial count")


def CheckParameters(dice_count, side_count, trial_count):
    """Validate raw values from the user and bundle them. Raises ValueError."""
    return SimulationParameters(
        dice_count=_check_dice_count(dice_count),
        side_count=_check_side_count(side_count),
        trial_count=_check_trial_count(trial_count),
    )


## --- COMBINATORICS ---

def _count_sum_combinations(dice_remaining, target_sum, side_count, memo):
    if target_sum < dice_remaining or target_sum > dice_remaining * side_count:
        return 0
    if dice_remaining == 0:
        return 1 if target_sum == 0 else 0

    key = (dice_remaining, target_sum)
    if key not in memo:
        total_combinations = 0
        for face in range(1, side_count + 1):
            total_combinations += _count_sum_combinations(dice_remaining - 1, target_sum - face, side_count, memo)
        memo[key] = total_combinations
    return memo[key]


def CountSumCombinations(dice_remaining, target_sum, side_count, memo=None):
    """Number of ordered rolls of `dice_remaining` dice (faces 1..side_count) totalling `target_sum`.

    Unreachable sums give 0. Counts are exact Python ints; 10d100 already has
    more outcomes than an int64 can hold. `memo` maps (dice_remaining,
    target_sum) to counts and may be shared between calls with the same
    `side_count`; a fresh one is used when omitted.
    """
    if memo is None:
        memo = {}
    return _count_sum_combinations(int(dice_remaining), int(target_sum), int(side_count), memo)


def CombinationTable(dice_count, side_count):
    min_sum, max_sum = SumRange(dice_count, side_count)
    memo = {}
    ways = [CountSumCombinations(dice_count, total, side_count, memo) for total in range(min_sum, max_sum + 1)]
    return pd.Series(ways, index=_sum_index(min_sum, max_sum), dtype=object, name="Ways")


## --- THEORETICAL MODEL ---

def CalculateTheoreticalProbabilities(dice_count, side_count):
    total_possible_outcomes = side_count ** dice_count
    table = CombinationTable(dice_count, side_count)
    # true division of exact ints stays correctly rounded past 2**53
    probabilities = [ways / total_possible_outcomes for ways in table]
    return pd.Series(probabilities, index=table.index, dtype=np.float64, name="Probability")


def CalculateTheoreticalCounts(dice_count, side_count, trial_count):
    """Expected tally for every sum over `trial_count` trials."""
    probabilities = CalculateTheoreticalProbabilities(dice_count, side_count)
    expected = probabilities * float(trial_count)
    expected.name = "Expected"
    return expected


def TheoreticalMoments(dice_count, side_count):
    mean = dice_count * (side_count + 1) / 2.0
    variance = dice_count * (side_count * side_count - 1) / 12.0
    return mean, variance


## --- SAMPLING ---

class _TallyAccumulator:
    """Aggregate per-sum tallies incrementally to avoid storing per-trial data."""

    def __init__(self, dice_count, side_count):
        self.min_sum, self.max_sum = SumRange(dice_count, side_count)
        self.counts = np.zeros(self.max_sum - self.min_sum + 1, dtype=np.int64)
        self.total_count = 0
        self.total_sum = 0.0
        self.total_sum_sq = 0.0

    def update(self, sums):
        if sums.size == 0:
            return

        with np.errstate(all="raise"):
            sums_int64 = sums.astype(np.int64)
            self.total_count += int(sums.size)
            self.total_sum += float(sums_int64.sum())
            self.total_sum_sq += float(np.dot(sums_int64, sums_int64))

            chunk_counts = np.bincount(sums_int64 - self.min_sum, minlength=self.counts.size)
            self.counts += chunk_counts.astype(np.int64)
        del sums_int64

    def observed_counts(self):
        return pd.Series(self.counts.copy(), index=_sum_index(self.min_sum, self.max_sum), name="Observed")

    @property
    def mean(self):
        if self.total_count == 0:
            return 0.0
        return self.total_sum / self.total_count

    @property
    def std(self):
        if self.total_count == 0:
            return 0.0
        mean_val = self.mean
        variance = (self.total_sum_sq / self.total_count) - mean_val * mean_val
        if variance < 0.0:
            variance = 0.0
        return float(np.sqrt(variance))


def _format_elapsed(seconds):
    seconds_float = max(0.0, float(seconds))
    if seconds_float < 0.001:
        return "0ms"
    if seconds_float < 1.0:
        return f"{seconds_float * 1000:.0f}ms"
    if seconds_float < 60.0:
        return f"{seconds_float:.2f}s"
    minutes, secs = divmod(int(round(seconds_float)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def PrintBatchProgress(elapsed, trials_completed, total_trials, prefix="Simulating"):
    rate = trials_completed / elapsed if elapsed > 0 else 0
    eta = (float(total_trials) - trials_completed) / rate if rate > 0 else 0
    pct = trials_completed / total_trials * 100 if total_trials else 100.0
    print(f"\r{prefix}: {pct:5.1f}% | {rate:11,.0f} trials/s | ETA: {eta:3.0f}s ", end="", flush=True)


def _simulate_into(accumulator, generator, dice_count, side_count, trial_count, chunk_size=None, show_progress=False):
    if chunk_size is None:
        chunk_size = DEFAULT_CHUNK_SIZE
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer")

    processed = 0
    start_time = time.time()

    while processed < trial_count:
        batch_size = min(chunk_size, trial_count - processed)
        rolls = generator.integers(1, side_count + 1, size=(batch_size, dice_count), dtype=np.int8)
        sums = rolls.sum(axis=1, dtype=np.int64)
        accumulator.update(sums)
        processed += batch_size

        if debug:
            print(f"\nChunk | {batch_size} trials | sums {int(sums.min())}..{int(sums.max())} | {processed}/{trial_count}")
        if show_progress:
            PrintBatchProgress(time.time() - start_time, processed, trial_count)
        del rolls, sums

    if show_progress and trial_count > 0:
        print()
    return accumulator


def RunSimulation(dice_count, side_count, trial_count, rng=None, chunk_size=None, show_progress=False):
    """Roll `dice_count` dice `trial_count` times and tally each total.

    Every trial draws its dice from the one generator passed in; the generator
    is never reseeded. Trials are processed in chunks of at most `chunk_size`
    so memory stays flat for large trial counts.
    """
    generator = rng if rng is not None else np.random.default_rng()
    accumulator = _TallyAccumulator(dice_count, side_count)
    _simulate_into(accumulator, generator, dice_count, side_count, trial_count, chunk_size, show_progress)
    return accumulator.observed_counts()


## --- GOODNESS OF FIT ---

def _aligned_values(values, min_sum, max_sum):
    index = _sum_index(min_sum, max_sum)
    if isinstance(values, dict):
        values = pd.Series(values, dtype=np.float64)
    if isinstance(values, pd.Series):
        series = values.sort_index()
        # keyed input must cover exactly min_sum..max_sum
        if not series.index.equals(index):
            raise ValueError(
                f"Counts must be keyed by every sum from {min_sum} to {max_sum}, "
                f"got keys {list(series.index)[:5]}{'...' if len(series) > 5 else ''}"
            )
        return series.to_numpy(dtype=np.float64)

    array = np.asarray(values, dtype=np.float64)
    if array.shape != (len(index),):
        raise ValueError(f"Expected {len(index)} counts for sums {min_sum}..{max_sum}, got shape {array.shape}")
    return array


def _chi_squared_contributions(observed, expected, min_sum, max_sum):
    observed_values = _aligned_values(observed, min_sum, max_sum)
    expected_values = _aligned_values(expected, min_sum, max_sum)

    contributions = np.zeros(expected_values.size, dtype=np.float64)
    # bins with no expected mass are left out, including expected == 0
    mask = expected_values > 0
    difference = observed_values[mask] - expected_values[mask]
    contributions[mask] = difference * difference / expected_values[mask]
    return contributions


def ChiSquaredTest(observed, expected, min_sum, max_sum):
    """Chi-Squared statistic over min_sum..max_sum.

    `observed` and `expected` are Series or dicts keyed by sum, or sequences
    laid out over the sum range. Keys or lengths that do not match the range
    raise ValueError. A smaller value means a better fit.
    """
    return float(_chi_squared_contributions(observed, expected, min_sum, max_sum).sum())


def EvaluateGoodnessOfFit(observed, expected, params):
    statistic = ChiSquaredTest(observed, expected, params.min_sum, params.max_sum)
    return ChiSquaredResult(statistic=statistic, degrees_of_freedom=params.degrees_of_freedom)


## --- REPORTING ---

def FormatResultsReport(observed, expected, params, chi_squared, sample_moments=None):
    expected_values = _aligned_values(expected, params.min_sum, params.max_sum)
    observed_values = _aligned_values(observed, params.min_sum, params.max_sum).astype(np.int64)
    max_expected = float(expected_values.max()) if expected_values.size else 0.0

    lines = [
        "",
        f"--- Simulation Results for {params.trial_count} trials of rolling {params.label} ---",
        TABLE_RULE,
        f"| {'Sum':<4} | {'Expected Count':<18} | {'Observed Count':<18} | Distribution Bar",
        "|------|--------------------|--------------------|--------------------------------",
    ]
    for offset, total in enumerate(params.sum_range):
        bar_width = 0
        if max_expected > 0:
            bar_width = int((observed_values[offset] / max_expected) * BAR_WIDTH)
        lines.append(
            f"| {total:<4d} | {expected_values[offset]:<18.2f} | {int(observed_values[offset]):<18d} | {'#' * bar_width}"
        )
    lines.append(TABLE_RULE)
    lines.append("Statistical Analysis:")
    lines.append(f"  - Chi-Squared (χ²) Statistic: {chi_squared.statistic:.4f}")
    lines.append(f"  - Degrees of Freedom: {chi_squared.degrees_of_freedom}")
    if sample_moments is not None:
        theoretical_mean, theoretical_variance = TheoreticalMoments(params.dice_count, params.side_count)
        sample_mean, sample_std = sample_moments
        lines.append(f"  - Mean: observed {sample_mean:.4f} | theoretical {theoretical_mean:.4f}")
        lines.append(f"  - Std dev: observed {sample_std:.4f} | theoretical {math.sqrt(theoretical_variance):.4f}")
    lines.extend([
        "",
        "Interpretation: A smaller Chi-Squared value indicates a better fit between",
        "the observed results and the theoretical probabilities. As the number of",
        "trials increases, this value should approach the degrees of freedom.",
    ])
    return "\n".join(lines)


def _build_distribution_frame(observed, expected, params):
    probabilities = CalculateTheoreticalProbabilities(params.dice_count, params.side_count)
    df = pd.DataFrame({
        "Sum": list(params.sum_range),
        "Ways": [str(ways) for ways in CombinationTable(params.dice_count, params.side_count)],
        "Probability": probabilities.to_numpy(),
        "Expected": _aligned_values(expected, params.min_sum, params.max_sum),
        "Observed": _aligned_values(observed, params.min_sum, params.max_sum).astype(np.int64),
    })
    if params.trial_count > 0:
        df["Observed_%"] = df["Observed"] / params.trial_count * 100
    else:
        df["Observed_%"] = 0.0
    df["Contribution"] = _chi_squared_contributions(observed, expected, params.min_sum, params.max_sum)
    return df


def _plot_distribution(df, params, chi_squared):
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar(df["Sum"], df["Observed"], width=0.8, edgecolor="black", alpha=0.7, label="Observed")
    ax.plot(df["Sum"], df["Expected"], color="red", marker="o", markersize=3, linewidth=1.5, label="Expected")
    ax.set_title(
        f"{params.label} sums over {params.trial_count} trials "
        f"(χ² = {chi_squared.statistic:.2f}, df = {chi_squared.degrees_of_freedom})"
    )
    ax.set_xlabel("Sum")
    ax.set_ylabel("Trials")
    ax.legend()
    ax.grid(alpha=0.3, axis="y")
    fig.tight_layout()
    return fig


def _export_artifacts(result, output_dir, seed, start_time, run_start_unix, save_plots, show_plots, save_run_metadata):
    params = result.params
    output_root = Path(output_dir)
    output_root.mkdir(parents=True, exist_ok=True)

    run_basename = f"dicesum_{params.label}_{params.trial_count}_{run_start_unix}"
    run_dir = output_root / run_basename
    run_dir.mkdir(parents=True, exist_ok=True)

    df = _build_distribution_frame(result.observed, result.expected, params)
    csv_path = run_dir / f"{run_basename}_distribution.csv"
    df.to_csv(csv_path, index=False)
    print(f"Saved per-sum counts to: {csv_path}")

    saved_plot_paths = []
    fig = _plot_distribution(df, params, result.chi_squared)
    if save_plots:
        plot_path = run_dir / f"{run_basename}_distribution.png"
        fig.savefig(plot_path, dpi=150)
        saved_plot_paths.append(plot_path)
        print(f"Saved distribution plot to: {plot_path}")
    if show_plots:
        plt.show()
    else:
        plt.close(fig)

    if save_run_metadata:
        theoretical_mean, theoretical_variance = TheoreticalMoments(params.dice_count, params.side_count)
        system_info = platform.uname()
        metadata_path = run_dir / f"{run_basename}_metadata.json"
        metadata = {
            "run": {
                "dice_count": params.dice_count,
                "side_count": params.side_count,
                "trial_count": params.trial_count,
                "seed": seed,
                "min_sum": params.min_sum,
                "max_sum": params.max_sum,
                "chi_squared": result.chi_squared.statistic,
                "degrees_of_freedom": result.chi_squared.degrees_of_freedom,
                "sample_mean": result.sample_mean,
                "sample_std": result.sample_std,
                "theoretical_mean": theoretical_mean,
                "theoretical_std": math.sqrt(theoretical_variance),
                "output_directory": str(run_dir),
                "run_timestamp_unix": run_start_unix,
            },
            "timing": {
                "started_at_utc": datetime.fromtimestamp(
                    start_time, tz=timezone.utc
                ).isoformat(timespec="seconds").replace("+00:00", "Z"),
                "elapsed_ms": result.elapsed_ms,
                "elapsed_seconds": result.elapsed_ms / 1000.0,
            },
            "system": {
                "platform": system_info.system,
                "platform_release": system_info.release,
                "machine": system_info.machine,
                "python_version": platform.python_version(),
                "python_implementation": platform.python_implementation(),
                "python_executable": sys.executable,
                "cpu_count": os.cpu_count(),
                "numpy_version": np.__version__,
                "pandas_version": pd.__version__,
            },
            "artifacts": {
                "distribution_csv": str(csv_path),
                "plots": [str(path) for path in saved_plot_paths],
            },
        }
        with metadata_path.open("w", encoding="utf-8") as metadata_file:
            json.dump(metadata, metadata_file, indent=2)
        print(f"Saved metadata to: {metadata_path}")

    print(f"Artifacts saved under: {run_dir}")
    return run_dir


def RunExperiment(
    params,
    rng=None,
    seed=None,
    chunk_size=None,
    output_dir=None,
    save_plots=True,
    show_plots=False,
    save_run_metadata=True,
    show_progress=False,
):
    generator = rng if rng is not None else np.random.default_rng(seed)
    start_time = time.time()
    run_start_unix = int(start_time)

    print("\nCalculating theoretical probabilities...")
    expected = CalculateTheoreticalCounts(params.dice_count, params.side_count, params.trial_count)

    print(f"Running simulation with {params.trial_count} trials...")
    accumulator = _TallyAccumulator(params.dice_count, params.side_count)
    _simulate_into(
        accumulator,
        generator,
        params.dice_count,
        params.side_count,
        params.trial_count,
        chunk_size=chunk_size,
        show_progress=show_progress,
    )
    observed = accumulator.observed_counts()

    chi_squared = EvaluateGoodnessOfFit(observed, expected, params)
    elapsed_ms = (time.time() - start_time) * 1000.0

    print(FormatResultsReport(observed, expected, params, chi_squared, (accumulator.mean, accumulator.std)))
    print(f"\nTime: {_format_elapsed(elapsed_ms / 1000.0)}")

    result = ExperimentResult(
        params=params,
        expected=expected,
        observed=observed,
        chi_squared=chi_squared,
        sample_mean=float(accumulator.mean),
        sample_std=float(accumulator.std),
        elapsed_ms=elapsed_ms,
        run_dir=None,
    )
    if output_dir:
        # a caller-supplied generator makes the seed meaningless
        recorded_seed = seed if rng is None else None
        run_dir = _export_artifacts(
            result, output_dir, recorded_seed, start_time, run_start_unix, save_plots, show_plots, save_run_metadata
        )
        result = replace(result, run_dir=run_dir)
    return result


## --- INPUT ---

def _prompt_int(input_func, prompt, check):
    while True:
        raw = input_func(prompt)
        try:
            return check(int(raw.strip()))
        except ValueError as exc:
            print(f"    Invalid value {raw.strip()!r}: {exc}")


def PromptSimulationParameters(input_func=input, dice_count=None, side_count=None, trial_count=None):
    """Ask for whichever of the three parameters were not supplied, re-asking until each is valid."""
    if dice_count is None or side_count is None or trial_count is None:
        print("Enter simulation parameters:")
    if dice_count is None:
        dice_count = _prompt_int(input_func, "  - Number of dice to roll (e.g., 2): ", _check_dice_count)
    if side_count is None:
        side_count = _prompt_int(input_func, "  - Number of sides on each die (e.g., 6): ", _check_side_count)
    if trial_count is None:
        trial_count = _prompt_int(input_func, "  - Total number of trials (e.g., 1000000): ", _check_trial_count)
    return CheckParameters(dice_count, side_count, trial_count)


def _parse_checked_int(value, check):
    try:
        return check(int(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid value {value!r}: {exc}") from exc


def _parse_dice_count(value):
    return _parse_checked_int(value, _check_dice_count)


def _parse_side_count(value):
    return _parse_checked_int(value, _check_side_count)


def _parse_positive_int(value):
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value!r}")
    return parsed


def _parse_non_negative_int(value):
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got {value!r}")
    return parsed


def _parse_optional_positive_int(value):
    if value.lower() in {"auto", "none"}:
        return None
    return _parse_positive_int(value)


def _build_argument_parser():
    parser = argparse.ArgumentParser(
        description="Roll dice repeatedly and compare the sum distribution to theory with a Chi-Squared test."
    )
    parser.add_argument(
        "--dice",
        type=_parse_dice_count,
        default=None,
        help=f"Number of dice to roll ({MIN_DICE}-{MAX_DICE}). Prompted for when omitted.",
    )
    parser.add_argument(
        "--sides",
        type=_parse_side_count,
        default=None,
        help=f"Number of sides on each die ({MIN_SIDES}-{MAX_SIDES}). Prompted for when omitted.",
    )
    parser.add_argument(
        "--trials",
        type=_parse_positive_int,
        default=None,
        help="Total number of trials. Prompted for when omitted.",
    )
    parser.add_argument(
        "--seed",
        type=_parse_non_negative_int,
        default=None,
        help="Seed for the random generator (default: fresh entropy).",
    )
    parser.add_argument(
        "--chunk-size",
        type=_parse_optional_positive_int,
        default=None,
        help=f"Trials per batch (default: {DEFAULT_CHUNK_SIZE:,}). Use 'auto' to pick a default.",
    )
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory where run artifacts are written (default: {DEFAULT_OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--no-export",
        dest="export",
        action="store_false",
        default=True,
        help="Only print the report; write no CSV, plot or metadata.",
    )
    parser.add_argument(
        "--save-plots",
        dest="save_plots",
        action="store_true",
        default=True,
        help="Persist the distribution plot to disk (default: enabled).",
    )
    parser.add_argument(
        "--no-save-plots",
        dest="save_plots",
        action="store_false",
        help="Disable saving plot images.",
    )
    parser.add_argument(
        "--show-plots",
        dest="show_plots",
        action="store_true",
        default=False,
        help="Display the plot interactively (default: disabled).",
    )
    parser.add_argument(
        "--no-show-plots",
        dest="show_plots",
        action="store_false",
        help="Disable interactive plot display.",
    )
    parser.add_argument(
        "--save-run-metadata",
        dest="save_run_metadata",
        action="store_true",
        default=True,
        help="Export JSON metadata describing the run (default: enabled).",
    )
    parser.add_argument(
        "--no-save-run-metadata",
        dest="save_run_metadata",
        action="store_false",
        help="Skip writing metadata JSON.",
    )
    parser.add_argument(
        "--no-progress",
        dest="show_progress",
        action="store_false",
        default=True,
        help="Do not print a progress line while simulating.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print per-chunk diagnostics.",
    )
    return parser


def main(argv=None):
    global debug

    cli_parser = _build_argument_parser()
    cli_args = cli_parser.parse_args(argv)
    debug = cli_args.debug

    print("--- Statistical Simulation Toolkit ---")
    print("This tool simulates rolling multiple dice and compares the results")
    print("to the theoretical probabilities using a Chi-Squared test.\n")

    try:
        params = PromptSimulationParameters(
            dice_count=cli_args.dice,
            side_count=cli_args.sides,
            trial_count=cli_args.trials,
        )
    except EOFError:
        print("\nError: Input ended before all parameters were provided.")
        return 1

    try:
        RunExperiment(
            params,
            seed=cli_args.seed,
            chunk_size=cli_args.chunk_size,
            output_dir=cli_args.output_dir if cli_args.export else None,
            save_plots=cli_args.save_plots,
            show_plots=cli_args.show_plots,
            save_run_metadata=cli_args.save_run_metadata,
            show_progress=cli_args.show_progress,
        )
    except MemoryError:
        print("Error: Memory allocation failed.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
