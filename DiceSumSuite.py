import argparse
import csv
import json
import re
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from DiceSum import (
    CalculateTheoreticalProbabilities,
    CheckParameters,
    ChiSquaredTest,
    RunSimulation,
    SumRange,
    PrintBatchProgress,
)

# --- CONFIGURATION & CONSTANTS ---

DICE_NOTATION = re.compile(r"(\d+)[dD](\d+)")
DEFAULT_CONFIGS = "2d6"
DEFAULT_STEPS = "1000,10000,100000"
DEFAULT_REPS = 5

STUDY_FIELDS = [
    "Dice",
    "Sides",
    "Trials",
    "Repetition",
    "Chi_Squared",
    "Degrees_Of_Freedom",
    "Chi_Squared_Per_DoF",
    "Max_Abs_Deviation_Pct",
]

# --- PARSING ---

def parse_dice_notation(expr: str) -> Tuple[int, int]:
    """
    Parses dice notation such as "3d6" into (dice_count, side_count).

    Args:
        expr (str): Notation of the form NdM.

    Returns:
        tuple: (dice_count, side_count), both within the simulator's bounds.

    Raises:
        ValueError: If the notation is malformed or out of range.
    """
    match = DICE_NOTATION.fullmatch(expr.strip().replace(" ", ""))
    if not match:
        raise ValueError(f"Invalid dice notation: {expr!r}")
    params = CheckParameters(int(match.group(1)), int(match.group(2)), 1)
    return params.dice_count, params.side_count


def _parse_configs_arg(value: str) -> List[Tuple[int, int]]:
    try:
        return [parse_dice_notation(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _parse_steps_arg(value: str) -> List[int]:
    try:
        steps = [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected comma-separated integers, got {value!r}") from exc
    if not steps or any(step <= 0 for step in steps):
        raise argparse.ArgumentTypeError(f"Every step must be a positive integer, got {value!r}")
    return list(dict.fromkeys(steps))


def _parse_positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value!r}")
    return parsed


def _parse_non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got {value!r}")
    return parsed

# --- STUDY ---

def _label(dice_count: int, side_count: int) -> str:
    return f"{dice_count}d{side_count}"


def run_study(
    configs: Sequence[Tuple[int, int]],
    steps: Sequence[int],
    reps: int = DEFAULT_REPS,
    seed: Optional[int] = None,
    output_dir: Optional[str] = "results",
    show_progress: bool = True,
) -> List[Dict]:
    """
    Runs a convergence study of the Chi-Squared statistic.

    For every dice configuration and every trial count in `steps`, the
    simulation is repeated `reps` times. Each repetition records the
    statistic, its degrees of freedom, their ratio and the largest absolute
    gap between observed and theoretical probabilities. With a fair generator
    the ratio hovers around 1 at every step while the probability gap shrinks.

    Args:
        configs (sequence): (dice_count, side_count) pairs.
        steps (sequence): Trial counts to study.
        reps (int): Repetitions per configuration and step.
        seed (int, optional): Seed for the single generator shared by every run.
        output_dir (str, optional): Where CSV and JSON files go. None writes nothing.
        show_progress (bool): Whether to print progress updates.

    Returns:
        list: One dict per repetition, keyed by STUDY_FIELDS.
    """
    if reps <= 0:
        raise ValueError("reps must be a positive integer")
    # repeated steps would be merged in the summary but counted twice in progress
    steps = list(dict.fromkeys(steps))

    rng = np.random.default_rng(seed)
    probabilities = {
        (dice_count, side_count): CalculateTheoreticalProbabilities(dice_count, side_count)
        for dice_count, side_count in configs
    }

    results: List[Dict] = []
    summary_data = {_label(*config): {step: [] for step in steps} for config in configs}
    timing_data = {step: [] for step in steps}

    total_trials_in_study = sum(steps) * reps * len(configs)
    trials_completed = 0
    start_t_study = time.time()

    print(f"\n=== CONVERGENCE STUDY ({len(configs)} config(s), {len(steps)} steps, {reps} reps/step) ===")
    for dice_count, side_count in configs:
        min_sum, max_sum = SumRange(dice_count, side_count)
        theoretical = probabilities[(dice_count, side_count)]
        for step in steps:
            expected = theoretical * float(step)
            for r in range(reps):
                step_start_time = time.time()
                observed = RunSimulation(dice_count, side_count, step, rng=rng)
                statistic = ChiSquaredTest(observed, expected, min_sum, max_sum)
                timing_data[step].append(time.time() - step_start_time)

                dof = max_sum - min_sum
                obs_probs = observed.to_numpy(dtype=np.float64) / step
                max_dev = float(np.max(np.abs(obs_probs - theoretical.to_numpy()))) * 100

                results.append({
                    "Dice": dice_count,
                    "Sides": side_count,
                    "Trials": step,
                    "Repetition": r + 1,
                    "Chi_Squared": statistic,
                    "Degrees_Of_Freedom": dof,
                    "Chi_Squared_Per_DoF": statistic / dof if dof else 0.0,
                    "Max_Abs_Deviation_Pct": max_dev,
                })
                summary_data[_label(dice_count, side_count)][step].append(statistic)

                trials_completed += step
                if show_progress:
                    elapsed = time.time() - start_t_study
                    PrintBatchProgress(elapsed, trials_completed, total_trials_in_study, "Overall Study Progress")

    if show_progress:
        print()

    if output_dir:
        _save_study(results, summary_data, timing_data, configs, steps, reps, seed, start_t_study, Path(output_dir))
    return results


def _save_study(
    results: List[Dict],
    summary_data: Dict[str, Dict[int, List[float]]],
    timing_data: Dict[int, List[float]],
    configs: Sequence[Tuple[int, int]],
    steps: Sequence[int],
    reps: int,
    seed: Optional[int],
    start_t_study: float,
    out_dir: Path,
) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    ts = int(start_t_study)

    print("Study simulations complete. Saving data...")
    with open(out_dir / f"study_deviation_{ts}.csv", "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=STUDY_FIELDS)
        w.writeheader()
        w.writerows(results)

    with open(out_dir / f"study_summary_{ts}.csv", "w", newline="") as f:
        headers = ["Config"] + [f"Sim_{s}" for s in steps]
        w = csv.writer(f)
        w.writerow(headers)
        for label, by_step in summary_data.items():
            row = [label]
            for step in steps:
                stats = by_step[step]
                avg_stat = sum(stats) / len(stats) if stats else 0
                row.append(f"{avg_stat:.4g}")
            w.writerow(row)

    meta_study = {
        "mode": "convergence_study",
        "configs": [_label(*config) for config in configs],
        "steps": list(steps),
        "reps": reps,
        "seed": seed,
        "elapsed_sec": time.time() - start_t_study,
        "timing_stats": {
            str(step): {
                "avg_sec": sum(timing_data[step]) / len(timing_data[step]),
                "min_sec": min(timing_data[step]),
                "max_sec": max(timing_data[step]),
            }
            for step in steps
            if timing_data[step]
        },
    }
    with open(out_dir / f"meta_study_{ts}.json", "w") as f:
        json.dump(meta_study, f, indent=2)
    print(f"Study saved to {out_dir}")

# --- MAIN EXECUTION ---

def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DiceSum Suite: Chi-Squared convergence study")
    parser.add_argument("--configs", type=_parse_configs_arg, default=_parse_configs_arg(DEFAULT_CONFIGS),
                        help=f"Comma-separated dice configurations (default: {DEFAULT_CONFIGS})")
    parser.add_argument("--study", type=_parse_steps_arg, default=_parse_steps_arg(DEFAULT_STEPS),
                        help=f"Comma-separated list of trial counts (default: {DEFAULT_STEPS})")
    parser.add_argument("--reps", type=_parse_positive_int, default=DEFAULT_REPS,
                        help="Repetitions per step")
    parser.add_argument("--seed", type=_parse_non_negative_int, default=None, help="Seed for the random generator")
    parser.add_argument("--output", type=str, default="results", help="Output directory")
    parser.add_argument("--no-progress", dest="show_progress", action="store_false", default=True,
                        help="Do not print progress updates")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_argument_parser().parse_args(argv)
    run_study(
        args.configs,
        args.study,
        reps=args.reps,
        seed=args.seed,
        output_dir=args.output,
        show_progress=args.show_progress,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
