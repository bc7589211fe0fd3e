# test_dicesum.py
import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd

import DiceSum
from DiceSum import (
    CalculateTheoreticalCounts,
    CalculateTheoreticalProbabilities,
    CheckParameters,
    ChiSquaredResult,
    ChiSquaredTest,
    CombinationTable,
    CountSumCombinations,
    EvaluateGoodnessOfFit,
    FormatResultsReport,
    PromptSimulationParameters,
    RunExperiment,
    RunSimulation,
    SimulationParameters,
    SumRange,
    TheoreticalMoments,
)

# Largest exact count the simulator can be asked for: 10 dice with 100 sides.
INT64_MAX = np.iinfo(np.int64).max


class _ConstantGenerator:
    """Stands in for numpy's Generator and always rolls the same face."""

    def __init__(self, face):
        self.face = face
        self.calls = 0

    def integers(self, low, high, size=None, dtype=np.int64):
        self.calls += 1
        return np.full(size, self.face, dtype=dtype)


def _quiet(func, *args, **kwargs):
    with contextlib.redirect_stdout(io.StringIO()):
        return func(*args, **kwargs)


class TestCountSumCombinations(unittest.TestCase):

    def test_single_die_is_base_case(self):
        for k in range(1, 7):
            self.assertEqual(CountSumCombinations(1, k, 6), 1)
        self.assertEqual(CountSumCombinations(1, 0, 6), 0)
        self.assertEqual(CountSumCombinations(1, 7, 6), 0)

    def test_two_d6_classic_sequence(self):
        ways = [CountSumCombinations(2, total, 6) for total in range(2, 13)]
        self.assertEqual(ways, [1, 2, 3, 4, 5, 6, 5, 4, 3, 2, 1])
        self.assertEqual(sum(ways), 36)

    def test_counts_partition_outcome_space(self):
        for dice in range(1, 5):
            for sides in range(2, 8):
                total = sum(CountSumCombinations(dice, s, sides) for s in range(dice, dice * sides + 1))
                self.assertEqual(total, sides ** dice, f"{dice}d{sides}")

    def test_unreachable_sums_are_zero(self):
        self.assertEqual(CountSumCombinations(3, 2, 6), 0)
        self.assertEqual(CountSumCombinations(3, 19, 6), 0)
        self.assertEqual(CountSumCombinations(3, -4, 6), 0)
        self.assertEqual(CountSumCombinations(0, 0, 6), 1)
        self.assertEqual(CountSumCombinations(0, 3, 6), 0)

    def test_largest_configuration_stays_exact(self):
        """
        10d100 has 10**20 outcomes, beyond an int64. The counts must stay
        exact Python ints rather than wrapping.
        """
        table = CombinationTable(10, 100)
        self.assertEqual(len(table), 991)
        self.assertEqual(sum(table), 100 ** 10)
        self.assertGreater(max(table), INT64_MAX // 1000)
        self.assertEqual(table[10], 1)
        self.assertEqual(table[1000], 1)
        self.assertEqual(table[11], 10)

    def test_memo_is_local_to_each_call(self):
        memo = {}
        shared = [CountSumCombinations(3, total, 6, memo) for total in range(3, 19)]
        fresh = [CountSumCombinations(3, total, 6) for total in range(3, 19)]
        self.assertEqual(shared, fresh)
        self.assertIn((3, 10), memo)
        self.assertEqual(memo[(3, 10)], 27)
        self.assertFalse(hasattr(DiceSum._count_sum_combinations, "cache_info"))

    def test_table_is_indexed_by_sum(self):
        table = CombinationTable(3, 4)
        self.assertEqual(list(table.index), list(range(3, 13)))
        self.assertEqual(table[3], 1)
        self.assertEqual(table[12], 1)


class TestTheoreticalModel(unittest.TestCase):

    def test_single_d6_is_uniform(self):
        expected = CalculateTheoreticalCounts(1, 6, 600)
        self.assertEqual(list(expected.index), [1, 2, 3, 4, 5, 6])
        for k in range(1, 7):
            self.assertAlmostEqual(expected[k], 100.0)

    def test_seven_on_two_d6(self):
        expected = CalculateTheoreticalCounts(2, 6, 360000)
        self.assertAlmostEqual(expected[7], 60000.0, places=6)

    def test_expected_counts_sum_to_trials(self):
        for dice, sides, trials in [(1, 2, 1), (2, 6, 1000), (5, 20, 123457), (10, 100, 10 ** 9)]:
            expected = CalculateTheoreticalCounts(dice, sides, trials)
            self.assertLess(abs(expected.sum() - trials) / trials, 1e-6, f"{dice}d{sides}")
            self.assertTrue((expected > 0).all())

    def test_probabilities_sum_to_one(self):
        probabilities = CalculateTheoreticalProbabilities(4, 10)
        self.assertAlmostEqual(probabilities.sum(), 1.0, places=12)

    def test_moments(self):
        mean, variance = TheoreticalMoments(2, 6)
        self.assertAlmostEqual(mean, 7.0)
        self.assertAlmostEqual(variance, 35.0 / 6.0)


class TestParameters(unittest.TestCase):

    def test_sum_range(self):
        self.assertEqual(SumRange(3, 6), (3, 18))
        params = SimulationParameters(3, 6, 10)
        self.assertEqual((params.min_sum, params.max_sum), (3, 18))
        self.assertEqual(params.degrees_of_freedom, 15)
        self.assertEqual(params.total_outcomes, 216)
        self.assertEqual(params.label, "3d6")

    def test_check_parameters_bounds(self):
        self.assertEqual(CheckParameters(10, 100, 1), SimulationParameters(10, 100, 1))
        for bad in [(0, 6, 1), (11, 6, 1), (2, 1, 1), (2, 101, 1), (2, 6, 0), (2.5, 6, 1), (True, 6, 1)]:
            with self.assertRaises(ValueError):
                CheckParameters(*bad)

    def test_prompt_reasks_until_valid(self):
        answers = iter(["0", "abc", "3", "1", "6", "-5", "100"])
        params = _quiet(PromptSimulationParameters, input_func=lambda _prompt: next(answers))
        self.assertEqual(params, SimulationParameters(3, 6, 100))

    def test_prompt_skips_supplied_values(self):
        prompts = []

        def fake_input(prompt):
            prompts.append(prompt)
            return "50"

        params = _quiet(PromptSimulationParameters, input_func=fake_input, dice_count=2, side_count=6)
        self.assertEqual(params, SimulationParameters(2, 6, 50))
        self.assertEqual(len(prompts), 1)
        self.assertIn("trials", prompts[0])


class TestRunSimulation(unittest.TestCase):

    def test_every_trial_lands_in_one_bin(self):
        observed = RunSimulation(3, 6, 10_000, rng=np.random.default_rng(1))
        self.assertEqual(int(observed.sum()), 10_000)
        self.assertEqual(list(observed.index), list(range(3, 19)))
        self.assertTrue((observed >= 0).all())

    def test_zero_trials_gives_empty_tally(self):
        generator = _ConstantGenerator(1)
        observed = RunSimulation(2, 6, 0, rng=generator)
        self.assertEqual(len(observed), 11)
        self.assertEqual(int(observed.sum()), 0)
        self.assertEqual(generator.calls, 0)

    def test_same_seed_same_tally(self):
        first = RunSimulation(4, 8, 5_000, rng=np.random.default_rng(42))
        second = RunSimulation(4, 8, 5_000, rng=np.random.default_rng(42))
        pd.testing.assert_series_equal(first, second)

    def test_chunk_size_keeps_total(self):
        observed = RunSimulation(2, 6, 1_001, rng=np.random.default_rng(3), chunk_size=100)
        self.assertEqual(int(observed.sum()), 1_001)

    def test_uses_supplied_generator(self):
        generator = _ConstantGenerator(4)
        observed = RunSimulation(3, 6, 250, rng=generator, chunk_size=100)
        self.assertEqual(generator.calls, 3)
        self.assertEqual(observed[12], 250)
        self.assertEqual(int(observed.sum()), 250)

    def test_extreme_faces_reach_range_ends(self):
        low = RunSimulation(10, 100, 7, rng=_ConstantGenerator(1))
        high = RunSimulation(10, 100, 7, rng=_ConstantGenerator(100))
        self.assertEqual(low[10], 7)
        self.assertEqual(high[1000], 7)

    def test_rejects_bad_chunk_size(self):
        with self.assertRaises(ValueError):
            RunSimulation(2, 6, 10, rng=np.random.default_rng(0), chunk_size=0)


class TestChiSquared(unittest.TestCase):

    def test_known_value(self):
        statistic = ChiSquaredTest([10, 20], [15.0, 15.0], 1, 2)
        self.assertAlmostEqual(statistic, 50.0 / 15.0)

    def test_zero_when_observed_matches_expected(self):
        expected = CalculateTheoreticalCounts(2, 6, 36)
        self.assertEqual(ChiSquaredTest(expected, expected, 2, 12), 0.0)

    def test_zero_expected_bins_are_skipped(self):
        statistic = ChiSquaredTest({1: 5, 2: 10}, {1: 0.0, 2: 10.0}, 1, 2)
        self.assertEqual(statistic, 0.0)
        statistic = ChiSquaredTest({1: 5, 2: 10}, {1: -1.0, 2: 10.0}, 1, 2)
        self.assertEqual(statistic, 0.0)

    def test_rejects_keys_outside_sum_range(self):
        with self.assertRaises(ValueError):
            ChiSquaredTest({0: 10, 1: 20}, {1: 15.0, 2: 15.0}, 1, 2)
        with self.assertRaises(ValueError):
            ChiSquaredTest({1: 10}, {1: 15.0, 2: 15.0}, 1, 2)

    def test_rejects_series_with_positional_index(self):
        with self.assertRaises(ValueError):
            ChiSquaredTest(pd.Series([10, 20]), pd.Series([15.0, 15.0]), 1, 2)

    def test_rejects_sequence_of_wrong_length(self):
        with self.assertRaises(ValueError):
            ChiSquaredTest([10, 20, 30], [15.0, 15.0], 1, 2)

    def test_keyed_and_positional_inputs_agree(self):
        keyed = ChiSquaredTest({2: 20, 1: 10}, pd.Series([15.0, 15.0], index=pd.RangeIndex(1, 3)), 1, 2)
        positional = ChiSquaredTest([10, 20], [15.0, 15.0], 1, 2)
        self.assertAlmostEqual(keyed, positional)

    def test_all_zero_expected_degrades_to_zero(self):
        self.assertEqual(ChiSquaredTest([0, 0, 0], [0.0, 0.0, 0.0], 2, 4), 0.0)

    def test_zero_trials_scenario(self):
        expected = CalculateTheoreticalCounts(2, 6, 0)
        observed = RunSimulation(2, 6, 0, rng=np.random.default_rng(0))
        self.assertEqual(ChiSquaredTest(observed, expected, 2, 12), 0.0)

    def test_non_negative_for_random_samples(self):
        rng = np.random.default_rng(7)
        expected = CalculateTheoreticalCounts(3, 6, 2_000)
        for _ in range(5):
            observed = RunSimulation(3, 6, 2_000, rng=rng)
            self.assertGreaterEqual(ChiSquaredTest(observed, expected, 3, 18), 0.0)

    def test_goodness_of_fit_result(self):
        params = SimulationParameters(2, 6, 3_600)
        expected = CalculateTheoreticalCounts(2, 6, 3_600)
        result = EvaluateGoodnessOfFit(expected, expected, params)
        self.assertEqual(result, ChiSquaredResult(statistic=0.0, degrees_of_freedom=10))


class TestReport(unittest.TestCase):

    def test_report_rows_and_bars(self):
        params = SimulationParameters(1, 2, 10)
        expected = CalculateTheoreticalCounts(1, 2, 10)
        observed = pd.Series([5, 5], index=pd.RangeIndex(1, 3))
        report = FormatResultsReport(observed, expected, params, ChiSquaredResult(0.0, 1))

        self.assertIn("--- Simulation Results for 10 trials of rolling 1d2 ---", report)
        self.assertIn("| 1    | 5.00               | 5                  | " + "#" * 30, report)
        self.assertIn("| 2    | 5.00               | 5                  | " + "#" * 30, report)
        self.assertIn("Chi-Squared (χ²) Statistic: 0.0000", report)
        self.assertIn("Degrees of Freedom: 1", report)

    def test_report_has_one_row_per_sum(self):
        params = SimulationParameters(3, 6, 100)
        expected = CalculateTheoreticalCounts(3, 6, 100)
        observed = RunSimulation(3, 6, 100, rng=np.random.default_rng(5))
        result = EvaluateGoodnessOfFit(observed, expected, params)
        report = FormatResultsReport(observed, expected, params, result, (10.5, 3.0))

        rows = [line for line in report.splitlines() if line.startswith("| ") and not line.startswith("| Sum")]
        self.assertEqual(len(rows), 16)
        self.assertIn(f"{result.statistic:.4f}", report)
        self.assertIn("theoretical 10.5000", report)


class TestRunExperiment(unittest.TestCase):

    def test_runs_without_export(self):
        params = SimulationParameters(2, 6, 2_000)
        result = _quiet(RunExperiment, params, seed=11)
        self.assertIsNone(result.run_dir)
        self.assertEqual(int(result.observed.sum()), 2_000)
        self.assertEqual(result.chi_squared.degrees_of_freedom, 10)
        self.assertAlmostEqual(result.sample_mean, 7.0, delta=0.5)

    def test_writes_artifacts(self):
        params = SimulationParameters(2, 4, 500)
        with tempfile.TemporaryDirectory() as tmp:
            result = _quiet(RunExperiment, params, rng=np.random.default_rng(2), output_dir=tmp, seed=2)
            run_dir = Path(result.run_dir)
            csv_files = list(run_dir.glob("*_distribution.csv"))
            png_files = list(run_dir.glob("*_distribution.png"))
            meta_files = list(run_dir.glob("*_metadata.json"))
            self.assertEqual(len(csv_files), 1)
            self.assertEqual(len(png_files), 1)
            self.assertEqual(len(meta_files), 1)

            df = pd.read_csv(csv_files[0])
            self.assertEqual(list(df["Sum"]), list(range(2, 9)))
            self.assertEqual(int(df["Observed"].sum()), 500)
            self.assertAlmostEqual(df["Contribution"].sum(), result.chi_squared.statistic, places=9)

            with meta_files[0].open(encoding="utf-8") as f:
                metadata = json.load(f)
            self.assertEqual(metadata["run"]["trial_count"], 500)
            self.assertEqual(metadata["run"]["degrees_of_freedom"], 6)
            # the supplied generator drove the run, not the seed
            self.assertIsNone(metadata["run"]["seed"])

    def test_metadata_records_seed_that_drove_run(self):
        params = SimulationParameters(1, 6, 60)
        with tempfile.TemporaryDirectory() as tmp:
            result = _quiet(RunExperiment, params, seed=5, output_dir=tmp, save_plots=False)
            meta_files = list(Path(result.run_dir).glob("*_metadata.json"))
            with meta_files[0].open(encoding="utf-8") as f:
                self.assertEqual(json.load(f)["run"]["seed"], 5)


class TestMain(unittest.TestCase):

    def test_main_with_flags(self):
        code = _quiet(DiceSum.main, ["--dice", "2", "--sides", "6", "--trials", "1000", "--seed", "1",
                                     "--no-export", "--no-progress"])
        self.assertEqual(code, 0)

    def test_main_reports_memory_error(self):
        out = io.StringIO()
        with mock.patch.object(DiceSum, "RunExperiment", side_effect=MemoryError):
            with contextlib.redirect_stdout(out):
                code = DiceSum.main(["--dice", "2", "--sides", "6", "--trials", "10", "--no-export"])
        self.assertEqual(code, 1)
        self.assertIn("Error: Memory allocation failed.", out.getvalue())
        self.assertNotIn("Simulation Results", out.getvalue())

    def test_main_rejects_out_of_range_flags(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                DiceSum.main(["--dice", "11", "--sides", "6", "--trials", "10"])

    def test_main_rejects_negative_seed(self):
        err = io.StringIO()
        with contextlib.redirect_stderr(err), contextlib.redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                DiceSum.main(["--dice", "2", "--sides", "6", "--trials", "10", "--seed", "-1", "--no-export"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("non-negative", err.getvalue())


if __name__ == '__main__':
    unittest.main()
