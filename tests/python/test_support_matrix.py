import unittest
from unittest import mock

from mutarith._internal.support_matrix import ELTYPES, SUPPORTED, SupportCase, run_all, run_case, summarize


class TestSupportMatrix(unittest.TestCase):
    def test_support_matrix_cases(self):
        failures = run_all()
        if failures:
            self.fail("Support matrix regressions:\n" + "\n".join(failures))

    def test_every_eltype_is_covered(self):
        for kind in ("vector", "matrix", "sparse", "symmetric", "matvec"):
            covered = {c.a_eltype for c in SUPPORTED if c.kind == kind}
            self.assertEqual(covered, set(ELTYPES), kind)

    def test_summary_counts_cases(self):
        counts = summarize()
        self.assertEqual(sum(counts.values()), len(SUPPORTED))
        self.assertEqual(counts["matrix:one"], len(ELTYPES))

    def test_failures_are_reported(self):
        seen = []
        bad = SupportCase("vector", "no-such-op", "int")
        failures = run_all([bad], on_failure=lambda case, exc: seen.append(case))
        self.assertEqual(seen, [bad])
        self.assertEqual(len(failures), 1)
        self.assertIn("ValueError", failures[0])
        with self.assertRaises(ValueError):
            run_case(bad)

    def test_disagreeing_entry_points_raise(self):
        case = SupportCase("vector", "add", "int")
        with mock.patch("mutarith._internal.support_matrix._reference", side_effect=[[1, 2], [0, 0]]):
            with self.assertRaises(AssertionError) as ctx:
                run_case(case)
        self.assertIn("operate_inplace disagrees", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
