"""
Unit tests for duplicate detection.
"""

import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from duplicate_detection import (
    DuplicateReport,
    composite_key,
    detect_duplicates,
    identifier_key,
)
from row_normalizer import build_row


def make_rows(*raw_rows):
    return [build_row(i, cells) for i, cells in enumerate(raw_rows)]


class TestKeys(unittest.TestCase):

    def test_composite_key_joins_every_cell(self):
        """Test composite key uses all cells with a pipe separator."""
        row = build_row(0, ["Inception", "2010", "27205", "Nolan"])
        self.assertEqual(composite_key(row), "Inception|2010|27205|Nolan")

    def test_identifier_key_ignores_sentinels(self):
        """Test empty and unknown markers give no identifier key."""
        for marker in ["", "N/A", "n/a", "unknown", "NONE", "-", "?", "  "]:
            with self.subTest(marker=marker):
                row = build_row(0, ["Inception", "2010", marker])
                self.assertIsNone(identifier_key(row))

        row = build_row(0, ["Inception", "2010", " 27205 "])
        self.assertEqual(identifier_key(row), "27205")


class TestDetectDuplicates(unittest.TestCase):

    def test_distinct_rows_not_fatal(self):
        """Test a clean batch raises nothing."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["The Matrix", "1999", "603"],
            ["Memento", "2000", ""],
            ["Tenet", "2020", "N/A"],
        )
        report = detect_duplicates(rows)

        self.assertIsInstance(report, DuplicateReport)
        self.assertFalse(report.is_fatal)
        self.assertEqual(report.duplicate_rows, [])
        self.assertEqual(report.duplicate_identifiers, [])

    def test_identical_rows_flag_later_occurrence(self):
        """Test the second identical row is flagged, not the first."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["The Matrix", "1999", "603"],
            ["Inception", "2010", "27205"],
        )
        report = detect_duplicates(rows)

        self.assertTrue(report.is_fatal)
        self.assertEqual([r.index for r in report.duplicate_rows], [2])
        # Already reported as a row duplicate
        self.assertEqual(report.duplicate_identifiers, [])

    def test_shared_identifier_flagged(self):
        """Test different rows pointing at the same TMDB id are flagged."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["Inception (Director's Cut)", "2010", "27205"],
            ["Inception Again", "2010", "27205"],
        )
        report = detect_duplicates(rows)

        self.assertTrue(report.is_fatal)
        self.assertEqual(report.duplicate_rows, [])
        self.assertEqual(report.duplicate_identifiers, ["27205"])

    def test_sentinel_identifiers_never_collide(self):
        """Test rows with unknown ids are not identifier duplicates."""
        rows = make_rows(
            ["Inception", "2010", "N/A"],
            ["The Matrix", "1999", "N/A"],
            ["Memento", "2000", ""],
            ["Tenet", "2020", ""],
        )
        self.assertFalse(detect_duplicates(rows).is_fatal)

    def test_collects_all_duplicates_by_default(self):
        """Test every duplicate is reported in one pass."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["Inception", "2010", "27205"],
            ["The Matrix", "1999", "603"],
            ["The Matrix", "1999", "603"],
            ["Matrix, The", "1999", "603"],
            ["Memento", "2000", "77"],
            ["Memento (2000)", "2000", "77"],
        )
        report = detect_duplicates(rows)

        self.assertEqual([r.index for r in report.duplicate_rows], [1, 3])
        self.assertEqual(report.duplicate_identifiers, ["603", "77"])

    def test_stop_at_first(self):
        """Test fail-fast mode stops after the first duplicate."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["Inception", "2010", "27205"],
            ["The Matrix", "1999", "603"],
            ["The Matrix", "1999", "603"],
        )
        report = detect_duplicates(rows, stop_at_first=True)

        self.assertTrue(report.is_fatal)
        self.assertEqual([r.index for r in report.duplicate_rows], [1])
        self.assertEqual(report.duplicate_identifiers, [])

    def test_stop_at_first_identifier(self):
        """Test fail-fast mode reaches identifier checks when rows are clean."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["Inception 2", "2010", "27205"],
            ["Matrix", "1999", "603"],
            ["Matrix 2", "1999", "603"],
        )
        report = detect_duplicates(rows, stop_at_first=True)
        self.assertEqual(report.duplicate_identifiers, ["27205"])

    def test_large_catalog(self):
        """Test a catalog of thousands of rows, each repeated once."""
        unique = [[f"Movie {i}", "2000", str(i)] for i in range(3000)]
        rows = make_rows(*(unique + unique))
        report = detect_duplicates(rows)

        self.assertEqual([r.index for r in report.duplicate_rows], list(range(3000, 6000)))
        self.assertEqual(report.duplicate_identifiers, [])

    def test_row_duplicate_keeps_identifier_check_by_index(self):
        """Test a repeated row does not hide a different row sharing its id."""
        rows = make_rows(
            ["Inception", "2010", "27205"],
            ["Inception", "2010", "27205"],
            ["Inception Redux", "2010", "27205"],
        )
        report = detect_duplicates(rows)

        self.assertEqual([r.index for r in report.duplicate_rows], [1])
        self.assertEqual(report.duplicate_identifiers, ["27205"])

    def test_empty_batch(self):
        """Test no rows means nothing to report."""
        self.assertFalse(detect_duplicates([]).is_fatal)


if __name__ == '__main__':
    unittest.main()
