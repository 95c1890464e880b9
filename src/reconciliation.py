"""
Reconciliation pipeline: normalize, dedupe, match and verify catalog rows.

Rows flow one way through the pipeline:

    raw cells -> CatalogRow -> duplicate check -> TMDB match -> id check -> report

A duplicate (by full row or by TMDB id) stops the run before any TMDB call
is made. Everything after that is per-row: a failed lookup marks that row
unresolved and the rest of the batch carries on.
"""

import concurrent.futures
import logging
from dataclasses import dataclass, field

from consistency_check import Mismatched, Skipped, Verified, verify_title
from duplicate_detection import composite_key, detect_duplicates, identifier_key
from metadata_client import TransportError
from movie_matching import (
    Ambiguous,
    NotFound,
    SingleMatch,
    Unresolved,
    apply_ambiguity_policy,
    match_title,
)
from row_normalizer import build_row, normalize_row, normalize_title
from utils import clamp_workers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportLine:
    level: int
    kind: str
    text: str
    row_index: int = None


@dataclass
class ReconciliationReport:
    """Diagnostics for one run, in original row order."""
    lines: list = field(default_factory=list)
    match_results: dict = field(default_factory=dict)
    verifications: dict = field(default_factory=dict)
    fatal: bool = False

    def add(self, level, kind, text, row_index=None):
        line = ReportLine(level, kind, text, row_index)
        self.lines.append(line)
        logger.debug("[%s] %s", logging.getLevelName(level), text)
        return line

    def count(self, kind):
        return sum(1 for line in self.lines if line.kind == kind)

    @property
    def unresolved_count(self):
        return sum(1 for r in self.match_results.values() if isinstance(r, Unresolved))

    @property
    def mismatch_count(self):
        return sum(1 for v in self.verifications.values() if isinstance(v, Mismatched))

    @property
    def exit_code(self):
        return 1 if self.fatal else 0


def _label(row):
    return f"Row {row.index + 1}"


def _describe(candidate):
    year = f" ({candidate.release_year})" if candidate.release_year else ""
    return f'"{candidate.title}"{year} [TMDB {candidate.identifier}]'


def _search_year(year):
    # TMDB rejects non-numeric year filters
    year = (year or "").strip()
    return year if len(year) == 4 and year.isdigit() else None


class ReconciliationPipeline:
    """
    Runs a catalog through duplicate detection, matching and verification.

    Args:
        client: Metadata client with search() and fetch_by_identifier()
        config: ReconcilerConfig
    """

    def __init__(self, client, config):
        self.client = client
        self.config = config

    def prepare_rows(self, raw_rows):
        """Turn raw cell lists into normalized CatalogRows."""
        cfg = self.config
        rows = []
        for index, cells in enumerate(raw_rows):
            row = build_row(index, cells, cfg.title_column, cfg.year_column, cfg.identifier_column)
            rows.append(normalize_row(row, cfg.title_column))
        return rows

    def run(self, raw_rows):
        """
        Reconcile a batch of raw rows.

        Args:
            raw_rows: Sequence of rows, each a sequence of cell values

        Returns:
            ReconciliationReport
        """
        report = ReconciliationReport()
        rows = self.prepare_rows(raw_rows)
        logger.info("Reconciling %d catalog rows", len(rows))

        if not self._check_duplicates(rows, report):
            return report

        try:
            matches = self._run_lookups(self.match_row, rows)
        except TransportError as e:
            report.fatal = True
            report.add(logging.ERROR, "aborted", f"Aborting run, TMDB lookup failed: {e}")
            return report

        for row in rows:
            result = matches[row.index]
            report.match_results[row.index] = result
            self._report_match(report, row, result)

        with_ids = [row for row in rows if identifier_key(row) is not None]
        verifications = self._run_lookups(self.verify_row, with_ids)
        for row in with_ids:
            outcome = verifications[row.index]
            report.verifications[row.index] = outcome
            self._report_verification(report, row, outcome)

        self._report_summary(report, rows)
        return report

    def match_row(self, row):
        """Search TMDB for one row and apply the ambiguity policy."""
        if not row.title:
            return Unresolved("empty title")
        try:
            result = match_title(
                self.client, row.title,
                year=_search_year(row.year),
                language=self.config.language,
            )
        except TransportError as e:
            if self.config.strict_transport:
                raise
            logger.warning("%s: search failed: %s", _label(row), e)
            return Unresolved(str(e))
        return apply_ambiguity_policy(result, row.year, self.config.ambiguity_policy)

    def verify_row(self, row):
        return verify_title(self.client, row.title, row.identifier)

    def _check_duplicates(self, rows, report):
        duplicates = detect_duplicates(rows, stop_at_first=self.config.stop_at_first_duplicate)
        if not duplicates.is_fatal:
            return True

        report.fatal = True
        for row in duplicates.duplicate_rows:
            report.add(logging.ERROR, "duplicate_row",
                       f'{_label(row)}: duplicate row "{composite_key(row)}"', row.index)
        for ident in duplicates.duplicate_identifiers:
            report.add(logging.ERROR, "duplicate_identifier",
                       f"Duplicate TMDB identifier {ident}")
        return False

    def _run_lookups(self, fn, rows):
        """
        Call fn for every row on a bounded thread pool.

        Results are keyed by row index so callers can flush them in order.
        If any call raises, pending calls are cancelled and the error is
        re-raised with nothing returned.
        """
        results = {}
        if not rows:
            return results

        workers = clamp_workers(self.config.max_workers)
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {executor.submit(fn, row): row.index for row in rows}
            try:
                for future in concurrent.futures.as_completed(future_to_index):
                    results[future_to_index[future]] = future.result()
            except BaseException:
                for future in future_to_index:
                    future.cancel()
                raise
        return results

    def _report_match(self, report, row, result):
        label = _label(row)
        if isinstance(result, SingleMatch):
            report.add(logging.INFO, "found",
                       f'{label}: found "{row.title}" -> {_describe(result.candidate)}', row.index)
        elif isinstance(result, Ambiguous):
            options = "; ".join(_describe(c) for c in result.candidates)
            report.add(logging.INFO, "ambiguous",
                       f'{label}: ambiguous "{row.title}", {len(result.candidates)} candidates: {options}',
                       row.index)
        elif isinstance(result, NotFound):
            report.add(logging.INFO, "not_found", f'{label}: not found "{row.title}"', row.index)
        else:
            report.add(logging.WARNING, "unresolved",
                       f'{label}: unresolved "{row.title}": {result.reason}', row.index)

    def _report_verification(self, report, row, outcome):
        label = _label(row)
        ident = identifier_key(row)
        if isinstance(outcome, Verified):
            report.add(logging.INFO, "verified",
                       f'{label}: verified "{row.title}" [TMDB {ident}]', row.index)
        elif isinstance(outcome, Mismatched):
            report.add(logging.WARNING, "mismatch",
                       f'{label}: title mismatch for TMDB {ident}: sheet has '
                       f'"{outcome.expected_title}", TMDB has "{outcome.actual_title}"',
                       row.index)
        elif isinstance(outcome, Skipped):
            report.add(logging.INFO, "skipped",
                       f"{label}: verification skipped for TMDB {ident}: {outcome.reason}",
                       row.index)

    def _report_summary(self, report, rows):
        report.add(
            logging.INFO, "summary",
            f"Checked {len(rows)} rows: {report.count('found')} found, "
            f"{report.count('ambiguous')} ambiguous, {report.count('not_found')} not found, "
            f"{report.unresolved_count} unresolved, {report.mismatch_count} title mismatches",
        )


def list_unique_titles(raw_rows, title_column=0):
    """
    Sorted, de-duplicated list of normalized titles.

    Args:
        raw_rows: Sequence of raw rows
        title_column: Column holding the title

    Returns:
        List of unique title strings in sorted order
    """
    titles = set()
    for cells in raw_rows:
        row = build_row(0, cells, title_column, None, None)
        title = normalize_title(row.title)
        if title:
            titles.add(title)
    return sorted(titles)
