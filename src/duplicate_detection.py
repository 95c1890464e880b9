"""
Duplicate detection across catalog rows, by full row and by TMDB id.
"""

import logging
from dataclasses import dataclass, field

from utils import KEY_SEPARATOR, is_unknown_identifier

logger = logging.getLogger(__name__)


@dataclass
class DuplicateReport:
    """Rows and identifiers seen more than once in a batch."""
    duplicate_rows: list = field(default_factory=list)
    duplicate_identifiers: list = field(default_factory=list)

    @property
    def is_fatal(self):
        return bool(self.duplicate_rows or self.duplicate_identifiers)


def composite_key(row):
    """
    Build the exact-duplicate key for a row.

    Args:
        row: CatalogRow

    Returns:
        String of every cell joined with "|"
    """
    return KEY_SEPARATOR.join(row.cells)


def identifier_key(row):
    """Return the row's identifier, or None if it is empty or a sentinel."""
    if is_unknown_identifier(row.identifier):
        return None
    return row.identifier.strip()


def detect_duplicates(rows, stop_at_first=False):
    """
    Flag exact-row duplicates, then identifier-level duplicates.

    The first occurrence of a key is canonical; later ones are flagged.
    Identifier checks only run once the row-level pass is clean when
    stop_at_first is set.

    Args:
        rows: Sequence of CatalogRow
        stop_at_first: Stop at the first duplicate of either kind

    Returns:
        DuplicateReport
    """
    report = DuplicateReport()

    seen_keys = set()
    for row in rows:
        key = composite_key(row)
        if key in seen_keys:
            logger.debug("Row %d repeats key %r", row.index, key)
            report.duplicate_rows.append(row)
            if stop_at_first:
                return report
        else:
            seen_keys.add(key)

    flagged_rows = {row.index for row in report.duplicate_rows}
    seen_ids = set()
    flagged_ids = set()
    for row in rows:
        ident = identifier_key(row)
        if ident is None:
            continue
        if ident not in seen_ids:
            seen_ids.add(ident)
            continue
        # Exact duplicate rows already carry this signal
        if row.index in flagged_rows or ident in flagged_ids:
            continue
        flagged_ids.add(ident)
        report.duplicate_identifiers.append(ident)
        if stop_at_first:
            return report

    return report
