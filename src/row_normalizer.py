"""
Row cleanup and title-casing for catalog comparison and search queries.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class CatalogRow:
    """One record from the source catalog with its position in the sheet."""
    index: int
    cells: tuple
    title: str = ""
    year: str = ""
    identifier: str = ""


def normalize_title(raw_title):
    """
    Title-case a raw title cell.

    Each whitespace-separated word gets its first character upper-cased; the
    rest of the word is left alone. Words that start with punctuation
    (e.g. "-foo") are passed through unchanged.

    Args:
        raw_title: Raw title text

    Returns:
        String with words joined by single spaces (possibly empty)
    """
    if not raw_title:
        return ""
    words = [word for word in str(raw_title).split() if word]
    return " ".join(word[0].upper() + word[1:] for word in words)


def cell_text(value):
    """
    Render a spreadsheet cell as trimmed text.

    Args:
        value: Cell value (string, number or None)

    Returns:
        String representation of the cell
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Sheets hands back years and ids as 2010.0 in some exports
        return str(int(value))
    return str(value).strip()


def build_row(index, cells, title_column=0, year_column=1, identifier_column=2):
    """
    Map raw cells onto a CatalogRow using the configured column positions.

    Args:
        index: Position of the row in the source
        cells: Sequence of raw cell values
        title_column: Column holding the title
        year_column: Column holding the release year, or None
        identifier_column: Column holding the TMDB id, or None

    Returns:
        CatalogRow
    """
    texts = tuple(cell_text(c) for c in cells)

    def pick(column):
        if column is None or column < 0 or column >= len(texts):
            return ""
        return texts[column]

    return CatalogRow(
        index=index,
        cells=texts,
        title=pick(title_column),
        year=pick(year_column),
        identifier=pick(identifier_column),
    )


def normalize_row(row, title_column=0):
    """Return a copy of the row with its title cell normalized."""
    title = normalize_title(row.title)
    cells = list(row.cells)
    if title_column is not None and 0 <= title_column < len(cells):
        cells[title_column] = title
    return replace(row, cells=tuple(cells), title=title)
