"""
Table extraction (catalog HTML -> field arrays).

The catalog prints every offering of a course as one row of a
`table.tablesorter`, with one column per field. We read it column-wise so
that each field becomes an ordered list of raw cell values (inner HTML),
one value per offering. Index 0 of every list is the header row.

The undergraduate and graduate catalogs use different column layouts,
so field access goes through a TableLayout chosen once per extraction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup, Tag


class CatalogVariant(Enum):
    UNDERGRADUATE = "undergraduate"
    GRADUATE = "graduate"


@dataclass(frozen=True)
class TableLayout:
    """
    Column index of each field for one catalog variant.
    """

    internal: int
    term: int
    campus: int
    mode: int
    instructor: int
    section: int
    session: int
    schedule: int
    location: int
    enrollment: int
    notes: int


LAYOUTS: Dict[CatalogVariant, TableLayout] = {
    CatalogVariant.UNDERGRADUATE: TableLayout(
        internal=0,
        term=1,
        campus=2,
        mode=3,
        instructor=4,
        section=5,
        session=6,
        schedule=7,
        location=8,
        enrollment=9,
        notes=10,
    ),
    CatalogVariant.GRADUATE: TableLayout(
        internal=0,
        term=1,
        campus=3,
        mode=4,
        instructor=5,
        section=6,
        session=7,
        schedule=8,
        location=10,
        enrollment=9,
        notes=13,
    ),
}


class FieldTable:
    """
    Column-major view of the catalog table bound to one layout.
    """

    def __init__(self, columns: Dict[int, List[str]], variant: CatalogVariant) -> None:
        self.columns = columns
        self.variant = variant
        self.layout = LAYOUTS[variant]

    def __len__(self) -> int:
        return len(self.columns.get(0, []))

    def cell(self, column: int, index: int) -> str:
        values = self.columns.get(column, [])
        if index >= len(values):
            return ""
        return values[index]

    def field(self, name: str, index: int) -> str:
        """
        Return the raw value of a named field (e.g. "campus") for one entry.
        """
        return self.cell(getattr(self.layout, name), index)


def _rows(table: Tag) -> List[Tag]:
    rows: List[Tag] = []
    for child in table.find_all(True, recursive=False):
        if child.name == "tr":
            rows.append(child)
        elif child.name in ("thead", "tbody", "tfoot"):
            rows.extend(child.find_all("tr", recursive=False))
    return rows


def parse_table(table: Tag) -> Dict[int, List[str]]:
    """
    Read a table into {column index: [cell html per row]}.

    Cells are serialized with the html5 formatter, so line breaks stay
    "<br>" and non-breaking spaces stay "&nbsp;".

    colspan/rowspan cells are repeated into every slot they cover so that
    all columns stay row-aligned.
    """
    grid: Dict[int, Dict[int, str]] = {}
    spans: Dict[tuple, str] = {}
    rows = _rows(table)

    for r, row in enumerate(rows):
        c = 0
        for cell in row.find_all(["td", "th"], recursive=False):
            while (r, c) in spans:
                grid.setdefault(c, {})[r] = spans.pop((r, c))
                c += 1

            value = cell.decode_contents(formatter="html5")
            colspan = int(cell.get("colspan", 1) or 1)
            rowspan = int(cell.get("rowspan", 1) or 1)

            for dc in range(colspan):
                grid.setdefault(c + dc, {})[r] = value
                for dr in range(1, rowspan):
                    spans[(r + dr, c + dc)] = value
            c += colspan

        # spans hanging past the last real cell of this row
        for (sr, sc), value in sorted(spans.items()):
            if sr == r:
                grid.setdefault(sc, {})[r] = value
                del spans[(sr, sc)]

    columns: Dict[int, List[str]] = {}
    for c in sorted(grid):
        columns[c] = [grid[c].get(r, "") for r in range(len(rows))]

    return columns


def extract_table(
    html: Union[str, BeautifulSoup, None],
    variant: CatalogVariant,
    selector: str = "table.tablesorter",
) -> Optional[FieldTable]:
    """
    Locate the catalog table and return it as a FieldTable.

    Returns None if the document has no such table or the table has no
    data columns.
    """
    if html is None:
        return None

    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "html.parser")
    table = soup.select_one(selector)
    if not table:
        return None

    columns = parse_table(table)
    if len(columns.get(0, [])) < 2:
        return None

    return FieldTable(columns, variant)
