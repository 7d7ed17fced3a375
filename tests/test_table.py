"""
Unit tests for table extraction.

Contract:
- one list per column, index 0 is the header row
- cell values are raw inner HTML
- layouts differ between undergraduate and graduate pages
- missing table or no entries -> None
"""

import unittest

from bs4 import BeautifulSoup

from catalog_fixtures import catalog_table, entry
from coursecatalog.table import LAYOUTS, CatalogVariant, extract_table, parse_table


class TestExtractTable(unittest.TestCase):
    def test_undergraduate_columns_are_row_aligned(self) -> None:
        html = catalog_table([entry(section="001"), entry(section="002", campus="Hartford")])
        table = extract_table(html, CatalogVariant.UNDERGRADUATE)

        self.assertIsNotNone(table)
        assert table is not None

        self.assertEqual(len(table), 3)
        self.assertEqual(table.field("campus", 0), "Campus")
        self.assertEqual(table.field("campus", 1), "Storrs")
        self.assertEqual(table.field("campus", 2), "Hartford")
        self.assertEqual(table.field("section", 2), "002")

    def test_cells_keep_inner_html(self) -> None:
        html = catalog_table([entry(instructor="Smith, John<br>Doe, Jane")])
        table = extract_table(html, CatalogVariant.UNDERGRADUATE)
        assert table is not None

        self.assertEqual(table.field("instructor", 1), "Smith, John<br>Doe, Jane")
        self.assertEqual(table.field("schedule", 1), "MWF 10:00-10:50<br>")

    def test_graduate_layout_uses_shifted_columns(self) -> None:
        html = catalog_table([entry(campus="Stamford", enrollment="3/10")], grad=True)
        table = extract_table(html, CatalogVariant.GRADUATE)
        assert table is not None

        self.assertEqual(LAYOUTS[CatalogVariant.GRADUATE].campus, 3)
        self.assertEqual(LAYOUTS[CatalogVariant.UNDERGRADUATE].campus, 2)
        self.assertEqual(table.field("campus", 1), "Stamford")
        self.assertEqual(table.field("enrollment", 1), "3/10")
        self.assertIn("OAK 101", table.field("location", 1))

    def test_wrong_layout_reads_wrong_column(self) -> None:
        html = catalog_table([entry(campus="Stamford")], grad=True)
        table = extract_table(html, CatalogVariant.UNDERGRADUATE)
        assert table is not None
        self.assertEqual(table.field("campus", 1), "GRAD")

    def test_missing_table_returns_none(self) -> None:
        self.assertIsNone(extract_table("<html><body><p>No sections</p></body></html>", CatalogVariant.UNDERGRADUATE))
        self.assertIsNone(extract_table(None, CatalogVariant.UNDERGRADUATE))

    def test_header_only_table_returns_none(self) -> None:
        html = catalog_table([])
        self.assertIsNone(extract_table(html, CatalogVariant.UNDERGRADUATE))

    def test_out_of_range_cell_is_empty(self) -> None:
        table = extract_table(catalog_table([entry()]), CatalogVariant.UNDERGRADUATE)
        assert table is not None
        self.assertEqual(table.cell(42, 1), "")
        self.assertEqual(table.cell(0, 99), "")


class TestParseTable(unittest.TestCase):
    def test_rowspan_and_colspan_are_repeated(self) -> None:
        html = """
        <table>
            <tr><th>A</th><th>B</th><th>C</th></tr>
            <tr><td rowspan="2">x</td><td colspan="2">y</td></tr>
            <tr><td>b2</td><td>c2</td></tr>
        </table>
        """
        table = BeautifulSoup(html, "html.parser").select_one("table")
        columns = parse_table(table)

        self.assertEqual(columns[0], ["A", "x", "x"])
        self.assertEqual(columns[1], ["B", "y", "b2"])
        self.assertEqual(columns[2], ["C", "y", "c2"])


if __name__ == "__main__":
    unittest.main()
