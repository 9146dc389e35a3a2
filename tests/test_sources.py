import os
import tempfile
import unittest
from unittest import mock

from titlecheck.models import Record
from titlecheck.sources import (
    SheetExportSource,
    SheetParameters,
    StaticRecordSource,
    open_for_viewing,
    record_from_parameters,
    sheet_fields,
)

EXPORT = (
    "Sheet Number;Prefix_SheetNumber;Sheet_Title_1;Sheet_Title_2;Sheet_Title_3;Sheet Name\n"
    "S-01;A-101;Ground Floor;;;Room Plan\n"
    "S-02;;Site;Plan;;\n"
    ";;;;;\n"
    "S-03;A-103;\"Roof\nPlan\";;;\n"
)


class SheetParametersTests(unittest.TestCase):
    def test_absent_and_blank_parameters_are_none(self):
        params = SheetParameters({"Sheet_Title_1": "  ", "Prefix_SheetNumber": " A-1 "})
        self.assertIsNone(params.try_get_parameter("Sheet_Title_1"))
        self.assertIsNone(params.try_get_parameter("Missing"))
        self.assertEqual(params.try_get_parameter("prefix_sheetnumber"), "A-1")

    def test_first_of_skips_blank_names(self):
        params = SheetParameters({"Sheet Name": "", "Name": "Plan"})
        self.assertEqual(params.first_of(["Sheet Name", "Name"]), "Plan")
        self.assertIsNone(params.first_of(["Other"]))

    def test_record_from_parameters(self):
        params = SheetParameters({"Sheet Number": "S-1", "Prefix_SheetNumber": "A-1", "Sheet_Title_2": "Plan"})
        record = record_from_parameters(params, sheet_fields(None))
        self.assertEqual(record.identifier, "S-1")
        self.assertEqual(record.drawing_number, "A-1")
        self.assertEqual(record.title_fragments, ("", "Plan", "", ""))


class SheetExportSourceTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "sheets.csv")
        with open(self.path, "w", encoding="utf-8", newline="") as file:
            file.write(EXPORT)

    def tearDown(self):
        self.tmp.cleanup()

    def test_reads_all_sheets(self):
        source = SheetExportSource(self.path)
        records = source.list_target_records()
        self.assertEqual([r.identifier for r in records], ["S-01", "S-02", "S-03"])
        self.assertEqual(records[0].title_fragments, ("Ground Floor", "", "", "Room Plan"))
        self.assertEqual(records[1].drawing_number, "")
        self.assertEqual(records[2].title_fragments[0], "Roof\nPlan")
        self.assertEqual(source.scope_label, "All sheets (3)")

    def test_selection_scope(self):
        source = SheetExportSource(self.path, only=["s-03", " "])
        records = source.list_target_records()
        self.assertEqual([r.identifier for r in records], ["S-03"])
        self.assertEqual(source.scope_label, "Selected sheets (1)")

    def test_configured_field_names(self):
        config = {"sheets": {"identifier_field": "Sheet_Title_3"}}
        self.assertEqual(SheetExportSource(self.path, config).list_target_records()[0].identifier, "")

    def test_missing_identifier_column_yields_nothing(self):
        with open(self.path, "w", encoding="utf-8") as file:
            file.write("a,b\n1,2\n")
        self.assertEqual(SheetExportSource(self.path).list_target_records(), [])


class StaticSourceTests(unittest.TestCase):
    def test_returns_copy(self):
        source = StaticRecordSource([Record("S", "A", ("T",))])
        records = source.list_target_records()
        records.clear()
        self.assertEqual(len(source.list_target_records()), 1)
        self.assertEqual(source.scope_label, "All sheets (1)")


class OpenForViewingTests(unittest.TestCase):
    def test_launch_failure_is_swallowed(self):
        with mock.patch("titlecheck.sources.sys.platform", "linux"), \
                mock.patch("titlecheck.sources.subprocess.Popen", side_effect=FileNotFoundError("xdg-open")):
            self.assertFalse(open_for_viewing("result.xlsx"))

    def test_launch_uses_platform_opener(self):
        with mock.patch("titlecheck.sources.sys.platform", "darwin"), \
                mock.patch("titlecheck.sources.subprocess.Popen") as popen:
            self.assertTrue(open_for_viewing("result.xlsx"))
        popen.assert_called_once_with(["open", "result.xlsx"])


if __name__ == "__main__":
    unittest.main()
