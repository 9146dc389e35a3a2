import unittest

from titlecheck.identify import fold_case, join_fragments, normalize_key, normalize_title, titles_equal


class NormalizeTitleTests(unittest.TestCase):
    def test_collapses_line_breaks_and_spaces(self):
        self.assertEqual(normalize_title("  GROUND\r\nFLOOR    PLAN \n"), "GROUND FLOOR PLAN")

    def test_blank_input_is_empty(self):
        self.assertEqual(normalize_title(""), "")
        self.assertEqual(normalize_title(" \r\n\t"), "")
        self.assertEqual(normalize_title(None), "")

    def test_idempotent(self):
        samples = ["a  b", "x\r\n\r\ny", " lead", "tab\there  ", "\n\nA-101\n", "ROOM PLAN"]
        for sample in samples:
            once = normalize_title(sample)
            self.assertEqual(normalize_title(once), once, sample)
            self.assertNotIn("  ", once)
            self.assertNotIn("\n", once)
            self.assertNotIn("\r", once)


class FragmentTests(unittest.TestCase):
    def test_join_skips_blank_fragments(self):
        self.assertEqual(join_fragments(["Room", "", None, " Plan "]), "Room Plan")

    def test_join_of_nothing_is_empty(self):
        self.assertEqual(join_fragments([]), "")
        self.assertEqual(join_fragments(["  ", None]), "")

    def test_key_is_trimmed(self):
        self.assertEqual(normalize_key("  A-101 "), "A-101")
        self.assertEqual(normalize_key(None), "")

    def test_titles_compare_case_insensitively(self):
        self.assertTrue(titles_equal("Room Plan", "ROOM PLAN"))
        self.assertFalse(titles_equal("Room Plan", "Room Plans"))

    def test_case_fold_is_per_character(self):
        self.assertEqual(fold_case("straße"), "STRAßE")
        self.assertEqual(len(fold_case("ßﬁ")), 2)
        self.assertFalse(titles_equal("STRASSE", "straße"))
        self.assertTrue(titles_equal("Straße", "STRAßE"))


if __name__ == "__main__":
    unittest.main()
