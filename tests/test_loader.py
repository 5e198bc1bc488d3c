from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from sheet_metrics.loader import decode_bytes, read_csv_file


class LoaderTests(unittest.TestCase):
    def test_empty_bytes(self):
        decoded = decode_bytes(b"")
        self.assertEqual(decoded.text, "")
        self.assertEqual(decoded.warnings, ())

    def test_utf8_with_bom(self):
        decoded = decode_bytes("\ufeffFeatures,Test Cases\nLogin,Café\n".encode("utf-8"))
        self.assertTrue(decoded.text.startswith("Features"))
        self.assertIn("Café", decoded.text)
        self.assertEqual(decoded.warnings, ())

    def test_latin1_lines_fall_back_with_warning(self):
        raw = "Features,Comments\n".encode("utf-8") + "Login,résumé upload\n".encode("latin-1")
        decoded = decode_bytes(raw)
        self.assertTrue(decoded.text.startswith("Features,Comments\nLogin,r"))
        self.assertTrue(any("not valid UTF-8" in warning for warning in decoded.warnings))

    def test_null_bytes_are_removed(self):
        decoded = decode_bytes(b"Features,Test\x00 Cases\n")
        self.assertEqual(decoded.text, "Features,Test Cases\n")
        self.assertTrue(any("Null bytes" in warning for warning in decoded.warnings))

    def test_read_csv_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.csv"
            path.write_bytes(b"Stories,Total Cases\nBilling,7\n")
            decoded = read_csv_file(path)
        self.assertEqual(decoded.text, "Stories,Total Cases\nBilling,7\n")


if __name__ == "__main__":
    unittest.main()
