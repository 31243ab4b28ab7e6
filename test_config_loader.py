# test_config_loader.py
#
# Run:
#   python -m unittest -v

import tempfile
import unittest
from pathlib import Path

import config_loader as m


class TestLoadConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def write(self, content: str) -> Path:
        p = self.root / "config.yml"
        p.write_text(content, encoding="utf-8")
        return p

    # ---------- defaults ----------
    def test_missing_file_gives_defaults(self):
        self.assertIs(m.load_config(self.root / "nope.yml"), m.DEFAULT_CONFIG)

    def test_empty_file_gives_default_values(self):
        cfg = m.load_config(self.write(""))
        self.assertEqual(cfg.pdf_label, m.DEFAULT_CONFIG.pdf_label)
        self.assertEqual(cfg.html_parser, "html.parser")

    # ---------- overrides ----------
    def test_flat_override(self):
        cfg = m.load_config(self.write('pdf_label: "PDF attached"\n'))
        self.assertEqual(cfg.pdf_label, "PDF attached")
        self.assertEqual(cfg.link_target, m.DEFAULT_CONFIG.link_target)

    def test_grouped_override(self):
        cfg = m.load_config(self.write(
            "encode:\n"
            "  link_target: _self\n"
            "decode:\n"
            "  html_parser: lxml\n"
        ))
        self.assertEqual(cfg.link_target, "_self")
        self.assertEqual(cfg.html_parser, "lxml")

    # ---------- validation ----------
    def test_root_must_be_mapping(self):
        with self.assertRaises(TypeError):
            m.load_config(self.write("- a\n- b\n"))

    def test_values_must_be_strings(self):
        with self.assertRaises(TypeError):
            m.load_config(self.write("line_break: 3\n"))

    def test_group_must_be_mapping(self):
        with self.assertRaises(TypeError):
            m.load_config(self.write("encode: nope\n"))

    def test_unknown_keys_are_rejected(self):
        with self.assertRaises(ValueError):
            m.load_config(self.write("colour: red\n"))


if __name__ == "__main__":
    unittest.main()
