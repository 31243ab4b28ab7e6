# test_webapp.py
#
# Run:
#   python -m unittest -v

import tempfile
import unittest
from pathlib import Path

import webapp
from config_loader import DEFAULT_CONFIG


class TestWebapp(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.content = self.root / "content"
        (self.content / "lessons").mkdir(parents=True)
        (self.content / "lessons" / "intro.bbcode").write_text("[b]Hi[/b]\nthere", encoding="utf-8")
        (self.content / "notes.txt").write_text("x", encoding="utf-8")
        (self.root / "outside.bbcode").write_text("secret", encoding="utf-8")

        self._saved = dict(webapp.app.config)
        webapp.app.config.update(
            TESTING=True,
            CONTENT_DIR=self.content,
            BBCODE=DEFAULT_CONFIG,
        )
        self.client = webapp.app.test_client()

    def tearDown(self) -> None:
        webapp.app.config.clear()
        webapp.app.config.update(self._saved)
        self.tmp.cleanup()

    # ---------- browsing ----------
    def test_index_lists_files(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn("intro.bbcode", body)
        self.assertNotIn("notes.txt", body)

    def test_view_renders_markup(self):
        resp = self.client.get("/view/lessons/intro.bbcode")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("<strong>Hi</strong><br />there", resp.get_data(as_text=True))

    def test_view_rejects_other_suffixes(self):
        self.assertEqual(self.client.get("/view/notes.txt").status_code, 404)

    def test_view_missing_file(self):
        self.assertEqual(self.client.get("/view/nope.bbcode").status_code, 404)

    def test_view_rejects_traversal(self):
        self.assertEqual(self.client.get("/view/../outside.bbcode").status_code, 404)

    # ---------- api ----------
    def test_api_encode_json(self):
        resp = self.client.post("/api/encode", json={"markup": "[i]x[/i]"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"html": "<em>x</em>"})

    def test_api_encode_form(self):
        resp = self.client.post("/api/encode", data={"markup": "[u]x[/u]"})
        self.assertEqual(resp.get_json(), {"html": "<u>x</u>"})

    def test_api_decode(self):
        resp = self.client.post("/api/decode", data={"html": "<p><b>x</b></p>"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.mimetype, "text/plain")
        self.assertEqual(resp.get_data(as_text=True), "[b]x[/b]")

    def test_api_rejects_non_string_fields(self):
        resp = self.client.post("/api/encode", json={"markup": 3})
        self.assertEqual(resp.status_code, 400)


if __name__ == "__main__":
    unittest.main()
