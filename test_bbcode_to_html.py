# test_bbcode_to_html.py
#
# Run:
#   python -m unittest -v

import contextlib
import io
import tempfile
import unittest
from pathlib import Path

import bbcode_to_html as m
from config_loader import DEFAULT_CONFIG, config_from_mapping

UL_STYLE = DEFAULT_CONFIG.unordered_list_style
OL_STYLE = DEFAULT_CONFIG.ordered_list_style


class TestEncode(unittest.TestCase):
    # ---------- plain text ----------
    def test_empty_string(self):
        self.assertEqual(m.encode(""), "")

    def test_plain_text_is_identity(self):
        self.assertEqual(m.encode("just <text> & more"), "just <text> & more")

    def test_newlines_become_breaks(self):
        self.assertEqual(m.encode("one\ntwo\n"), "one<br />two<br />")

    # ---------- inline emphasis ----------
    def test_bold(self):
        self.assertEqual(m.encode("[b]Hello[/b]"), "<strong>Hello</strong>")

    def test_italic_and_underline(self):
        self.assertEqual(m.encode("[i]a[/i] [u]b[/u]"), "<em>a</em> <u>b</u>")

    def test_mixed_nesting(self):
        self.assertEqual(
            m.encode("[b]bold [i]and italic[/i][/b]"),
            "<strong>bold <em>and italic</em></strong>",
        )

    def test_misnested_tags_keep_the_unmatched_one_literal(self):
        self.assertEqual(m.encode("[b][i]x[/b][/i]"), "<strong>[i]x</strong>[/i]")

    def test_non_overlapping_spans(self):
        self.assertEqual(
            m.encode("[b]a[/b] and [b]b[/b]"),
            "<strong>a</strong> and <strong>b</strong>",
        )

    # ---------- unmatched / unknown ----------
    def test_unmatched_open_tag_is_kept(self):
        self.assertEqual(m.encode("[b]bold forever"), "[b]bold forever")

    def test_unknown_tag_is_kept(self):
        self.assertEqual(m.encode("[quote]x[/quote]"), "[quote]x[/quote]")

    # ---------- blocks ----------
    def test_alignment(self):
        self.assertEqual(
            m.encode("[center]Hi[/center]"),
            '<div style="text-align: center">Hi</div>',
        )

    def test_link(self):
        self.assertEqual(
            m.encode("[url=https://example.com]click[/url]"),
            '<a href="https://example.com" target="_blank" rel="noopener noreferrer" '
            'style="color: #6C5DD3; font-weight: bold; text-decoration: underline;">click</a>',
        )

    def test_link_target_is_attribute_escaped(self):
        html = m.encode('[url=http://x/?a=1&b="2"]q[/url]')
        self.assertIn('href="http://x/?a=1&amp;b=&quot;2&quot;"', html)

    def test_image(self):
        self.assertEqual(
            m.encode("[img]http://x/a.png[/img]"),
            f'<img src="http://x/a.png" style="{DEFAULT_CONFIG.image_style}" />',
        )

    def test_attachment_placeholder(self):
        html = m.encode("[pdf]http://x/a.pdf[/pdf]")
        self.assertTrue(html.startswith('<div data-bbcode="pdf" data-src="http://x/a.pdf"'))
        self.assertIn("[Arquivo PDF Anexado]</div>", html)

    # ---------- lists ----------
    def test_unordered_list(self):
        self.assertEqual(
            m.encode("[list]\n[*]A\n[*]B\n[/list]"),
            f'<ul style="{UL_STYLE}"><li>A</li><li>B</li></ul>',
        )

    def test_list_drops_blank_items(self):
        self.assertEqual(
            m.encode("[list]\n[*]A\n\n[*]\n\n[*]B\n[/list]"),
            f'<ul style="{UL_STYLE}"><li>A</li><li>B</li></ul>',
        )

    def test_ordered_list(self):
        self.assertEqual(
            m.encode("[list=1][*]One[*]Two[/list]"),
            f'<ol style="{OL_STYLE}"><li>One</li><li>Two</li></ol>',
        )

    def test_list_items_keep_formatting(self):
        self.assertEqual(
            m.encode("[list][*][b]A[/b][*]B[/list]"),
            f'<ul style="{UL_STYLE}"><li><strong>A</strong></li><li>B</li></ul>',
        )

    def test_newline_inside_item_and_after_list(self):
        self.assertEqual(
            m.encode("[list][*]a\nb[/list]\nafter"),
            f'<ul style="{UL_STYLE}"><li>a<br />b</li></ul><br />after',
        )

    def test_nested_list_inside_alignment(self):
        self.assertEqual(
            m.encode("[center][list][*][list][*]x[/list][/list][/center]"),
            '<div style="text-align: center">'
            f'<ul style="{UL_STYLE}"><li><ul style="{UL_STYLE}"><li>x</li></ul></li></ul>'
            "</div>",
        )

    # ---------- large input ----------
    def test_deep_nesting(self):
        depth = 3000
        self.assertEqual(
            m.encode("[b]" * depth + "x" + "[/b]" * depth),
            "<strong>" * depth + "x" + "</strong>" * depth,
        )

    def test_many_stray_close_tags_are_literal(self):
        markup = "[b]" * 20000 + "[/i]" * 20000
        self.assertEqual(m.encode(markup), markup)

    # ---------- configuration ----------
    def test_custom_config(self):
        cfg = config_from_mapping({"pdf_label": "PDF", "pdf_style": "", "line_break": "<br>"})
        self.assertEqual(
            m.encode("[pdf]f.pdf[/pdf]\nx", cfg),
            '<div data-bbcode="pdf" data-src="f.pdf">PDF</div><br>x',
        )

    def test_empty_link_options_are_omitted(self):
        cfg = config_from_mapping({"link_target": "", "link_rel": "", "link_style": ""})
        self.assertEqual(m.encode("[url=/a]b[/url]", cfg), '<a href="/a">b</a>')


class TestEncodeInline(unittest.TestCase):
    def test_only_inline_tags_are_converted(self):
        self.assertEqual(
            m.encode_inline("[b]x[/b] [center]y[/center]\nz"),
            "<strong>x</strong> [center]y[/center]\nz",
        )

    def test_links_are_converted(self):
        html = m.encode_inline("[url=/a]b[/url]")
        self.assertTrue(html.startswith('<a href="/a"'))

    def test_lists_stay_literal(self):
        self.assertEqual(m.encode_inline("[list][*]a[/list]"), "[list][*]a[/list]")

    def test_empty(self):
        self.assertEqual(m.encode_inline(""), "")


class TestDocument(unittest.TestCase):
    def test_document_wraps_body(self):
        doc = m.render_bbcode_document("[b]x[/b]", title="A & B")
        self.assertTrue(doc.startswith("<!doctype html>"))
        self.assertIn("<title>A &amp; B</title>", doc)
        self.assertIn("<strong>x</strong>", doc)
        self.assertTrue(doc.endswith("</html>\n"))


class TestMain(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.no_config = str(self.root / "missing.yml")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_body_only_to_file(self):
        src = self.root / "in.bbcode"
        src.write_text("[i]x[/i]", encoding="utf-8")
        out = self.root / "out.html"
        rc = m.main([str(src), "-o", str(out), "-c", self.no_config, "--body-only"])
        self.assertEqual(rc, 0)
        self.assertEqual(out.read_text(encoding="utf-8"), "<em>x</em>")

    def test_document_to_stdout(self):
        src = self.root / "lesson.bbcode"
        src.write_text("hi", encoding="utf-8")
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            rc = m.main([str(src), "-c", self.no_config])
        self.assertEqual(rc, 0)
        self.assertIn("<title>lesson</title>", buf.getvalue())

    def test_missing_input_returns_2(self):
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            rc = m.main([str(self.root / "nope.bbcode"), "-c", self.no_config])
        self.assertEqual(rc, 2)
        self.assertIn("[bbcode_to_html]", err.getvalue())

    def test_bad_config_returns_2(self):
        src = self.root / "in.bbcode"
        src.write_text("x", encoding="utf-8")
        cfg = self.root / "config.yml"
        cfg.write_text("- not\n- a mapping\n", encoding="utf-8")
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            rc = m.main([str(src), "-c", str(cfg)])
        self.assertEqual(rc, 2)


if __name__ == "__main__":
    unittest.main()
