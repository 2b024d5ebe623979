"""Tests for the ``python -m pagefacts`` command line."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from pagefacts.__main__ import _build_parser, main
from pagefacts.errors import FetchError, InvalidSelector
from pagefacts.items import ExtractedDocument, Heading

URL = "https://example.com/"


def _doc() -> ExtractedDocument:
    return ExtractedDocument(
        source_url=URL,
        title="Example",
        headings=(Heading(level="h1", text="Hello"),),
        emails=("info@shop.io",),
    )


class TestArgumentParser:
    def test_defaults(self):
        args = _build_parser().parse_args(["--url", URL])
        assert args.mode == "facts"
        assert args.output_format == "markdown"
        assert args.include == []
        assert args.exclude == []
        assert args.render_js is False
        assert args.no_robots is False
        assert args.timeout is None
        assert args.log_level == "WARNING"

    def test_repeatable_selectors(self):
        args = _build_parser().parse_args(
            ["--url", URL, "--include", "main", "--include", "article", "--exclude", "nav"],
        )
        assert args.include == ["main", "article"]
        assert args.exclude == ["nav"]

    def test_url_required(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])


class TestFactsMode:
    def test_prints_json(self, capsys):
        with patch("pagefacts.__main__.fetch", return_value=_doc()) as mock_fetch:
            assert main(["--url", URL]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["title"] == "Example"
        assert payload["emails"] == ["info@shop.io"]
        mock_fetch.assert_called_once_with(URL, render_js=False, timeout=None, fetch_robots=True)

    def test_flags_forwarded(self):
        with patch("pagefacts.__main__.fetch", return_value=_doc()) as mock_fetch:
            main(["--url", URL, "--render-js", "--no-robots", "--timeout", "9"])
        mock_fetch.assert_called_once_with(URL, render_js=True, timeout=9, fetch_robots=False)

    def test_writes_out_file(self, tmp_path, capsys):
        out = tmp_path / "nested" / "doc.json"
        with patch("pagefacts.__main__.fetch", return_value=_doc()):
            assert main(["--url", URL, "--out", str(out)]) == 0
        assert json.loads(out.read_text(encoding="utf-8"))["source_url"] == URL
        assert capsys.readouterr().out == ""

    def test_error_exit_code(self, capsys):
        with patch("pagefacts.__main__.fetch", side_effect=FetchError("HTTP 404", url=URL)):
            assert main(["--url", URL]) == 1
        assert "HTTP 404" in capsys.readouterr().err


class TestContentMode:
    def test_options_built_from_flags(self, capsys):
        with patch("pagefacts.__main__.fetch_content", return_value="Main") as mock_content:
            code = main([
                "--url", URL, "--mode", "content", "--format", "text",
                "--include", "main", "--exclude", "nav", "--ignore-links", "--text-only",
            ])
        assert code == 0
        assert capsys.readouterr().out == "Main\n"
        _, options = mock_content.call_args[0]
        assert options.output_format == "text"
        assert options.include_elements == ["main"]
        assert options.exclude_elements == ["nav"]
        assert options.ignore_links is True
        assert options.text_only is True

    def test_render_js_extracts_rendered_markup(self, capsys):
        with patch("pagefacts.__main__.fetch_rendered_html", return_value="<h1>T</h1>") as rendered, \
             patch("pagefacts.__main__.fetch_content") as plain:
            assert main(["--url", URL, "--mode", "content", "--render-js"]) == 0
        rendered.assert_called_once()
        plain.assert_not_called()
        assert capsys.readouterr().out == "# T\n\n"

    def test_invalid_selector_exit_code(self, capsys):
        err = InvalidSelector("Invalid CSS selector 'div['", selector="div[", url=URL)
        with patch("pagefacts.__main__.fetch_content", side_effect=err):
            assert main(["--url", URL, "--mode", "content", "--include", "div["]) == 1
        assert "div[" in capsys.readouterr().err
