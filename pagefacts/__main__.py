"""CLI entry point: python -m pagefacts --url URL [options]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from pagefacts import settings
from pagefacts.errors import ExtractionError
from pagefacts.items import ContentExtractionOptions, ExtractedDocument
from pagefacts.query import extract_content, fetch, fetch_content, fetch_rendered_html

logger = logging.getLogger(__name__)

_stderr = Console(stderr=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagefacts",
        description=(
            "Extract structured facts (headings, links, media, fonts, colors,\n"
            "emails, phone numbers, meta tags) or formatted content from a web page."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--url", required=True, metavar="URL",
                        help="Page to extract; a bare host gets https://")
    parser.add_argument("--mode", choices=["facts", "content"], default="facts",
                        help="facts: full document record as JSON; "
                             "content: formatted page content (default: facts)")
    parser.add_argument("--format", dest="output_format", default="markdown",
                        choices=["text", "html", "markdown", "json"],
                        help="Content output format (default: markdown)")
    parser.add_argument("--include", action="append", default=[], metavar="SELECTOR",
                        help="CSS selector to keep (repeatable, content mode)")
    parser.add_argument("--exclude", action="append", default=[], metavar="SELECTOR",
                        help="CSS selector to drop (repeatable, content mode)")
    parser.add_argument("--text-only", action="store_true", default=False,
                        help="Plain text for html output, no images in markdown")
    parser.add_argument("--ignore-links", action="store_true", default=False,
                        help="Replace links with their text")
    parser.add_argument("--render-js", action="store_true", default=False,
                        help="Render the page with headless Chromium (needs playwright)")
    parser.add_argument("--no-robots", action="store_true", default=False,
                        help="Do not fetch /robots.txt in facts mode")
    parser.add_argument("--timeout", type=int, default=None, metavar="N",
                        help="Network timeout in seconds")
    parser.add_argument("--out", default=None, metavar="FILE",
                        help="Write the result to FILE instead of stdout")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_stderr, rich_tracebacks=False, show_path=False)],
    )


def _print_summary(doc: ExtractedDocument) -> None:
    tbl = Table(
        title=f"[bold cyan]{doc.title or doc.source_url}[/bold cyan]",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    tbl.add_column("Fact", style="bold")
    tbl.add_column("Count", justify="right", style="green")

    rows = [
        ("Headings", len(doc.headings)),
        ("Links", len(doc.links)),
        ("External links", sum(1 for link in doc.links if link.external)),
        ("Images", len(doc.images)),
        ("Videos", len(doc.videos)),
        ("Fonts", len(doc.fonts)),
        ("Colors", len(doc.colors)),
        ("Emails", len(doc.emails)),
        ("Phone numbers", len(doc.phone_numbers)),
        ("Meta tags", len(doc.meta_tags)),
        ("Scripts", len(doc.scripts)),
        ("Stylesheets", len(doc.stylesheets)),
    ]
    for label, count in rows:
        tbl.add_row(label, str(count))
    tbl.add_row("robots.txt", "yes" if doc.robots_txt is not None else "no")
    _stderr.print(tbl)


def _emit(text: str, out: str | None) -> None:
    if out:
        path = Path(out)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        _stderr.print(f"Wrote [green]{path}[/green]")
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        if args.mode == "facts":
            doc = fetch(
                args.url,
                render_js=args.render_js,
                timeout=args.timeout,
                fetch_robots=not args.no_robots,
            )
            _emit(doc.model_dump_json(indent=2), args.out)
            _print_summary(doc)
        else:
            options = ContentExtractionOptions(
                output_format=args.output_format,
                text_only=args.text_only,
                ignore_links=args.ignore_links,
                include_elements=args.include,
                exclude_elements=args.exclude,
            )
            if args.render_js:
                html = fetch_rendered_html(
                    args.url, timeout=args.timeout or settings.RENDER_TIMEOUT,
                )
                content = extract_content(html, url=args.url, options=options)
            else:
                content = fetch_content(args.url, options, timeout=args.timeout)
            _emit(content, args.out)
    except ExtractionError as exc:
        _stderr.print(f"[bold red]ERROR:[/bold red] {escape(str(exc))}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
