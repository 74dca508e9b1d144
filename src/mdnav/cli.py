"""Command-line arguments and the non-interactive output modes."""

import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import Any, TextIO

from .document import MAX_HEADING_LEVEL, SETEXT_UNDERLINE, Document, Heading, HeadingNode

OUTPUT_FORMATS = ("plain", "json", "tree")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdnav",
        description="Navigate markdown documents by their heading structure.",
    )
    parser.add_argument("file", type=Path, help="Markdown file to open.")
    parser.add_argument("-l", "--list", action="store_true", help="List headings and exit.")
    parser.add_argument("--tree", action="store_true", help="Print the heading tree and exit.")
    parser.add_argument(
        "--count", action="store_true", help="Print heading counts per level and exit."
    )
    parser.add_argument(
        "-s", "--section", metavar="NAME", help="Print one section (matched by heading text)."
    )
    parser.add_argument(
        "--links", action="store_true", help="Print every link with its kind and exit."
    )
    parser.add_argument(
        "--filter", metavar="TEXT", help="Only list headings containing TEXT."
    )
    parser.add_argument(
        "-L",
        "--level",
        type=int,
        choices=range(1, MAX_HEADING_LEVEL + 1),
        metavar="N",
        help="Only list headings of level N (1-6).",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=OUTPUT_FORMATS,
        default="plain",
        help="Output format for --list, --tree and --links (default: plain).",
    )
    parser.add_argument(
        "--log-file", type=Path, metavar="PATH", help="Write a debug log to PATH."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG level (with --log-file)."
    )
    return parser


def wants_tui(args: argparse.Namespace) -> bool:
    """True when no non-interactive output was requested."""
    return not (
        args.list
        or args.tree
        or args.count
        or args.links
        or args.section is not None
        or args.filter is not None
        or args.level is not None
    )


def _own_content(document: Document, index: int) -> str:
    """Text between a heading line and the next heading of any level."""
    start = document.headings[index].offset
    end = (
        document.headings[index + 1].offset
        if index + 1 < len(document.headings)
        else len(document.content)
    )
    lines = document.lines
    line = lines.line_of(start) + 1
    if SETEXT_UNDERLINE.match(lines.text(line)):
        line += 1
    return document.content[min(lines.start(line), end):end].strip()


def build_json_output(document: Document) -> dict[str, Any]:
    """Nested section structure with document metadata."""
    positions = {id(h): i for i, h in enumerate(document.headings)}

    def section(node: HeadingNode) -> dict[str, Any]:
        heading = node.heading
        return {
            "id": heading.anchor,
            "level": heading.level,
            "title": heading.text,
            "slug": heading.anchor,
            "position": {"line": heading.line, "offset": heading.offset},
            "content": {"raw": _own_content(document, positions[id(heading)])},
            "children": [section(child) for child in node.children],
        }

    return {
        "document": {
            "metadata": {
                "source": str(document.path) if document.path else None,
                "headingCount": len(document.headings),
                "maxDepth": max((h.level for h in document.headings), default=0),
                "wordCount": document.word_count,
            },
            "sections": [section(node) for node in document.build_tree()],
        }
    }


def select_headings(document: Document, args: argparse.Namespace) -> list[Heading]:
    if args.level is not None:
        return document.headings_at_level(args.level)
    if args.filter is not None:
        return document.filter_headings(args.filter)
    return list(document.headings)


def print_headings(
    headings: list[Heading], document: Document, output: str, out: TextIO
) -> None:
    if output == "json":
        json.dump(build_json_output(document), out, indent=2, ensure_ascii=False)
        out.write("\n")
    elif output == "tree":
        print_tree(document, "plain", out)
    else:
        for heading in headings:
            out.write(f"{'#' * heading.level} {heading.text}\n")


def print_tree(document: Document, output: str, out: TextIO) -> None:
    if output == "json":
        flat = [{"level": h.level, "text": h.text} for h in document.headings]
        json.dump(flat, out, indent=2, ensure_ascii=False)
        out.write("\n")
        return
    tree = document.build_tree()
    for i, node in enumerate(tree):
        out.write(node.render_box_tree("", i == len(tree) - 1))


def print_counts(document: Document, out: TextIO) -> None:
    counts = Counter(h.level for h in document.headings)
    out.write("Heading counts:\n")
    for level in range(1, MAX_HEADING_LEVEL + 1):
        if counts[level]:
            out.write(f"  {'#' * level}: {counts[level]}\n")
    out.write(f"\nTotal: {len(document.headings)}\n")


def print_links(document: Document, output: str, out: TextIO) -> None:
    links = document.links
    if output == "json":
        rows = [
            {
                "text": link.text,
                "kind": link.target.kind,
                "target": str(link.target),
                "line": document.lines.line_of(link.offset) + 1,
                "offset": link.offset,
            }
            for link in links
        ]
        json.dump(rows, out, indent=2, ensure_ascii=False)
        out.write("\n")
        return
    for link in links:
        out.write(f"{link.target.kind}\t{link.target}\t{link.text}\n")


def print_section(document: Document, name: str, out: TextIO, err: TextIO) -> int:
    heading = document.find_heading(name)
    if heading is None:
        err.write(f"Section '{name}' not found\n")
        return 1
    index = document.headings.index(heading)
    out.write(document.extract_section(index).rstrip("\n") + "\n")
    return 0


def run_cli(
    args: argparse.Namespace,
    document: Document,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Print the requested view of a document; returns an exit status."""
    out = out or sys.stdout
    err = err or sys.stderr

    if args.count:
        print_counts(document, out)
    elif args.tree:
        print_tree(document, args.output, out)
    elif args.section is not None:
        return print_section(document, args.section, out, err)
    elif args.links:
        print_links(document, args.output, out)
    else:
        print_headings(select_headings(document, args), document, args.output, out)
    return 0
