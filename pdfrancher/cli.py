"""Command line front-end for merging and previewing documents."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .compose import export
from .config import get_settings
from .errors import PDFRancherError
from .logging_config import configure_logging
from .models import Selector
from .project import Project
from .serializer import write_pdf_to_file
from .sources import load_graph, open_source

logger = logging.getLogger(__name__)


def _selector(text: str) -> Selector:
    try:
        return Selector.from_text(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pdfrancher", description="Compose PDF pages and images into one PDF.")
    p.add_argument("--log-level", default=None, help="Logging level (default from PDFRANCHER_LOG_LEVEL).")
    commands = p.add_subparsers(dest="command", required=True)

    merge = commands.add_parser("merge", help="Merge selected pages into a new PDF.")
    merge.add_argument("inputs", nargs="+", type=Path, help="PDF or image files, in source order.")
    merge.add_argument(
        "-s",
        "--select",
        action="append",
        type=_selector,
        default=None,
        metavar="SRC:PAGE[:ROT]",
        help="Page to include; repeat for each page. Default: every page of every input.",
    )
    merge.add_argument("-o", "--output", required=True, type=Path, help="Output PDF path.")
    merge.add_argument("--no-compress", action="store_true", help="Leave streams uncompressed.")

    thumbs = commands.add_parser("thumbnails", help="Render page thumbnails as JPEG files.")
    thumbs.add_argument("input", type=Path)
    thumbs.add_argument("-d", "--out-dir", required=True, type=Path)

    info = commands.add_parser("info", help="Print page count and version as JSON.")
    info.add_argument("input", type=Path)
    return p


def _run_merge(args: argparse.Namespace) -> None:
    project = Project(open_source(path, thumbnails=False) for path in args.inputs)
    selectors = args.select
    if selectors is None:
        selectors = [
            Selector.of(index, page)
            for index, source in enumerate(project.sources)
            for page in range(source.page_count)
        ]
    document = export(project.sources, selectors, compress=not args.no_compress)
    write_pdf_to_file(document, args.output)
    print(f"Wrote {len(selectors)} page(s) to {args.output}")


def _run_thumbnails(args: argparse.Namespace) -> None:
    project = Project()
    (source,) = project.open_files([args.input])
    args.out_dir.mkdir(parents=True, exist_ok=True)
    for index, page in enumerate(source.pages, start=1):
        (args.out_dir / f"page_{index:03d}.jpg").write_bytes(page.raster_bytes)
    print(f"Rendered {len(source.pages)} thumbnail(s) into {args.out_dir}")


def _run_info(args: argparse.Namespace) -> None:
    kind, graph = load_graph(args.input)
    print(json.dumps({"path": str(args.input), "kind": kind.value, "version": graph.version, "pages": graph.page_count}))


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    handlers = {"merge": _run_merge, "thumbnails": _run_thumbnails, "info": _run_info}
    try:
        handlers[args.command](args)
    except PDFRancherError as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
