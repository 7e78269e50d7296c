"""Command line interface for SrdTool."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .api import (
    DUMP_FORMATS,
    ExtractOptions,
    check_container_path,
    dump_blocks,
    extract_models,
    extract_subfile,
    insert_subfile,
    list_archive,
)
from .errors import SrdError
from .logging import configure_logging, section, step
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)
from .srd import Selector
from .utils.io import DataError

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _container_arg(path: Path) -> int | None:
    try:
        check_container_path(path)
    except ValueError as e:
        get_reporter().error(str(e))
        return EXIT_USAGE
    return None


def _blocks_cmd(args: argparse.Namespace) -> int:
    usage = _container_arg(args.file)
    if usage is not None:
        return usage
    text = dump_blocks(args.file, args.format)
    # Finalize any progress UI before writing the dump to stdout
    get_reporter().flush()
    print(text)
    return EXIT_OK


def _extract_models_cmd(args: argparse.Namespace) -> int:
    usage = _container_arg(args.file)
    if usage is not None:
        return usage
    opts = ExtractOptions(
        container=args.file,
        output_path=args.output,
        geometry_buffer=Selector.from_letter(args.geometry_buffer),
    )
    with section(f"Extract models: {args.file.name}"):
        result = extract_models(opts)
    if result.failed:
        step(f"{result.failed} mesh(es) could not be extracted")
        return EXIT_FAILED
    return EXIT_OK


def _spc_list_cmd(args: argparse.Namespace) -> int:
    subfiles = list_archive(args.archive)
    get_reporter().flush()
    for sub in subfiles:
        state = "compressed" if sub.compressed else "stored"
        print(
            f"{sub.name}\t{sub.current_size}\t{sub.original_size}\t{state}"
        )
    return EXIT_OK


def _spc_extract_cmd(args: argparse.Namespace) -> int:
    written = extract_subfile(
        args.archive, args.name, dest_dir=args.dest, raw=args.raw
    )
    step(f"wrote {written}")
    return EXIT_OK


def _spc_insert_cmd(args: argparse.Namespace) -> int:
    target = insert_subfile(args.archive, args.file, output_path=args.output)
    step(f"wrote {target}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="srdtool", description="SRD container inspection and mesh export"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("blocks", help="Dump the block tree of an .srd file")
    b.add_argument("file", type=Path)
    b.add_argument(
        "--format",
        choices=DUMP_FORMATS,
        default="text",
        help="Output format (default: text)",
    )
    b.set_defaults(func=_blocks_cmd)

    e = sub.add_parser(
        "extract-models", help="Export every mesh of an .srd file as OBJ"
    )
    e.add_argument("file", type=Path)
    e.add_argument(
        "-o",
        "--output",
        type=Path,
        help="OBJ output path (default: <file>.obj)",
    )
    e.add_argument(
        "--geometry-buffer",
        dest="geometry_buffer",
        choices=["i", "v"],
        default="v",
        help="Auxiliary buffer holding vertex/face data (default: v)",
    )
    e.set_defaults(func=_extract_models_cmd)

    s = sub.add_parser("spc", help="Work with CPS. subfile archives")
    spc = s.add_subparsers(dest="spc_cmd", required=True)

    sl = spc.add_parser("list", help="List subfiles")
    sl.add_argument("archive", type=Path)
    sl.set_defaults(func=_spc_list_cmd)

    sx = spc.add_parser("extract", help="Extract one subfile")
    sx.add_argument("archive", type=Path)
    sx.add_argument("name")
    sx.add_argument(
        "-d",
        "--dest",
        type=Path,
        help="Output directory (default: next to the archive)",
    )
    sx.add_argument(
        "--raw",
        action="store_true",
        help="Write compressed subfiles as stored, without decompressing",
    )
    sx.set_defaults(func=_spc_extract_cmd)

    si = spc.add_parser("insert", help="Insert or replace a subfile")
    si.add_argument("archive", type=Path)
    si.add_argument("file", type=Path)
    si.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the updated archive here instead of in place",
    )
    si.set_defaults(func=_spc_insert_cmd)

    return p


def _select_reporter(requested: str) -> None:
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # plain, or rich without a TTY
        set_reporter(PlainReporter())


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    previous = get_reporter()
    _select_reporter(args.reporter)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    rep = get_reporter()
    try:
        return args.func(args)
    except (SrdError, DataError) as e:
        rep.error(str(e))
        return EXIT_FAILED
    finally:
        rep.flush()
        # The selected reporter holds this run's streams
        set_reporter(previous)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
