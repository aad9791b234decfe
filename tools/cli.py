"""Command-line tools for voice files.

Usage:
    dx7voices parse FILE... [--limit N]
    dx7voices convert --file-input IN --file-output OUT
    dx7voices parse-batch --file-batch LIST [--file-output OUT] [--pick-random-32]
    dx7voices staccato --file-input IN --file-output OUT [--affect all]
"""
from __future__ import annotations
import argparse
import random
from pathlib import Path

from core.config import AppConfig
from core.logger import AppLogger
from midi.diagnostics import DiagnosticLog, logger_listener
from midi.sysex import SysExOptions
from model.bank import pick_random
from model.library import Library, attach_metadata
from model.staccato import Affect, StaccatoParameters, apply_staccato_named
from tools.file_format import Format, infer_format, read_voices, write_voices

_FORMAT_NAMES = [f.value for f in Format]


class _Context:
    def __init__(self, args: argparse.Namespace) -> None:
        self.config = AppConfig(Path(args.config) if args.config else None)
        self.options = SysExOptions.from_config(self.config)
        self.logger = AppLogger()
        self.log = DiagnosticLog(logger_listener(self.logger))

    def output_format(self, path: Path, explicit: str | None) -> Format:
        try:
            return infer_format(path, explicit)
        except ValueError:
            fmt = Format.from_name(self.config.default_output_format)
            self.logger.general(f"{path}: writing as {fmt.value}")
            return fmt

    def write(self, voices, path: Path, explicit: str | None) -> None:
        write_voices(voices, path, self.output_format(path, explicit),
                     self.options, self.config.xml_schema, self.logger)

    def status(self) -> int:
        return 1 if self.log.has_errors else 0


def _cmd_parse(ctx: _Context, args: argparse.Namespace) -> int:
    for name in args.files:
        path = Path(name)
        voices = read_voices(path, Format.SYSEX_32, ctx.log, ctx.options,
                             ctx.logger, args.limit)
        print(f"{path}: Parsed {len(voices)} voices")
    return ctx.status()


def _cmd_convert(ctx: _Context, args: argparse.Namespace) -> int:
    source = Path(args.file_input)
    voices = read_voices(source, infer_format(source, args.format_input),
                         ctx.log, ctx.options, ctx.logger)
    if ctx.log.has_errors:
        return 1
    ctx.write(attach_metadata(voices, source), Path(args.file_output), args.format_output)
    return ctx.status()


def _cmd_parse_batch(ctx: _Context, args: argparse.Namespace) -> int:
    library = Library(ctx.log, ctx.options, ctx.logger)
    voices = library.load_batch(Path(args.file_batch))
    ctx.logger.general(
        f"Loaded {len(voices)} voices "
        f"({len(ctx.log.warnings)} warnings, {len(ctx.log.errors)} errors)"
    )
    if args.pick_random_32:
        voices = pick_random(voices, ctx.config.batch_pick_count,
                             random.Random(args.seed))
        ctx.logger.general(f"Picked {len(voices)} voices")
    if args.file_output:
        ctx.write(voices, Path(args.file_output), args.format_output)
    return ctx.status()


def _cmd_staccato(ctx: _Context, args: argparse.Namespace) -> int:
    source = Path(args.file_input)
    voices = read_voices(source, infer_format(source, args.format_input),
                         ctx.log, ctx.options, ctx.logger)
    if ctx.log.has_errors:
        return 1
    params = StaccatoParameters(
        affect=Affect(args.affect),
        modify_attack=not args.no_attack,
        modify_release=not args.no_release,
    )
    result = [apply_staccato_named(v, params) for v in voices]
    ctx.logger.transform(
        f"Applied staccato ({params.affect.value}) to {len(result)} voices"
    )
    ctx.write(result, Path(args.file_output), args.format_output)
    return ctx.status()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dx7voices",
                                     description="DX7 voice file tools")
    parser.add_argument("--config", default=None,
                        help="Settings file (default: ~/.config/dx7voices/config.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Decode SysEx files and report voice counts")
    p.add_argument("files", nargs="+", metavar="FILE")
    p.add_argument("--limit", type=int, default=None,
                   help="Read at most this many voices per file")
    p.set_defaults(func=_cmd_parse)

    p = sub.add_parser("convert", help="Convert between voice file formats")
    p.add_argument("--file-input", required=True)
    p.add_argument("--file-output", required=True)
    p.add_argument("--format-input", choices=_FORMAT_NAMES, default=None)
    p.add_argument("--format-output", choices=_FORMAT_NAMES, default=None)
    p.set_defaults(func=_cmd_convert)

    p = sub.add_parser("parse-batch", help="Load every file listed in a batch file")
    p.add_argument("--file-batch", required=True,
                   help="Text file with one voice file path per line")
    p.add_argument("--file-output", default=None)
    p.add_argument("--format-output", choices=_FORMAT_NAMES, default=None)
    p.add_argument("--pick-random-32", action="store_true",
                   help="Keep a random selection of non-initialised voices")
    p.add_argument("--seed", type=int, default=None,
                   help="Random seed for --pick-random-32")
    p.set_defaults(func=_cmd_parse_batch)

    p = sub.add_parser("staccato", help="Make every voice in a file staccato")
    p.add_argument("--file-input", required=True)
    p.add_argument("--file-output", required=True)
    p.add_argument("--format-input", choices=_FORMAT_NAMES, default=None)
    p.add_argument("--format-output", choices=_FORMAT_NAMES, default=None)
    p.add_argument("--affect", choices=[a.value for a in Affect],
                   default=Affect.CARRIERS.value)
    p.add_argument("--no-attack", action="store_true",
                   help="Leave the R1 (attack) rates unchanged")
    p.add_argument("--no-release", action="store_true",
                   help="Leave the R4 (release) rates unchanged")
    p.set_defaults(func=_cmd_staccato)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    ctx = _Context(args)
    try:
        return args.func(ctx, args)
    except (OSError, ValueError) as exc:
        ctx.logger.general(f"Error: {exc}")
        return 1
