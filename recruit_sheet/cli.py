from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
import requests

from recruit_sheet import __version__ as TOOL_VERSION
from recruit_sheet.contracts import build_headers_payload, build_normalize_payload
from recruit_sheet.engine import ParseResult, parse_recruitment_grid
from recruit_sheet.fields import HEADER_ALIASES, CanonicalField, build_alias_table
from recruit_sheet.headers import explain_headers
from recruit_sheet.loader import is_url, load_grid
from recruit_sheet.normalizer import NormalizedRecord

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2

SUPPORTED_CONFIG_SUFFIXES = {".json"}
AVERAGE_DISPLAY_PRECISION = 2
OUTPUT_STAMP_ENV = "RECRUIT_SHEET_OUTPUT_STAMP"


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class RecruitSheetArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def emit_verbose(message: str, args: argparse.Namespace) -> None:
    if getattr(args, "verbose", False) and not getattr(args, "quiet", False):
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def display_average(value: float) -> float:
    return round(value or 0, AVERAGE_DISPLAY_PRECISION)


def timestamp_token() -> str:
    override = os.environ.get(OUTPUT_STAMP_ENV)
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def input_stem(source: str) -> str:
    if is_url(source):
        return Path(source.split("?", 1)[0].rstrip("/")).stem or "remote"
    return Path(source).stem


def default_output_dir(source: str) -> Path:
    return Path.cwd() / "recruit-sheet-output" / f"{input_stem(source)}-{timestamp_token()}"


def determine_output_dir(args: argparse.Namespace) -> Path:
    if getattr(args, "out_dir", None):
        return Path(args.out_dir)
    return default_output_dir(args.input)


def write_text(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (ValueError, ImportError, UnicodeDecodeError, requests.RequestException)):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def ensure_input(source: str) -> None:
    if not is_url(source) and not Path(source).exists():
        raise CliError(f"File not found: {source}", EXIT_COMMAND_ERROR)


def load_alias_config(config_path: str | None) -> dict[CanonicalField, list[str]] | None:
    """Read an alias-override file: {"aliases": {"recruiter": ["talent partner"]}}."""
    if not config_path:
        return None
    path = Path(config_path)
    if not path.exists():
        raise CliError(f"Alias config not found: {path}", EXIT_COMMAND_ERROR)
    if path.suffix.lower() not in SUPPORTED_CONFIG_SUFFIXES:
        raise CliError("Alias config must be a .json file", EXIT_COMMAND_ERROR)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise CliError(f"Could not read alias config: {exc}", EXIT_COMMAND_ERROR) from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("aliases", {}), dict):
        raise CliError("Alias config root must be an object with an 'aliases' object", EXIT_COMMAND_ERROR)

    aliases: dict[CanonicalField, list[str]] = {}
    for name, values in payload.get("aliases", {}).items():
        try:
            canonical = CanonicalField.from_name(name)
        except ValueError as exc:
            raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list) or not all(isinstance(value, str) for value in values):
            raise CliError(f"Aliases for '{name}' must be a list of strings", EXIT_COMMAND_ERROR)
        aliases[canonical] = values
    return aliases


def load_and_parse(args: argparse.Namespace) -> tuple[dict, ParseResult]:
    ensure_input(args.input)
    aliases = load_alias_config(getattr(args, "aliases", None))
    loaded = load_grid(args.input, sheet_name=getattr(args, "sheet_name", None))
    for warning in loaded["warnings"]:
        emit_verbose(f"Loader: {warning}", args)
    result = parse_recruitment_grid(loaded["grid"], aliases)
    return loaded, result


def render_normalize_text(payload: dict[str, Any]) -> str:
    summary = payload.get("summary") or {}
    lines = [
        "recruit-sheet normalize",
        f"Input: {payload['run_summary']['input_file']}",
        f"Records: {summary.get('totalRecords', 0)}",
        f"Positions: {summary.get('totalPositions', 0)}",
        f"CVs: {summary.get('totalCVs', 0)}",
        f"Recruiters: {summary.get('uniqueRecruiters', 0)}",
        f"Clients: {summary.get('uniqueClients', 0)}",
        f"Positions on hold: {summary.get('positionsOnHold', 0)}",
        f"Average days to first CV: {display_average(summary.get('averageDaysToFirstCV', 0))}",
    ]
    if payload.get("sheet_name"):
        lines.append(f"Sheet: {payload['sheet_name']}")
    mapping = payload.get("headerMapping") or {}
    lines.append(f"Mapped fields: {', '.join(mapping) if mapping else '[none]'}")
    return "\n".join(lines) + "\n"


def render_headers_text(payload: dict[str, Any]) -> str:
    lines = ["recruit-sheet headers"]
    for column in payload["columns"]:
        target = column["field"] or "-"
        tier = f" ({column['tier']})" if column["tier"] else ""
        lines.append(f"  [{column['column'] + 1}] {column['label'] or '[blank]'} -> {target}{tier}")
    if payload["missing_fields"]:
        lines.append(f"Missing fields: {', '.join(payload['missing_fields'])}")
    return "\n".join(lines) + "\n"


def run_normalize(args: argparse.Namespace) -> int:
    try:
        loaded, result = load_and_parse(args)
        write_file = not args.json or bool(args.output or args.out_dir)
        output_path = None
        if write_file:
            output_path = safe_output_path(
                Path(args.output) if args.output else determine_output_dir(args) / "normalized.json"
            )
        payload = build_normalize_payload(
            result.to_dict(),
            input_path=loaded["source"],
            output_path=output_path,
            loader_warnings=loaded["warnings"],
            sheet_name=loaded["sheet_name"],
        )
        if not result.success:
            if args.json:
                print(json_dumps(payload))
            eprint(result.error or "Parsing failed")
            return EXIT_PARSE_FAILED

        if output_path is not None:
            write_json(output_path, payload)
        for warning in result.warnings:
            emit_verbose(f"Warning: {warning}", args)
        if args.json:
            print(json_dumps(payload))
        else:
            emit_human(render_normalize_text(payload).rstrip(), quiet=args.quiet)
            emit_human(f"Normalized data written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_headers(args: argparse.Namespace) -> int:
    try:
        ensure_input(args.input)
        aliases = load_alias_config(args.aliases)
        loaded = load_grid(args.input, sheet_name=args.sheet_name)
        if not loaded["grid"]:
            raise CliError("Spreadsheet is empty", EXIT_PARSE_FAILED)
        header_map, matches = explain_headers(
            loaded["grid"][0],
            build_alias_table(aliases) if aliases else None,
        )
        payload = build_headers_payload(
            [match.to_dict() for match in matches],
            header_map.to_dict(),
            [canonical.value for canonical in header_map.missing()],
            input_path=loaded["source"],
            sheet_name=loaded["sheet_name"],
        )
        if args.json:
            print(json_dumps(payload))
        else:
            emit_human(render_headers_text(payload).rstrip(), quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def records_frame(result: ParseResult) -> pd.DataFrame:
    columns = list(NormalizedRecord(row_number=0).to_dict())
    frame = pd.DataFrame([record.to_dict() for record in result.data or []], columns=columns)
    frame["cvsSharedDates"] = frame["cvsSharedDates"].map("; ".join)
    return frame


def run_export(args: argparse.Namespace) -> int:
    try:
        _loaded, result = load_and_parse(args)
        if not result.success:
            eprint(result.error or "Parsing failed")
            return EXIT_PARSE_FAILED
        output_path = safe_output_path(
            Path(args.output) if args.output else determine_output_dir(args) / "normalized.csv"
        )
        output_path.parent.mkdir(parents=True, exist_ok=True)
        records_frame(result).to_csv(output_path, index=False)
        emit_human(f"Exported {len(result.data or [])} record(s): {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    payload = {
        "aliases": {canonical.value: [] for canonical in HEADER_ALIASES},
    }
    write_json(config_path, payload)
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Input file path or public http(s) URL")
    parser.add_argument("--sheet", dest="sheet_name", help="Workbook sheet name (defaults to the first sheet)")
    parser.add_argument("--aliases", help="JSON file with extra header aliases per field")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="More human logs")


def build_parser() -> argparse.ArgumentParser:
    parser = RecruitSheetArgumentParser(
        prog="recruit-sheet",
        description="Normalize recruitment-pipeline spreadsheets into canonical records.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize = subparsers.add_parser("normalize", help="Normalize a spreadsheet into records and a summary.")
    add_source_arguments(normalize)
    normalize.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    normalize.add_argument("--output", help="Explicit JSON output path")
    normalize.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    headers = subparsers.add_parser("headers", help="Show how each header column was matched.")
    add_source_arguments(headers)
    headers.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    export = subparsers.add_parser("export", help="Write normalized records as CSV.")
    add_source_arguments(export)
    export.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    export.add_argument("--output", help="Explicit CSV output path")

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter alias config file.")
    config_init.add_argument("--path", default="recruit-sheet-aliases.json", help="Config output path")

    subparsers.add_parser("version", help="Print version")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "normalize":
            return run_normalize(args)
        if args.command == "headers":
            return run_headers(args)
        if args.command == "export":
            return run_export(args)
        if args.command == "config" and args.config_command == "init":
            return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
