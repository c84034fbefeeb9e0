"""Shared versioned contracts for recruit-sheet JSON outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from recruit_sheet import __version__ as TOOL_VERSION

CONTRACT_VERSIONS = {
    "recruit_sheet.normalize": "1.0.0",
    "recruit_sheet.headers": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    tool: str,
    command: str,
    input_path: Path | str,
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": tool,
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "input_file": str(input_path),
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def build_normalize_payload(
    result_payload: dict[str, Any],
    *,
    input_path: Path | str,
    output_path: Path | None = None,
    loader_warnings: list[str] | None = None,
    sheet_name: str | None = None,
) -> dict[str, Any]:
    """Wrap an engine result dict with contract and run metadata."""
    contract = build_contract("recruit_sheet.normalize")
    warnings = list(loader_warnings or []) + list(result_payload.get("warnings") or [])
    summary = result_payload.get("summary") or {}
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "sheet_name": sheet_name,
        **result_payload,
        "run_summary": build_run_summary(
            tool="recruit-sheet",
            command="normalize",
            input_path=input_path,
            status="ok" if result_payload.get("success") else "failed",
            output_path=output_path,
            metrics={
                "records": summary.get("totalRecords", 0),
                "positions": summary.get("totalPositions", 0),
                "cvs": summary.get("totalCVs", 0),
                "mapped_fields": len(result_payload.get("headerMapping") or {}),
            },
            warnings=warnings,
        ),
    }


def build_headers_payload(
    matches: list[dict[str, Any]],
    header_mapping: dict[str, int],
    missing_fields: list[str],
    *,
    input_path: Path | str,
    sheet_name: str | None = None,
) -> dict[str, Any]:
    contract = build_contract("recruit_sheet.headers")
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "sheet_name": sheet_name,
        "columns": matches,
        "headerMapping": header_mapping,
        "missing_fields": missing_fields,
        "run_summary": build_run_summary(
            tool="recruit-sheet",
            command="headers",
            input_path=input_path,
            metrics={
                "columns": len(matches),
                "mapped_fields": len(header_mapping),
                "missing_fields": len(missing_fields),
            },
        ),
    }
