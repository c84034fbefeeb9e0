#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import pandas as pd
import requests
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from recruit_sheet.cli import display_average, json_dumps, records_frame  # noqa: E402
from recruit_sheet.contracts import build_normalize_payload  # noqa: E402
from recruit_sheet.engine import parse_recruitment_grid  # noqa: E402
from recruit_sheet.loader import (  # noqa: E402
    ALL_FORMATS,
    MAX_REMOTE_FILE_MB,
    is_url,
    load_bytes,
    load_grid,
)

UPLOAD_TYPES = ["xlsx", "xls", "csv"]


def ensure_state() -> None:
    st.session_state.setdefault("result", None)
    st.session_state.setdefault("public_url_input", "")


def process_source(upload, raw_url: str, sheet_name: Optional[str]) -> dict:
    """Load one upload or URL and run the normalizer; errors come back as messages."""
    try:
        if upload is not None:
            loaded = load_bytes(upload.getvalue(), upload.name, sheet_name)
        elif is_url(raw_url):
            loaded = load_grid(raw_url.strip(), sheet_name)
        else:
            return {"status": "error", "messages": ["URL must start with http:// or https://"]}
    except (ValueError, ImportError, FileNotFoundError, requests.RequestException) as exc:
        return {"status": "error", "messages": [str(exc)]}

    result = parse_recruitment_grid(loaded["grid"])
    payload = build_normalize_payload(
        result.to_dict(),
        input_path=loaded["source"],
        loader_warnings=loaded["warnings"],
        sheet_name=loaded["sheet_name"],
    )
    if not result.success:
        return {"status": "error", "messages": [result.error or "Parsing failed"], "payload": payload}

    stem = Path(loaded["source"].split("?", 1)[0]).stem or "recruitment"
    return {
        "status": "success",
        "name": loaded["source"],
        "messages": payload["run_summary"]["warnings"],
        "payload": payload,
        "frame": records_frame(result),
        "download_name": f"{stem}-normalized.json",
    }


def render_summary(summary: dict) -> None:
    top = st.columns(4)
    top[0].metric("Records", summary["totalRecords"])
    top[1].metric("Positions", summary["totalPositions"])
    top[2].metric("CVs", summary["totalCVs"])
    top[3].metric("Positions on hold", summary["positionsOnHold"])
    bottom = st.columns(4)
    bottom[0].metric("Recruiters", summary["uniqueRecruiters"])
    bottom[1].metric("Clients", summary["uniqueClients"])
    bottom[2].metric("Avg days to first CV", display_average(summary["averageDaysToFirstCV"]))
    bottom[3].metric("Avg CVs shared / record", display_average(summary["averageCVsSharedPerRecord"]))


def render_result(result: dict) -> None:
    if result["status"] == "error":
        for message in result["messages"]:
            st.error(message)
        return

    payload = result["payload"]
    st.subheader("Summary")
    st.caption(f"Source: {result['name']}" + (f"  •  Sheet: {payload['sheet_name']}" if payload.get("sheet_name") else ""))
    if result["messages"]:
        st.warning("\n".join(f"- {message}" for message in result["messages"]))
    render_summary(payload["summary"])

    st.subheader("Records")
    if result["frame"].empty:
        st.info("No recruitment rows were found under the header row.")
    else:
        st.dataframe(result["frame"], width="stretch", hide_index=True)

    with st.expander("Header mapping"):
        mapping = payload.get("headerMapping") or {}
        st.dataframe(
            pd.DataFrame({"field": list(mapping), "column": [index + 1 for index in mapping.values()]}),
            width="stretch",
            hide_index=True,
        )
    with st.expander("Raw JSON"):
        st.json(payload)

    st.download_button(
        "Download normalized JSON",
        data=json_dumps(payload).encode("utf-8"),
        file_name=result["download_name"],
        mime="application/json",
        width="stretch",
    )


def main() -> None:
    st.set_page_config(page_title="recruit-sheet", layout="wide", initial_sidebar_state="collapsed")
    ensure_state()

    st.title("recruit-sheet")
    st.caption("Upload a recruitment tracker or paste a public file URL to get normalized records and pipeline totals.")

    upload = st.file_uploader("Upload a spreadsheet", type=UPLOAD_TYPES, accept_multiple_files=False)
    raw_url = st.text_input(
        "Public file URL",
        key="public_url_input",
        placeholder="Direct links and public share links from GitHub, Dropbox, Google Drive and OneDrive work.",
    )
    st.caption(f"Public URL mode makes an outbound network request and rejects remote files above {MAX_REMOTE_FILE_MB} MB.")
    sheet_name = st.text_input("Sheet name (optional)", placeholder="Defaults to the first sheet") or None

    submit = st.button("Normalize", type="primary", width="stretch", disabled=upload is None and not raw_url.strip())
    if submit:
        with st.spinner("Reading spreadsheet..."):
            st.session_state["result"] = process_source(upload, raw_url, sheet_name)

    if st.session_state["result"] is None:
        st.info(f"Supported here: {' '.join(sorted(ALL_FORMATS))} (uploads: {', '.join(UPLOAD_TYPES)})")
        return
    render_result(st.session_state["result"])


if __name__ == "__main__":
    main()
