#!/usr/bin/env python3
"""
Generates sample-data/pipeline_sample.xlsx, a recruitment tracker shaped the
way hand-maintained workbooks usually are.

Run from the repo root:
    python sample-data/generate_xlsx.py

What is baked in:
  Sheet "Pipeline"
    - Header labels that only resolve through partial or compound matching
    - Native Excel dates and a numeric date serial in "Logged Date"
    - Several shared-CV dates in one text cell, plus separate first/last CV columns
    - A fully blank row and "N/A" / "-" placeholder cells
    - A row with no CV count that falls back to the shared-date count
  Sheet "Archive"
    - A second, older tracker; ignored unless selected with --sheet
"""

from datetime import datetime
from pathlib import Path

import openpyxl

OUTPUT = Path(__file__).parent / "pipeline_sample.xlsx"

wb = openpyxl.Workbook()

# ── Sheet 1: Pipeline ────────────────────────────────────────────────────────
ws = wb.active
ws.title = "Pipeline"

ws.append([
    "Recruiter", "BDM", "Client Name", "Position", "Positions Count", "Logged Date",
    "Number of CVs", "Position On Hold", "Days", "Remarks", "CVs Shared Date",
    "First CV", "Last CV",
])

data = [
    ["Asha",  "Ravi",  "Acme Corp", "Data Engineer", 2,     datetime(2025, 3, 1), None, None,                  12,    "Two panels", "11-Mar-2025, 18-Mar-2025", None, None],
    ["Bilal", "Ravi",  "Globex",    "QA Lead",       1,     45722,                4,    None,                  7,     None,         None,                       datetime(2025, 3, 8), datetime(2025, 3, 15)],
    [None,    None,    None,        None,            None,  None,                 None, None,                  None,  None,         None,                       None, None],
    ["Asha",  "Meera", "Initech",   "Scrum Master",  "N/A", datetime(2025, 3, 10), None, datetime(2025, 3, 20), "-",  "Paused",     "2025-03-12 / 14.03.25",    None, None],
]
for row in data:
    ws.append(row)

for cell in ws["F"][1:] + ws["H"][1:] + ws["L"][1:] + ws["M"][1:]:
    if isinstance(cell.value, datetime):
        cell.number_format = "dd-mmm-yyyy"

# ── Sheet 2: Archive ─────────────────────────────────────────────────────────
ws_archive = wb.create_sheet("Archive")
ws_archive.append(["Recruiter", "Client", "Role", "No of Position", "CVs"])
ws_archive.append(["Dana", "Umbrella", "Analyst", 1, 3])

wb.save(OUTPUT)
print(f"Created: {OUTPUT}")
