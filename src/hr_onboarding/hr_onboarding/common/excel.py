from __future__ import annotations

import io
from typing import Sequence

import pandas as pd

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def rows_to_xlsx(rows: Sequence[dict], *, columns: Sequence[str], sheet_name: str) -> io.BytesIO:
    """Write dict rows to an in-memory Excel workbook (nothing touches the disk)."""

    df = pd.DataFrame(list(rows), columns=list(columns))
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    output.seek(0)
    return output
