"""
Raffle Reports
CSV and PDF exports of win records and submissions
"""

import csv
import io
import logging
from typing import Iterable, List, Sequence

from fpdf import FPDF

from .config import EXPORT_DATETIME_FORMAT
from .models import PageConfig, Submission, WinRecord

logger = logging.getLogger(__name__)

WIN_TIMESTAMP_HEADER = "Data do sorteio"
SUBMISSION_TIMESTAMP_HEADER = "Data de cadastro"
TIP_HEADER = "tipValue"


def report_field_ids(config: PageConfig, records: Iterable[dict]) -> List[str]:
    """Configured field ids in order, then any extra keys found in the records"""
    ids = list(config.field_ids)
    for data in records:
        for key in data:
            if key not in ids:
                ids.append(key)
    return ids


def win_rows(wins: Sequence[WinRecord], config: PageConfig, include_tip: bool = False) -> List[List[str]]:
    """Header row then one row per win record"""
    field_ids = report_field_ids(config, (w.submission_data for w in wins))
    header = ["#", WIN_TIMESTAMP_HEADER] + field_ids
    if include_tip:
        header.append(TIP_HEADER)

    rows = [header]
    for index, win in enumerate(wins, start=1):
        row = [str(index), win.drawn_at.strftime(EXPORT_DATETIME_FORMAT)]
        row += [win.submission_data.get(f, "") for f in field_ids]
        if include_tip:
            row.append(win.tip_value or "")
        rows.append(row)
    return rows


def submission_rows(submissions: Sequence[Submission], config: PageConfig) -> List[List[str]]:
    field_ids = report_field_ids(config, (s.data for s in submissions))
    rows = [["#", SUBMISSION_TIMESTAMP_HEADER] + field_ids]
    for index, submission in enumerate(submissions, start=1):
        row = [str(index), submission.created_at.strftime(EXPORT_DATETIME_FORMAT)]
        row += [submission.data.get(f, "") for f in field_ids]
        rows.append(row)
    return rows


def rows_to_csv(rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def _latin1(value: str) -> str:
    # Core PDF fonts only cover Latin-1
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _fit(pdf: FPDF, value: str, width: float) -> str:
    value = _latin1(value)
    if pdf.get_string_width(value) <= width - 2:
        return value
    while value and pdf.get_string_width(value + "...") > width - 2:
        value = value[:-1]
    return value + "..."


def rows_to_pdf(rows: List[List[str]], title: str) -> bytes:
    """Render a header-first table as a landscape A4 PDF"""
    pdf = FPDF(orientation="L", unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=12)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 10, _latin1(title))
    pdf.ln(12)

    header, body = rows[0], rows[1:]
    index_width = 12
    other_width = (pdf.epw - index_width) / max(len(header) - 1, 1)
    widths = [index_width] + [other_width] * (len(header) - 1)

    def draw_header():
        pdf.set_font("Helvetica", "B", 8)
        for value, width in zip(header, widths):
            pdf.cell(width, 7, _fit(pdf, value, width), border=1)
        pdf.ln(7)
        pdf.set_font("Helvetica", "", 8)

    draw_header()
    for row in body:
        if pdf.will_page_break(6):
            pdf.add_page()
            draw_header()
        for value, width in zip(row, widths):
            pdf.cell(width, 6, _fit(pdf, value, width), border=1)
        pdf.ln(6)

    return bytes(pdf.output())


def export_wins_csv(wins: Sequence[WinRecord], config: PageConfig, include_tip: bool = False) -> str:
    logger.info(f"📄 Exporting {len(wins)} win records to CSV")
    return rows_to_csv(win_rows(wins, config, include_tip))


def export_wins_pdf(wins: Sequence[WinRecord], config: PageConfig, title="Sorteados",
                    include_tip: bool = False) -> bytes:
    logger.info(f"📄 Exporting {len(wins)} win records to PDF")
    return rows_to_pdf(win_rows(wins, config, include_tip), title)


def export_submissions_csv(submissions: Sequence[Submission], config: PageConfig) -> str:
    logger.info(f"📄 Exporting {len(submissions)} submissions to CSV")
    return rows_to_csv(submission_rows(submissions, config))


def export_submissions_pdf(submissions: Sequence[Submission], config: PageConfig,
                           title="Cadastros") -> bytes:
    logger.info(f"📄 Exporting {len(submissions)} submissions to PDF")
    return rows_to_pdf(submission_rows(submissions, config), title)
