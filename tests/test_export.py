"""CSV and PDF reports of win records and submissions"""

import csv
import io
from datetime import datetime

from tip_raffle.export import (
    export_submissions_csv,
    export_wins_csv,
    export_wins_pdf,
    report_field_ids,
    win_rows,
)
from tip_raffle.models import PageConfig, Submission, WinRecord


def make_win(win_id, drawn_at, **data):
    return WinRecord(id=win_id, submission_id=f"s-{win_id}", submission_data=data, drawn_at=drawn_at)


def parse_csv(text):
    return list(csv.reader(io.StringIO(text)))


def test_wins_export_for_one_day(service, store):
    wins = [
        make_win("w1", datetime(2024, 3, 15, 9, 5, 7), accountId="A1", fullName="Ana", email="ana@x.com"),
        make_win("w2", datetime(2024, 3, 15, 18, 0, 0), fullName="Bruno", email="b@x.com", accountId="B2"),
        make_win("w3", datetime(2024, 3, 16, 8, 0, 0), fullName="Carla", email="c@x.com", accountId="C3"),
    ]
    for win in wins:
        store.insert_win(win)
        service.win_cache.apply("insert", win)

    rows = parse_csv(service.export_wins("2024-03-15", "csv"))

    assert rows == [
        ["#", "Data do sorteio", "fullName", "email", "accountId"],
        ["1", "15/03/2024 09:05:07", "Ana", "ana@x.com", "A1"],
        ["2", "15/03/2024 18:00:00", "Bruno", "b@x.com", "B2"],
    ]


def test_csv_quotes_commas_and_quotes():
    config = PageConfig()
    win = make_win("w1", datetime(2024, 3, 15, 9, 0), fullName='Silva, "Ana"', email="a@x.com",
                   accountId="A1")

    text = export_wins_csv([win], config)

    assert '"Silva, ""Ana"""' in text
    assert parse_csv(text)[1][2] == 'Silva, "Ana"'


def test_extra_fields_follow_configured_ones():
    config = PageConfig()
    records = [{"accountId": "1", "legacy": "x"}, {"phone": "9", "legacy": "y"}]
    assert report_field_ids(config, records) == ["fullName", "email", "accountId", "legacy", "phone"]


def test_tip_column_when_requested():
    win = make_win("w1", datetime(2024, 3, 15, 9, 0), fullName="Ana")
    win.tip_value = "R$ 25,00"

    rows = win_rows([win], PageConfig(), include_tip=True)

    assert rows[0][-1] == "tipValue"
    assert rows[1][-1] == "R$ 25,00"
    assert rows[1][3] == ""


def test_submissions_export():
    submissions = [
        Submission(id="s1", data={"fullName": "Ana", "email": "a@x.com", "accountId": "1"},
                   created_at=datetime(2024, 3, 1, 10, 0)),
    ]

    rows = parse_csv(export_submissions_csv(submissions, PageConfig()))

    assert rows[0] == ["#", "Data de cadastro", "fullName", "email", "accountId"]
    assert rows[1] == ["1", "01/03/2024 10:00:00", "Ana", "a@x.com", "1"]


def test_pdf_export_renders_many_rows():
    wins = [
        make_win(f"w{n}", datetime(2024, 3, 15, 9, n % 60), fullName=f"Participante Ação {n}" * 3,
                 email=f"p{n}@x.com", accountId=str(n))
        for n in range(80)
    ]

    pdf = export_wins_pdf(wins, PageConfig(), title="Sorteados 15/03/2024")

    assert isinstance(pdf, bytes)
    assert pdf.startswith(b"%PDF")


def test_empty_exports():
    assert parse_csv(export_wins_csv([], PageConfig())) == [
        ["#", "Data do sorteio", "fullName", "email", "accountId"],
    ]
    assert export_wins_pdf([], PageConfig()).startswith(b"%PDF")
