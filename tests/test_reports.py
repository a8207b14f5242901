from __future__ import annotations

import csv
import io
from datetime import datetime, timedelta, timezone

import pytest

from models.qr_scan import QRScan
from models.qrcode import QRCode
from utils import report_service
from utils.report_service import build_trends, parse_range, truncate, type_color

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value, days", [("7d", 7), ("30d", 30), ("90d", 90), ("1y", 365), ("bogus", 365), (None, 30)])
def test_parse_range(value, days):
    assert parse_range(value)[1] == days


def test_type_colors():
    assert type_color("URL") == "#3b82f6"
    assert type_color("VIDEO") == "#8b5cf6"
    assert type_color("TEXT") == "#10b981"
    assert type_color("IMAGE") == "#f59e0b"
    assert type_color("OTHER") == "#6b7280"


def test_truncate():
    assert truncate("Short", 15) == "Short"
    assert truncate("A very long author name", 15) == "A very long aut..."


def test_trends_cover_every_day():
    start = NOW - timedelta(days=7)
    trends = build_trends([NOW, NOW - timedelta(hours=1), NOW - timedelta(days=2)], start, NOW)
    assert len(trends) == 8
    assert trends[0]["date"] == "Mar 08"
    assert trends[-1] == {"date": "Mar 15", "scans": 2}
    assert trends[-3]["scans"] == 1
    assert sum(t["scans"] for t in trends) == 3


@pytest.fixture
def scanned(db, author, make_author, make_qr):
    """Zwei Autoren mit Scans zu festen Zeitpunkten."""
    qr = make_qr(author, title="A Rather Long Book Title Indeed", name="Site")
    video = QRCode(name="Clip", type="VIDEO", content="https://v.example", book_id=qr.book_id)
    db.add(video)

    other = make_author(email="bob@test.com", name="Bob")
    theirs = make_qr(other, title="Bob's Book", name="Page", qr_type="TEXT", content="hi")

    db.add_all([
        QRScan(qr_code_id=qr.id, ip_address="1.1.1.1", user_agent="UA", scanned_at=NOW - timedelta(days=1)),
        QRScan(qr_code_id=qr.id, ip_address="1.1.1.2", scanned_at=NOW - timedelta(days=1, hours=2)),
        QRScan(qr_code_id=qr.id, scanned_at=NOW - timedelta(days=60)),
        QRScan(qr_code_id=theirs.id, scanned_at=NOW - timedelta(days=3)),
    ])
    db.commit()
    return {"qr": qr, "video": video, "other": theirs}


def test_admin_report(db, scanned):
    report = report_service.admin_report(db, "30d", now=NOW)

    assert report["overview"] == {
        "totalScans": 4,
        "totalBooks": 2,
        "totalQrCodes": 3,
        "totalAuthors": 2,
        "scansThisMonth": 3,
    }
    assert len(report["scanTrends"]) == 31
    assert sum(t["scans"] for t in report["scanTrends"]) == 3

    first = report["authorPerformance"][0]
    assert first == {"name": "Test Author", "books": 1, "qrCodes": 2, "scans": 2}
    assert report["topBooks"][0] == {"title": "A Rather Long Book Title Indeed", "author": "Test Author", "scans": 2}
    assert {t["name"]: t["value"] for t in report["qrCodeTypes"]} == {"URL": 1, "VIDEO": 1, "TEXT": 1}


def test_admin_report_author_filter(db, scanned):
    report = report_service.admin_report(db, "90d", author_filter="BOB", now=NOW)
    assert report["overview"]["totalScans"] == 1
    assert report["overview"]["totalBooks"] == 1
    assert [a["name"] for a in report["authorPerformance"]] == ["Bob"]
    assert [t["name"] for t in report["qrCodeTypes"]] == ["TEXT"]


def test_author_report(db, author, scanned):
    report = report_service.author_report(db, author.id, "7d", now=NOW)
    assert report["overview"]["totalScans"] == 3
    assert report["overview"]["scansThisMonth"] == 2
    assert report["bookPerformance"] == [{"name": "A Rather Long Book T...", "scans": 2, "qrCodes": 2}]
    assert report["recentActivity"] == [
        {"date": "Mar 14", "book": "A Rather Long Book Title Indeed", "qrCode": "Site", "scans": 2},
    ]


def test_admin_dashboard(admin_client, db, scanned):
    dash = admin_client.get("/api/admin/dashboard").json()
    assert dash["totalAuthors"] == 2
    assert dash["totalScans"] == 4
    assert len(dash["recentActivity"]) == 4
    assert dash["recentActivity"][0]["message"] == (
        'QR code "Site" from book "A Rather Long Book Title Indeed" by Test Author was scanned'
    )


def test_author_dashboard(db, author, scanned):
    dash = report_service.author_dashboard(db, author.id)
    assert dash["totalBooks"] == 1
    assert dash["totalQrCodes"] == 2
    assert dash["totalScans"] == 3
    assert dash["recentScans"][0]["qrCode"]["book"]["title"] == "A Rather Long Book Title Indeed"


def test_admin_csv_export(db, scanned):
    content = report_service.admin_export_csv(db, "30d", now=NOW)
    rows = list(csv.reader(io.StringIO(content)))
    assert rows[0] == [
        "Date", "Time", "Author", "Book Title", "QR Code Name", "QR Code Type",
        "User Agent", "IP Address", "Country", "City",
    ]
    assert len(rows) == 4
    assert rows[1][:3] == ["2024-03-14", "12:00:00", "Test Author"]
    assert rows[1][6:] == ["UA", "1.1.1.1", "Unknown", "Unknown"]
    assert content.splitlines()[1].startswith('"2024-03-14","12:00:00"')


def test_author_csv_export_over_api(author_client, db, author, make_qr):
    qr = make_qr(author, title="Mine")
    author_client.get(f"/api/qr/{qr.id}")

    res = author_client.get("/api/author/reports/export?range=7d")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    disposition = res.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="author-report-7d-')
    rows = list(csv.reader(io.StringIO(res.text)))
    assert rows[0][2] == "Book Title"
    assert rows[1][2] == "Mine"


def test_reports_over_api(admin_client):
    res = admin_client.get("/api/admin/reports?range=7d")
    assert res.status_code == 200
    assert set(res.json()) == {"overview", "scanTrends", "authorPerformance", "qrCodeTypes", "topBooks"}
    assert admin_client.get("/api/admin/reports/export").headers["content-disposition"].startswith(
        'attachment; filename="admin-report-30d-'
    )
