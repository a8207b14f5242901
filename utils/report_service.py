# =============================================================================
# 📈 utils/report_service.py
# -----------------------------------------------------------------------------
# Dashboards, Berichte und CSV-Export für Admin und Autor.
#
# Zeitraum (?range=):
#   7d → 7 Tage · 30d → 30 Tage · 90d → 90 Tage · alles andere → 365 Tage
#   Standard: 30d
#
# Alle Zeitstempel werden in UTC ausgewertet. Der Trend enthält jeden Tag
# des Fensters, auch Tage ohne Scans.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import csv
import io
import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from models.author import Author
from models.base import as_utc, utc_now
from models.book import Book
from models.qr_scan import QRScan
from models.qrcode import QRCode
from utils.qr_service import serialize_scan

logger = logging.getLogger("qrcoder.reports")

DEFAULT_RANGE = "30d"
RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}
FALLBACK_DAYS = 365
MONTH_DAYS = 30

TYPE_COLORS = {
    "URL": "#3b82f6",
    "VIDEO": "#8b5cf6",
    "TEXT": "#10b981",
    "IMAGE": "#f59e0b",
}
DEFAULT_COLOR = "#6b7280"

AUTHOR_NAME_LIMIT = 15
BOOK_TITLE_LIMIT = 20
TOP_LIMIT = 10
ADMIN_ACTIVITY_LIMIT = 5
AUTHOR_RECENT_LIMIT = 10

TREND_LABEL = "%b %d"

CSV_COLUMNS = [
    "Date",
    "Time",
    "Book Title",
    "QR Code Name",
    "QR Code Type",
    "User Agent",
    "IP Address",
    "Country",
    "City",
]


# -------------------------------------------------------------------------
# 🧮 Hilfsfunktionen
# -------------------------------------------------------------------------
def parse_range(value: Optional[str]) -> Tuple[str, int]:
    label = value or DEFAULT_RANGE
    return label, RANGE_DAYS.get(label, FALLBACK_DAYS)


def report_window(days: int, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    end = as_utc(now) if now else utc_now()
    return end - timedelta(days=days), end


def type_color(qr_type: Optional[str]) -> str:
    return TYPE_COLORS.get(qr_type or "", DEFAULT_COLOR)


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def build_trends(timestamps: Iterable[datetime], start: datetime, end: datetime) -> List[Dict[str, Any]]:
    per_day: Dict[Any, int] = {}
    for ts in timestamps:
        day = as_utc(ts).date()
        per_day[day] = per_day.get(day, 0) + 1

    trends = []
    day = start.date()
    while day <= end.date():
        trends.append({"date": day.strftime(TREND_LABEL), "scans": per_day.get(day, 0)})
        day += timedelta(days=1)
    return trends


def _scan_query(db: Session, *columns) -> Query:
    query = db.query(*columns).select_from(QRScan) if columns else db.query(QRScan)
    return query.join(QRCode, QRScan.qr_code_id == QRCode.id).join(Book, QRCode.book_id == Book.id)


def _author_name_filter(query: Query, author_filter: Optional[str]) -> Query:
    if not author_filter:
        return query
    return query.join(Author, Book.author_id == Author.id).filter(
        func.lower(Author.name).contains(author_filter.lower())
    )


def _in_window(query: Query, start: datetime, end: datetime) -> Query:
    return query.filter(QRScan.scanned_at >= start, QRScan.scanned_at <= end)


def _type_distribution(query: Query) -> List[Dict[str, Any]]:
    return [
        {"name": qr_type, "value": n, "color": type_color(qr_type)}
        for qr_type, n in query.group_by(QRCode.type).order_by(QRCode.type).all()
    ]


def _book_scans_in_window(db: Session, book_ids: List[str], start: datetime, end: datetime) -> Dict[str, int]:
    if not book_ids:
        return {}
    rows = (
        _in_window(_scan_query(db, Book.id, func.count(QRScan.id)), start, end)
        .filter(Book.id.in_(book_ids))
        .group_by(Book.id)
        .all()
    )
    return {book_id: n for book_id, n in rows}


def _qr_counts_per_book(db: Session, book_ids: List[str]) -> Dict[str, int]:
    if not book_ids:
        return {}
    rows = (
        db.query(QRCode.book_id, func.count(QRCode.id))
        .filter(QRCode.book_id.in_(book_ids))
        .group_by(QRCode.book_id)
        .all()
    )
    return {book_id: n for book_id, n in rows}


# -------------------------------------------------------------------------
# 🏠 Dashboards
# -------------------------------------------------------------------------
def admin_dashboard(db: Session) -> Dict[str, Any]:
    recent = (
        db.query(QRScan)
        .options(joinedload(QRScan.qr_code).joinedload(QRCode.book).joinedload(Book.author))
        .order_by(QRScan.scanned_at.desc())
        .limit(ADMIN_ACTIVITY_LIMIT)
        .all()
    )
    activity = [
        {
            "id": scan.id,
            "type": "scan",
            "message": (
                f'QR code "{scan.qr_code.name}" from book "{scan.qr_code.book.title}" '
                f"by {scan.qr_code.book.author.name} was scanned"
            ),
            "timestamp": as_utc(scan.scanned_at).date().isoformat(),
        }
        for scan in recent
    ]
    return {
        "totalAuthors": db.query(func.count(Author.id)).scalar() or 0,
        "totalBooks": db.query(func.count(Book.id)).scalar() or 0,
        "totalQrCodes": db.query(func.count(QRCode.id)).scalar() or 0,
        "totalScans": db.query(func.count(QRScan.id)).scalar() or 0,
        "recentActivity": activity,
    }


def author_dashboard(db: Session, author_id: str) -> Dict[str, Any]:
    recent = (
        _scan_query(db)
        .options(joinedload(QRScan.qr_code).joinedload(QRCode.book))
        .filter(Book.author_id == author_id)
        .order_by(QRScan.scanned_at.desc())
        .limit(AUTHOR_RECENT_LIMIT)
        .all()
    )
    recent_scans = []
    for scan in recent:
        item = serialize_scan(scan)
        item["qrCode"] = {
            "id": scan.qr_code.id,
            "name": scan.qr_code.name,
            "type": scan.qr_code.type,
            "book": {"id": scan.qr_code.book.id, "title": scan.qr_code.book.title},
        }
        recent_scans.append(item)

    return {
        "totalBooks": db.query(func.count(Book.id)).filter(Book.author_id == author_id).scalar() or 0,
        "totalQrCodes": (
            db.query(func.count(QRCode.id))
            .join(Book, QRCode.book_id == Book.id)
            .filter(Book.author_id == author_id)
            .scalar()
            or 0
        ),
        "totalScans": _scan_query(db, func.count(QRScan.id)).filter(Book.author_id == author_id).scalar() or 0,
        "recentScans": recent_scans,
    }


# -------------------------------------------------------------------------
# 📊 Berichte
# -------------------------------------------------------------------------
def admin_report(
    db: Session,
    range_value: Optional[str] = None,
    author_filter: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Plattformweiter Bericht. ``author_filter`` ist ein Teilstring des
    Autorennamens (ohne Beachtung der Groß-/Kleinschreibung).
    """
    _, days = parse_range(range_value)
    start, end = report_window(days, now)
    month_start, _ = report_window(MONTH_DAYS, end)

    books_q = _author_name_filter(db.query(func.count(Book.id)), author_filter)
    qr_q = _author_name_filter(
        db.query(func.count(QRCode.id)).join(Book, QRCode.book_id == Book.id), author_filter
    )
    scans_q = _author_name_filter(_scan_query(db, func.count(QRScan.id)), author_filter)

    overview = {
        "totalScans": scans_q.scalar() or 0,
        "totalBooks": books_q.scalar() or 0,
        "totalQrCodes": qr_q.scalar() or 0,
        "totalAuthors": db.query(func.count(Author.id)).filter(Author.is_active.is_(True)).scalar() or 0,
        "scansThisMonth": _in_window(scans_q, month_start, end).scalar() or 0,
    }

    stamps = _in_window(_author_name_filter(_scan_query(db, QRScan.scanned_at), author_filter), start, end)
    scan_trends = build_trends((ts for (ts,) in stamps.all()), start, end)

    # Autoren-Performance
    authors_q = db.query(Author)
    if author_filter:
        authors_q = authors_q.filter(func.lower(Author.name).contains(author_filter.lower()))
    authors = authors_q.all()
    books = db.query(Book.id, Book.author_id, Book.title).filter(
        Book.author_id.in_([a.id for a in authors])
    ).all() if authors else []
    book_ids = [b.id for b in books]
    book_scans = _book_scans_in_window(db, book_ids, start, end)
    book_qrs = _qr_counts_per_book(db, book_ids)

    performance = []
    for author in authors:
        own = [b for b in books if b.author_id == author.id]
        performance.append({
            "name": truncate(author.name, AUTHOR_NAME_LIMIT),
            "books": len(own),
            "qrCodes": sum(book_qrs.get(b.id, 0) for b in own),
            "scans": sum(book_scans.get(b.id, 0) for b in own),
        })
    performance.sort(key=lambda row: row["scans"], reverse=True)

    # Top-Bücher
    names = {a.id: a.name for a in authors}
    top_books = sorted(
        (
            {"title": b.title, "author": names.get(b.author_id, ""), "scans": book_scans.get(b.id, 0)}
            for b in books
        ),
        key=lambda row: row["scans"],
        reverse=True,
    )[:TOP_LIMIT]

    types_q = _author_name_filter(
        db.query(QRCode.type, func.count(QRCode.id)).join(Book, QRCode.book_id == Book.id), author_filter
    )

    return {
        "overview": overview,
        "scanTrends": scan_trends,
        "authorPerformance": performance[:TOP_LIMIT],
        "qrCodeTypes": _type_distribution(types_q),
        "topBooks": top_books,
    }


def _group_activity(scans: Iterable[QRScan]) -> List[Dict[str, Any]]:
    grouped: "OrderedDict[Tuple[str, str, str], Dict[str, Any]]" = OrderedDict()
    for scan in scans:
        date = as_utc(scan.scanned_at).strftime(TREND_LABEL)
        key = (scan.qr_code.book.title, scan.qr_code.name, date)
        if key in grouped:
            grouped[key]["scans"] += 1
        else:
            grouped[key] = {"date": date, "book": key[0], "qrCode": key[1], "scans": 1}
    return list(grouped.values())[:TOP_LIMIT]


def author_report(
    db: Session,
    author_id: str,
    range_value: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    _, days = parse_range(range_value)
    start, end = report_window(days, now)
    month_start, _ = report_window(MONTH_DAYS, end)

    scans_q = _scan_query(db, func.count(QRScan.id)).filter(Book.author_id == author_id)
    overview = {
        "totalScans": scans_q.scalar() or 0,
        "totalBooks": db.query(func.count(Book.id)).filter(Book.author_id == author_id).scalar() or 0,
        "totalQrCodes": (
            db.query(func.count(QRCode.id))
            .join(Book, QRCode.book_id == Book.id)
            .filter(Book.author_id == author_id)
            .scalar()
            or 0
        ),
        "scansThisMonth": _in_window(scans_q, month_start, end).scalar() or 0,
    }

    stamps = _in_window(_scan_query(db, QRScan.scanned_at).filter(Book.author_id == author_id), start, end)
    scan_trends = build_trends((ts for (ts,) in stamps.all()), start, end)

    books = db.query(Book.id, Book.title).filter(Book.author_id == author_id).order_by(Book.created_at).all()
    book_ids = [b.id for b in books]
    book_scans = _book_scans_in_window(db, book_ids, start, end)
    book_qrs = _qr_counts_per_book(db, book_ids)
    book_performance = [
        {
            "name": truncate(b.title, BOOK_TITLE_LIMIT),
            "scans": book_scans.get(b.id, 0),
            "qrCodes": book_qrs.get(b.id, 0),
        }
        for b in books
    ]

    types_q = (
        db.query(QRCode.type, func.count(QRCode.id))
        .join(Book, QRCode.book_id == Book.id)
        .filter(Book.author_id == author_id)
    )

    recent = (
        _in_window(_scan_query(db), start, end)
        .options(joinedload(QRScan.qr_code).joinedload(QRCode.book))
        .filter(Book.author_id == author_id)
        .order_by(QRScan.scanned_at.desc())
        .limit(AUTHOR_RECENT_LIMIT)
        .all()
    )

    return {
        "overview": overview,
        "scanTrends": scan_trends,
        "bookPerformance": book_performance,
        "qrCodeTypes": _type_distribution(types_q),
        "recentActivity": _group_activity(recent),
    }


# -------------------------------------------------------------------------
# 📤 CSV-Export
# -------------------------------------------------------------------------
def export_filename(role: str, range_value: Optional[str], now: Optional[datetime] = None) -> str:
    label, _ = parse_range(range_value)
    today = (as_utc(now) if now else utc_now()).strftime("%Y-%m-%d")
    return f"{role}-report-{label}-{today}.csv"


def render_csv(header: List[str], rows: Iterable[List[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def _export_row(scan: QRScan, with_author: bool) -> List[str]:
    ts = as_utc(scan.scanned_at)
    book = scan.qr_code.book
    row = [ts.strftime("%Y-%m-%d"), ts.strftime("%H:%M:%S")]
    if with_author:
        row.append(book.author.name)
    row += [
        book.title,
        scan.qr_code.name,
        scan.qr_code.type,
        scan.user_agent or "",
        scan.ip_address or "",
        scan.country or "",
        scan.city or "",
    ]
    return row


def admin_export_csv(
    db: Session,
    range_value: Optional[str] = None,
    author_filter: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    _, days = parse_range(range_value)
    start, end = report_window(days, now)
    scans = (
        _in_window(_author_name_filter(_scan_query(db), author_filter), start, end)
        .options(joinedload(QRScan.qr_code).joinedload(QRCode.book).joinedload(Book.author))
        .order_by(QRScan.scanned_at.desc())
        .all()
    )
    logger.info("📤 Admin-Export: %d Scans (%s)", len(scans), range_value or DEFAULT_RANGE)
    header = CSV_COLUMNS[:2] + ["Author"] + CSV_COLUMNS[2:]
    return render_csv(header, (_export_row(s, with_author=True) for s in scans))


def author_export_csv(
    db: Session,
    author_id: str,
    range_value: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    _, days = parse_range(range_value)
    start, end = report_window(days, now)
    scans = (
        _in_window(_scan_query(db), start, end)
        .options(joinedload(QRScan.qr_code).joinedload(QRCode.book))
        .filter(Book.author_id == author_id)
        .order_by(QRScan.scanned_at.desc())
        .all()
    )
    return render_csv(CSV_COLUMNS, (_export_row(s, with_author=False) for s in scans))
