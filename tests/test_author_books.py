from __future__ import annotations

from conftest import signin
from models.book import Book
from models.qr_scan import QRScan


def test_create_and_list_books(author_client, author):
    res = author_client.post("/api/author/books", json={"title": "  My Book ", "isbn": "123", "description": ""})
    assert res.status_code == 201
    book = res.json()
    assert book["title"] == "My Book"
    assert book["description"] is None
    assert book["authorId"] == author.id
    assert book["_count"] == {"qrCodes": 0, "scans": 0}

    listing = author_client.get("/api/author/books").json()
    assert [b["id"] for b in listing] == [book["id"]]


def test_title_is_required(author_client):
    res = author_client.post("/api/author/books", json={"title": "   "})
    assert res.status_code == 400
    assert res.json() == {"error": "Title is required"}


def test_book_counts_include_scans(author_client, author, make_qr, client):
    qr = make_qr(author, title="Counted")
    client.get(f"/api/qr/{qr.id}")
    client.get(f"/api/qr/{qr.id}")

    book = author_client.get(f"/api/author/books/{qr.book_id}").json()
    assert book["_count"] == {"qrCodes": 1, "scans": 2}
    assert book["qrCodes"][0]["_count"] == {"scans": 2}


def test_update_and_delete_book(author_client, db, author, make_qr):
    qr = make_qr(author, title="Old")
    author_client.get(f"/api/qr/{qr.id}")

    res = author_client.put(f"/api/author/books/{qr.book_id}", json={"title": "New", "isbn": "978"})
    assert res.status_code == 200
    assert res.json()["title"] == "New"
    assert res.json()["isbn"] == "978"

    assert author_client.delete(f"/api/author/books/{qr.book_id}").status_code == 200
    assert author_client.get(f"/api/author/books/{qr.book_id}").status_code == 404
    assert db.query(QRScan).count() == 0


def test_foreign_books_are_not_found(other_client, author_client, db, make_author, make_qr):
    stranger = make_author(email="other@test.com", password="other-pass", name="Other")
    foreign = make_qr(stranger, title="Theirs")
    signin(other_client, "other@test.com", "other-pass")

    assert author_client.get(f"/api/author/books/{foreign.book_id}").status_code == 404
    assert author_client.put(f"/api/author/books/{foreign.book_id}", json={"title": "Mine"}).status_code == 404
    assert author_client.delete(f"/api/author/books/{foreign.book_id}").status_code == 404
    assert author_client.get("/api/author/books").json() == []

    db.expire_all()
    assert db.get(Book, foreign.book_id).title == "Theirs"
    assert other_client.get(f"/api/author/books/{foreign.book_id}").status_code == 200
