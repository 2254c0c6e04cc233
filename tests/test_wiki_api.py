from __future__ import annotations

import pytest

from .helpers import create_page


def test_create_then_get_round_trips(auth_client) -> None:
    content = "# Setup\n\n- install\n- run\n"
    page_id = create_page(auth_client, "  Setup  ", content)

    resp = auth_client.get(f"/api/wiki/{page_id}")
    assert resp.status_code == 200
    page = resp.get_json()["page"]
    assert page["id"] == page_id
    assert page["title"] == "Setup"
    assert page["content"] == content


def test_content_defaults_to_empty(auth_client) -> None:
    resp = auth_client.post("/api/wiki", json={"title": "Empty"})
    page_id = resp.get_json()["id"]
    assert auth_client.get(f"/api/wiki/{page_id}").get_json()["page"]["content"] == ""


def test_patch_content_only_keeps_title(auth_client) -> None:
    page_id = create_page(auth_client, "Recipes", "old")

    resp = auth_client.patch(f"/api/wiki/{page_id}", json={"content": "new"})
    assert resp.get_json() == {"ok": True}

    page = auth_client.get(f"/api/wiki/{page_id}").get_json()["page"]
    assert page["title"] == "Recipes"
    assert page["content"] == "new"


@pytest.mark.parametrize("title", ["", "  ", None])
def test_blank_title_rejected_on_create(auth_client, title) -> None:
    resp = auth_client.post("/api/wiki", json={"title": title, "content": "x"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "title_required"}


def test_blank_title_rejected_on_update(auth_client) -> None:
    page_id = create_page(auth_client, "Keep")
    resp = auth_client.patch(f"/api/wiki/{page_id}", json={"title": "   ", "content": "lost"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "title_required"}

    page = auth_client.get(f"/api/wiki/{page_id}").get_json()["page"]
    assert page["title"] == "Keep"
    assert page["content"] == ""


def test_non_string_content_rejected(auth_client) -> None:
    resp = auth_client.post("/api/wiki", json={"title": "x", "content": 12})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "content_required"}


def test_list_is_newest_update_first_without_content(auth_client) -> None:
    first = create_page(auth_client, "First", "a")
    second = create_page(auth_client, "Second", "b")
    auth_client.patch(f"/api/wiki/{first}", json={"content": "touched"})

    pages = auth_client.get("/api/wiki").get_json()["pages"]
    assert [p["id"] for p in pages] == [first, second]
    assert all("content" not in p for p in pages)
    assert set(pages[0]) == {"id", "title", "created_at", "updated_at"}


def test_missing_page_is_404(auth_client) -> None:
    assert auth_client.get("/api/wiki/404").status_code == 404
    assert auth_client.patch("/api/wiki/404", json={"content": "x"}).status_code == 404
    resp = auth_client.delete("/api/wiki/404")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "not_found"}


def test_delete_page(auth_client) -> None:
    page_id = create_page(auth_client, "Temp")
    assert auth_client.delete(f"/api/wiki/{page_id}").get_json() == {"ok": True}
    assert auth_client.get(f"/api/wiki/{page_id}").status_code == 404
    assert auth_client.get("/api/wiki").get_json()["pages"] == []


def test_preview_renders_markdown(auth_client) -> None:
    resp = auth_client.post("/api/wiki/preview", json={"content": "# Hi\n**bold**"})
    assert resp.status_code == 200
    assert resp.get_json()["html"] == "<h1>Hi</h1>\n<p><strong>bold</strong></p>"


def test_null_fields_in_patch_are_left_alone(auth_client) -> None:
    page_id = create_page(auth_client, "Draft", "body")
    resp = auth_client.patch(f"/api/wiki/{page_id}", json={"title": "Final", "content": None})
    assert resp.get_json() == {"ok": True}

    page = auth_client.get(f"/api/wiki/{page_id}").get_json()["page"]
    assert page["title"] == "Final"
    assert page["content"] == "body"

    auth_client.patch(f"/api/wiki/{page_id}", json={"title": None, "content": "new"})
    page = auth_client.get(f"/api/wiki/{page_id}").get_json()["page"]
    assert (page["title"], page["content"]) == ("Final", "new")


def test_deleted_page_id_is_not_reused(auth_client) -> None:
    create_page(auth_client, "one")
    last = create_page(auth_client, "two")
    auth_client.delete(f"/api/wiki/{last}")
    assert create_page(auth_client, "three") > last
