from __future__ import annotations

PASSWORD = "correct horse"


def create_task(client, title: str, **fields) -> int:
    resp = client.post("/api/tasks", json={"title": title, **fields})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["id"]


def create_page(client, title: str, content: str = "") -> int:
    resp = client.post("/api/wiki", json={"title": title, "content": content})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["id"]


def tree_titles(nodes) -> list:
    """Nested [title, [children...]] structure for compact assertions."""
    return [[n["title"], tree_titles(n["children"])] for n in nodes]
