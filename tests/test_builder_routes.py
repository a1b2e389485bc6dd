"""
Tests routes du builder — session ouverte sur une page SQLite,
mutations, undo/redo, sauvegarde puis relecture via l'API REST.
"""
import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

API = "/api/admin/dynamic-pages"
BUILDER = "/api/admin/builder"


@pytest.fixture
def page_id(client):
    return client.post(API, json={"title": "Accueil"}).json()["id"]


@pytest.fixture
def opened(client, page_id):
    state = client.post(f"{BUILDER}/{page_id}/open").json()
    root = state["document"]["gridCells"][0]["cellId"]
    return page_id, root


def _cells(state):
    return {c["cellId"]: c for c in state["document"]["gridCells"]}


# ── Session ───────────────────────────────────────────────────────────────

def test_open_unknown_page(client):
    assert client.post(f"{BUILDER}/nope/open").status_code == 404


def test_open_state(client, page_id):
    state = client.post(f"{BUILDER}/{page_id}/open").json()
    assert state["pageId"] == page_id
    assert state["dirty"] is False
    assert state["canUndo"] is False
    assert state["historyIndex"] == 0


def test_session_required(client, page_id):
    assert client.post(f"{BUILDER}/{page_id}/undo").status_code == 404


def test_close_warns_when_dirty(client, opened):
    page_id, root = opened
    client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": root, "blockType": "text"})
    data = client.delete(f"{BUILDER}/{page_id}").json()
    assert data["warning"]
    assert client.get(f"{BUILDER}/{page_id}").status_code == 404


# ── Mutations ─────────────────────────────────────────────────────────────

def test_split_and_errors(client, opened):
    page_id, root = opened
    state = client.post(f"{BUILDER}/{page_id}/cells/split", json={"cellId": root, "orientation": "vertical"}).json()
    cells = _cells(state)
    assert cells[root]["split"] == "vertical"
    assert len(cells[root]["children"]) == 2
    assert state["dirty"] is True

    r = client.post(f"{BUILDER}/{page_id}/cells/split", json={"cellId": root, "orientation": "horizontal"})
    assert r.status_code == 409
    r = client.post(f"{BUILDER}/{page_id}/cells/split", json={"cellId": "ghost", "orientation": "vertical"})
    assert r.status_code == 404
    r = client.post(f"{BUILDER}/{page_id}/cells/resize", json={"cellId": root, "ratio": 150})
    assert _cells(r.json())[root]["splitRatio"] == 90


def test_blocks_flow(client, opened):
    page_id, root = opened
    client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": root, "blockType": "text"})
    state = client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": root, "blockType": "button"}).json()
    first, second = (b["blockId"] for b in _cells(state)[root]["blocks"])

    state = client.patch(f"{BUILDER}/{page_id}/blocks", json={
        "cellId": root, "blockId": first, "content": True, "updates": {"text": "<p>Bonjour</p>"},
    }).json()
    assert _cells(state)[root]["blocks"][0]["content"]["text"] == "<p>Bonjour</p>"

    state = client.post(f"{BUILDER}/{page_id}/blocks/move", json={
        "sourceCellId": root, "blockId": second, "targetCellId": root, "targetIndex": 0,
    }).json()
    assert [b["blockId"] for b in _cells(state)[root]["blocks"]] == [second, first]

    state = client.delete(f"{BUILDER}/{page_id}/blocks/{root}/{second}").json()
    assert [b["blockId"] for b in _cells(state)[root]["blocks"]] == [first]
    assert client.delete(f"{BUILDER}/{page_id}/blocks/{root}/{second}").status_code == 404


def test_unresolved_drop_is_noop(client, opened):
    page_id, root = opened
    state = client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": root, "blockType": "text"}).json()
    block_id = _cells(state)[root]["blocks"][0]["blockId"]
    index = state["historyIndex"]
    state = client.post(f"{BUILDER}/{page_id}/blocks/move", json={
        "sourceCellId": root, "blockId": block_id, "overId": "divider-1",
    }).json()
    assert state["historyIndex"] == index


def test_update_cell_and_page(client, opened):
    page_id, root = opened
    state = client.patch(f"{BUILDER}/{page_id}/cells", json={"cellId": root, "backgroundColor": "#fafafa"}).json()
    assert _cells(state)[root]["backgroundColor"] == "#fafafa"
    state = client.patch(f"{BUILDER}/{page_id}/page", json={"seoTitle": "Accueil | Boutique"}).json()
    assert state["document"]["seoTitle"] == "Accueil | Boutique"
    assert client.patch(f"{BUILDER}/{page_id}/page", json={"gridCells": []}).status_code == 400


@pytest.mark.parametrize("body", [{"padding": None}, {"padding": "wide"}, {"backgroundColor": None}])
def test_invalid_cell_update_rejected(client, opened, body):
    page_id, root = opened
    r = client.patch(f"{BUILDER}/{page_id}/cells", json={"cellId": root, **body})
    assert r.status_code == 422
    state = client.get(f"{BUILDER}/{page_id}").json()
    assert state["dirty"] is False
    assert _cells(state)[root]["padding"] == 20


def test_cell_update_then_save(client, opened):
    page_id, root = opened
    client.patch(f"{BUILDER}/{page_id}/cells", json={"cellId": root, "padding": 4})
    assert client.post(f"{BUILDER}/{page_id}/save").json()["ok"] is True
    stored = client.get(f"{API}/{page_id}").json()
    assert stored["gridCells"][0]["padding"] == 4


def test_session_routes_run_on_event_loop():
    from src.api.routes import builder
    for route in (builder.split_cell, builder.update_cell, builder.add_block, builder.update_block,
                  builder.delete_block, builder.move_block, builder.update_page,
                  builder.undo, builder.redo, builder.save):
        assert asyncio.iscoroutinefunction(route), route.__name__


def test_undo_redo(client, opened):
    page_id, root = opened
    client.post(f"{BUILDER}/{page_id}/cells/split", json={"cellId": root, "orientation": "vertical"})
    state = client.post(f"{BUILDER}/{page_id}/undo").json()
    assert _cells(state)[root]["split"] is None
    assert state["canRedo"] is True
    state = client.post(f"{BUILDER}/{page_id}/redo").json()
    assert _cells(state)[root]["split"] == "vertical"


# ── Sauvegarde ────────────────────────────────────────────────────────────

def test_save_persists_and_reloads(client, opened):
    page_id, root = opened
    state = client.post(f"{BUILDER}/{page_id}/cells/split", json={"cellId": root, "orientation": "horizontal"}).json()
    left = _cells(state)[root]["children"][0]
    client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": left, "blockType": "image"})
    state = client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": left, "blockType": "video"}).json()
    blocks = [b["blockId"] for b in _cells(state)[left]["blocks"]]

    saved = client.post(f"{BUILDER}/{page_id}/save").json()
    assert saved["ok"] is True
    assert saved["dirty"] is False

    stored = client.get(f"{API}/{page_id}").json()
    assert [c["cellId"] for c in stored["gridCells"]] == list(_cells(state))
    stored_left = {c["cellId"]: c for c in stored["gridCells"]}[left]
    assert [b["blockId"] for b in stored_left["blocks"]] == blocks


def test_save_normalizes_slug(client, opened):
    page_id, _ = opened
    client.patch(f"{BUILDER}/{page_id}/page", json={"slug": "Nouvelle Page"})
    saved = client.post(f"{BUILDER}/{page_id}/save").json()
    assert saved["document"]["slug"] == "nouvelle-page"


def test_save_duplicate_slug_reported(client, opened):
    page_id, _ = opened
    client.post(API, json={"title": "Autre", "slug": "pris"})
    client.patch(f"{BUILDER}/{page_id}/page", json={"slug": "pris"})
    saved = client.post(f"{BUILDER}/{page_id}/save").json()
    assert saved["ok"] is False
    assert saved["dirty"] is True


# ── Référentiels ──────────────────────────────────────────────────────────

def test_block_types_and_field_options(client):
    assert "mediaGallery" in client.get(f"{BUILDER}/block-types").json()["blockTypes"]
    options = client.get(f"{BUILDER}/field-options", params={"sourceType": "product", "blockType": "text"}).json()
    assert options["options"][0]["value"] == "product.name"
    assert client.get(f"{BUILDER}/field-options", params={"sourceType": "x", "blockType": "text"}).status_code == 400


# ── Registre des sessions ─────────────────────────────────────────────────

class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _fake_session(page_id, dirty=False):
    session = MagicMock()
    session.page_id = page_id
    session.dirty = dirty
    return session


def test_registry_evicts_idle_sessions():
    from src.api.routes.builder import SessionRegistry
    clock = _Clock()
    registry = SessionRegistry(ttl=60, clock=clock)
    registry.put(_fake_session("a"))
    clock.now = 30
    registry.put(_fake_session("b"))
    clock.now = 80
    registry.get("b")
    registry.put(_fake_session("c"))
    assert len(registry) == 2
    with pytest.raises(HTTPException) as exc:
        registry.get("a")
    assert exc.value.status_code == 404


def test_registry_warns_when_replacing_dirty_session(caplog):
    from src.api.routes.builder import SessionRegistry
    registry = SessionRegistry(ttl=60, clock=_Clock())
    registry.put(_fake_session("a", dirty=True))
    with caplog.at_level("WARNING"):
        registry.put(_fake_session("a"))
    assert "non sauvegardées" in caplog.text
    assert registry.get("a").dirty is False


def test_reopen_replaces_session(client, opened):
    page_id, root = opened
    client.post(f"{BUILDER}/{page_id}/blocks", json={"cellId": root, "blockType": "text"})
    state = client.post(f"{BUILDER}/{page_id}/open").json()
    assert state["dirty"] is False
    assert _cells(state)[root]["blocks"] == []
