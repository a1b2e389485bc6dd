"""
Tests API REST /api/admin/dynamic-pages + page admin HTML.
Base SQLite temporaire par test (dependency_overrides[get_db]).
"""

import pytest

API = "/api/admin/dynamic-pages"


def _create(client, **payload):
    payload.setdefault("title", "Accueil")
    return client.post(API, json=payload)


# ── Création ──────────────────────────────────────────────────────────────

class TestCreate:

    def test_creation_minimale(self, client):
        r = _create(client, title="Soldes d'été")
        assert r.status_code == 201
        data = r.json()
        assert data["slug"] == "soldes-dt"
        assert data["pageType"] == "custom"
        assert data["isPublished"] is False
        assert len(data["gridCells"]) == 1
        assert data["gridCells"][0]["parentId"] is None

    def test_titre_requis(self, client):
        assert client.post(API, json={"slug": "x"}).status_code == 400
        assert client.post(API, json={"title": "  "}).status_code == 400

    def test_slug_duplique(self, client):
        assert _create(client, title="A", slug="promo").status_code == 201
        r = _create(client, title="B", slug="Promo")
        assert r.status_code == 400

    def test_grille_invalide(self, client):
        cells = [{"cellId": "r", "split": "vertical", "children": ["a"]},
                 {"cellId": "a", "parentId": "r"}]
        assert _create(client, gridCells=cells).status_code == 409

    def test_grille_mal_formee(self, client):
        r = _create(client, gridCells=[{"cellId": "a", "padding": "large"}])
        assert r.status_code == 422
        assert client.get(API).json()["totalItems"] == 0


# ── Lecture / liste ───────────────────────────────────────────────────────

class TestRead:

    def test_get_404(self, client):
        assert client.get(f"{API}/nope").status_code == 404

    def test_get(self, client):
        pid = _create(client, title="Contact", description="Nous écrire").json()["id"]
        data = client.get(f"{API}/{pid}").json()
        assert data["title"] == "Contact"
        assert data["description"] == "Nous écrire"

    def test_liste_pagination(self, client):
        for i in range(5):
            _create(client, title=f"Page {i}")
        data = client.get(API, params={"page": 2, "limit": 2}).json()
        assert data["currentPage"] == 2
        assert data["totalPages"] == 3
        assert data["totalItems"] == 5
        assert len(data["pages"]) == 2
        assert all("gridCells" not in p and p["cellCount"] == 1 for p in data["pages"])

    def test_liste_recherche_et_type(self, client):
        _create(client, title="Landing Noël", pageType="landing")
        _create(client, title="Mentions", description="légales noël")
        _create(client, title="CGV")
        assert client.get(API, params={"search": "NOËL"}).json()["totalItems"] == 2
        data = client.get(API, params={"search": "noël", "pageType": "landing"}).json()
        assert [p["title"] for p in data["pages"]] == ["Landing Noël"]
        assert client.get(API, params={"pageType": "all"}).json()["totalItems"] == 3

    def test_liste_vide(self, client):
        data = client.get(API).json()
        assert data == {"pages": [], "currentPage": 1, "totalPages": 0, "totalItems": 0}


# ── Mise à jour / suppression ─────────────────────────────────────────────

class TestUpdate:

    def test_update_partiel(self, client):
        pid = _create(client, title="Accueil").json()["id"]
        r = client.put(f"{API}/{pid}", json={"seoTitle": "Bienvenue", "slug": "Home Page",
                                             "pageSettings": {"themeMode": "custom"}})
        assert r.status_code == 200
        data = r.json()
        assert data["title"] == "Accueil"
        assert data["seoTitle"] == "Bienvenue"
        assert data["slug"] == "home-page"
        assert data["pageSettings"] == {"themeMode": "custom"}

    def test_update_slug_duplique(self, client):
        _create(client, title="A", slug="a")
        pid = _create(client, title="B", slug="b").json()["id"]
        assert client.put(f"{API}/{pid}", json={"slug": "a"}).status_code == 400
        assert client.put(f"{API}/{pid}", json={"slug": "b"}).status_code == 200

    def test_update_titre_vide(self, client):
        pid = _create(client).json()["id"]
        assert client.put(f"{API}/{pid}", json={"title": ""}).status_code == 400

    def test_update_grille_mal_formee(self, client):
        pid = _create(client).json()["id"]
        before = client.get(f"{API}/{pid}").json()["gridCells"]
        r = client.put(f"{API}/{pid}", json={"gridCells": [{"cellId": "a", "split": "diagonal"}]})
        assert r.status_code == 422
        assert client.get(f"{API}/{pid}").json()["gridCells"] == before

    def test_update_ratio_borne(self, client):
        pid = _create(client).json()["id"]
        cells = [{"cellId": "r", "split": "vertical", "splitRatio": 150, "children": ["a", "b"]},
                 {"cellId": "a", "parentId": "r"}, {"cellId": "b", "parentId": "r"}]
        data = client.put(f"{API}/{pid}", json={"gridCells": cells}).json()
        assert data["gridCells"][0]["splitRatio"] == 90

    def test_update_404(self, client):
        assert client.put(f"{API}/nope", json={"title": "X"}).status_code == 404

    def test_delete(self, client):
        pid = _create(client).json()["id"]
        assert client.delete(f"{API}/{pid}").json()["success"] is True
        assert client.get(f"{API}/{pid}").status_code == 404
        assert client.delete(f"{API}/{pid}").status_code == 404


# ── Page admin HTML ───────────────────────────────────────────────────────

class TestAdminPage:

    def test_token_requis(self, client):
        assert client.get("/admin/dynamic-pages", params={"token": "mauvais"}).status_code == 403

    def test_liste_html(self, client, monkeypatch):
        monkeypatch.setenv("ADMIN_TOKEN", "secret")
        _create(client, title="Promo <b>Été</b>")
        r = client.get("/admin/dynamic-pages", params={"token": "secret"})
        assert r.status_code == 200
        assert "Promo &lt;b&gt;Été&lt;/b&gt;" in r.text
        assert "Pages dynamiques (1)" in r.text


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
