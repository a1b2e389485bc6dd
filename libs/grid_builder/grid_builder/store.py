"""
Adaptateur de persistance — contrat consommé par la session du builder.

    load_page(page_id) → PageDocument   (PageNotFound si absent)
    save_page(page_id, doc) → PageDocument  (le serveur peut normaliser :
                                             l'appelant adopte le retour)

HttpPageStore parle à l'API REST /api/admin/dynamic-pages (requests,
appels bloquants déportés dans un thread). MemoryPageStore sert aux tests
et au mode hors-ligne : il fait le même aller-retour JSON qu'un serveur.
"""
import asyncio
import copy
import logging
import os
from typing import Dict, Optional, Protocol

import requests
from pydantic import ValidationError

from .document import PageDocument, normalize_loaded
from .errors import PageNotFound, PersistenceError

log = logging.getLogger(__name__)


class PageStore(Protocol):
    async def load_page(self, page_id: str) -> PageDocument: ...

    async def save_page(self, page_id: str, doc: PageDocument) -> PageDocument: ...


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or f"HTTP {resp.status_code}")
    return f"HTTP {resp.status_code}"


class HttpPageStore:
    """Client REST des pages dynamiques."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv("PAGES_API_URL", "http://localhost:8001")).rstrip("/")
        self.timeout = float(timeout or os.getenv("PAGES_API_TIMEOUT", "15"))
        self.http = session or requests.Session()

    def _url(self, page_id: str) -> str:
        return f"{self.base_url}/api/admin/dynamic-pages/{page_id}"

    def _request(self, method: str, page_id: str, payload: Optional[dict] = None) -> dict:
        try:
            resp = self.http.request(method, self._url(page_id), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise PersistenceError(f"{method} {page_id} : {e}") from e
        if resp.status_code == 404:
            raise PageNotFound(page_id)
        if not resp.ok:
            raise PersistenceError(_error_message(resp))
        try:
            return resp.json()
        except ValueError as e:
            raise PersistenceError(f"{method} {page_id} : réponse illisible") from e

    async def load_page(self, page_id: str) -> PageDocument:
        data = await asyncio.to_thread(self._request, "GET", page_id)
        log.info("Page %s chargée (%d cellules)", page_id, len(data.get("gridCells") or []))
        return normalize_loaded(data)

    async def save_page(self, page_id: str, doc: PageDocument) -> PageDocument:
        payload = doc.dump()
        data = await asyncio.to_thread(self._request, "PUT", page_id, payload)
        if not isinstance(data, dict):
            raise PersistenceError(f"PUT {page_id} : réponse inattendue")
        # Réponse sans gridCells (absents ou vides) → on garde ceux envoyés
        if not data.get("gridCells"):
            data["gridCells"] = payload["gridCells"]
        log.info("Page %s sauvegardée (%d cellules)", page_id, len(data["gridCells"]))
        try:
            return PageDocument.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"PUT {page_id} : document renvoyé invalide") from e


class MemoryPageStore:
    """Stockage en mémoire, sérialisation JSON à chaque passage."""

    def __init__(self, pages: Optional[Dict[str, dict]] = None):
        self.pages: Dict[str, dict] = {k: copy.deepcopy(v) for k, v in (pages or {}).items()}
        self.saves = 0

    async def load_page(self, page_id: str) -> PageDocument:
        if page_id not in self.pages:
            raise PageNotFound(page_id)
        return normalize_loaded(copy.deepcopy(self.pages[page_id]))

    async def save_page(self, page_id: str, doc: PageDocument) -> PageDocument:
        data = doc.dump()
        data["id"] = page_id
        self.pages[page_id] = data
        self.saves += 1
        return PageDocument.model_validate(copy.deepcopy(data))
