"""
QUANTUM ADMIN — FastAPI app (pages dynamiques + builder)
Démarrer : uvicorn src.api.main:app --reload --port 8001
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s — %(message)s")
log = logging.getLogger(__name__)

app = FastAPI(title="QUANTUM ADMIN — Pages dynamiques", version="1.0.0", docs_url="/docs")

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.on_event("startup")
def startup():
    from ..database import init_db
    init_db()
    log.info("DB initialisée (SQLite)")


@app.get("/health")
def health():
    return {"status": "ok", "service": "quantum_admin", "version": "1.0.0"}


from .routes import admin_pages, builder, dynamic_pages

app.include_router(dynamic_pages.router)
app.include_router(builder.router)
app.include_router(admin_pages.router)
