import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def session_factory(tmp_path):
    os.environ["DB_PATH"] = str(tmp_path / "test.db")
    from src.database import init_db
    engine = create_engine(f"sqlite:///{tmp_path / 'pages.db'}", connect_args={"check_same_thread": False})
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def client(session_factory):
    from src.api.main import app
    from src.api.page_store import SqlPageStore
    from src.api.routes.builder import REGISTRY, get_page_store
    from src.database import get_db

    def _db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_page_store] = lambda: SqlPageStore(session_factory)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    REGISTRY.clear()
