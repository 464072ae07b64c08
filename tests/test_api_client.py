import sys
import pathlib

import pytest
import requests
from fastapi.testclient import TestClient

base_dir = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(base_dir))

from backend.db import make_engine, make_session_factory
from backend.main import create_app
from backend.models import Base
from backend.store import ArticleStore
from frontend.api_client import ApiError, ApiUnavailableError, ArticleApiClient


@pytest.fixture
def api(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'client.db'}")
    Base.metadata.create_all(bind=engine)
    app = create_app(ArticleStore(make_session_factory(engine)))
    with TestClient(app) as session:
        yield ArticleApiClient("http://testserver", session=session)
    engine.dispose()


def test_client_crud_flow(api):
    new_id = api.create_article("Title", "Body", "memo", "draft")
    assert new_id == "1"

    article = api.get_article(new_id)
    assert article["title"] == "Title"
    assert article["status"] == "draft"

    assert api.update_article(new_id, "T2", "B2", "memo", "published") == new_id
    assert api.get_article(new_id)["status"] == "published"

    assert [a["id"] for a in api.list_articles()] == [1]
    assert api.delete_article(new_id) == new_id
    assert api.list_articles() == []


def test_client_surfaces_error_envelope(api):
    with pytest.raises(ApiError) as exc_info:
        api.create_article("", "Body", "memo", "draft")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Missing required fields"

    with pytest.raises(ApiError) as exc_info:
        api.get_article("abc")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Invalid ID format"

    with pytest.raises(ApiError) as exc_info:
        api.delete_article(99)
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Database operation failed"


def test_client_reports_unreachable_endpoint():
    class DownSession:
        def request(self, method, url, **kwargs):
            raise requests.ConnectionError("connection refused")

    api = ArticleApiClient("http://localhost:8000/", session=DownSession())
    with pytest.raises(ApiUnavailableError) as exc_info:
        api.create_article("a", "b", "c", "draft")
    assert exc_info.value.endpoint == "http://localhost:8000/articles/create"
