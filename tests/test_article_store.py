import sys
import pathlib
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

base_dir = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(base_dir))

from backend.db import make_engine, make_session_factory
from backend.errors import MalformedKeyError, StorageError
from backend.main import format_display_date, parse_article_id, sort_newest_first
from backend.models import Article, Base
from backend.store import ArticleStore


@pytest.fixture
def store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(bind=engine)
    times = iter([datetime(2024, 5, 1, 12, 0), datetime(2024, 5, 1, 12, 30)])
    yield ArticleStore(make_session_factory(engine), clock=lambda: next(times))
    engine.dispose()


def test_insert_sets_equal_timestamps(store):
    article = store.insert("t", "c", "cat", "draft")
    assert article.id == 1
    assert article.created_at == article.updated_at == datetime(2024, 5, 1, 12, 0)


def test_update_refreshes_updated_at_only(store):
    article = store.insert("t", "c", "cat", "draft")
    updated = store.update_by_id(article.id, "t2", "c2", "cat2", "published")
    assert updated.created_at == datetime(2024, 5, 1, 12, 0)
    assert updated.updated_at == datetime(2024, 5, 1, 12, 30)
    assert store.find_by_id(article.id).title == "t2"


def test_update_and_delete_missing_raise_storage_error(store):
    with pytest.raises(StorageError):
        store.update_by_id(5, "t", "c", "cat", "draft")
    with pytest.raises(StorageError):
        store.delete_by_id(5)


def test_delete_returns_removed_article(store):
    article = store.insert("t", "c", "cat", "draft")
    removed = store.delete_by_id(article.id)
    assert removed.id == article.id
    assert store.find_by_id(article.id) is None
    assert store.find_all() == []


def test_sqlalchemy_failure_becomes_storage_error(tmp_path):
    # tables were never created
    engine = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    store = ArticleStore(make_session_factory(engine))
    with pytest.raises(StorageError) as exc_info:
        store.find_all()
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.status_code == 500


def test_sort_newest_first_is_stable():
    same = datetime(2024, 1, 1)
    a = Article(id=1, created_at=same)
    b = Article(id=2, created_at=same)
    c = Article(id=3, created_at=datetime(2024, 2, 1))
    assert [x.id for x in sort_newest_first([a, b, c])] == [3, 1, 2]


def test_format_display_date():
    value = datetime(2024, 12, 31, 15, 5)
    assert format_display_date(value, "UTC") == "2024/12/31 15:05"
    # UTC+9, rolls over to the next day
    assert format_display_date(value, "Asia/Tokyo") == "2025/01/01 00:05"


@pytest.mark.parametrize("raw, expected", [(3, 3), ("12", 12), (" 7 ", 7), ("-1", -1)])
def test_parse_article_id(raw, expected):
    assert parse_article_id(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "1e3", "0x10", 1.0, False, None, "9" * 30])
def test_parse_article_id_rejects(raw):
    with pytest.raises(MalformedKeyError) as exc_info:
        parse_article_id(raw, status_code=404)
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Invalid ID format"
