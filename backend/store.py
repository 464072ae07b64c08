import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backend.models import Article, utcnow
from backend.errors import StorageError

logger = logging.getLogger(__name__)


class ArticleStore:
    """CRUD access to the ``articles`` table.

    Each call runs in its own session. SQLAlchemy failures are rolled back and
    re-raised as ``StorageError``; update and delete also raise it when no row
    matches the id.
    """

    def __init__(self, session_factory: sessionmaker, clock: Callable = utcnow):
        self.session_factory = session_factory
        self.clock = clock

    @contextmanager
    def _session(self, operation: str):
        db: Session = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("%s failed", operation)
            raise StorageError() from e
        finally:
            db.close()

    def find_all(self) -> List[Article]:
        with self._session("find_all") as db:
            return db.query(Article).order_by(Article.id).all()

    def find_by_id(self, article_id: int) -> Optional[Article]:
        with self._session("find_by_id") as db:
            return db.query(Article).filter(Article.id == article_id).first()

    def insert(self, title: str, content: str, category: str, status: str) -> Article:
        now = self.clock()
        with self._session("insert") as db:
            article = Article(
                title=title,
                content=content,
                category=category,
                status=status,
                created_at=now,
                updated_at=now,
            )
            db.add(article)
            db.commit()
            db.refresh(article)
            return article

    def update_by_id(
        self, article_id: int, title: str, content: str, category: str, status: str
    ) -> Article:
        with self._session("update_by_id") as db:
            article = db.query(Article).filter(Article.id == article_id).first()
            if article is None:
                logger.warning("update_by_id: no article with id=%s", article_id)
                raise StorageError()
            article.title = title
            article.content = content
            article.category = category
            article.status = status
            article.updated_at = max(self.clock(), article.created_at)
            db.commit()
            db.refresh(article)
            return article

    def delete_by_id(self, article_id: int) -> Article:
        with self._session("delete_by_id") as db:
            article = db.query(Article).filter(Article.id == article_id).first()
            if article is None:
                logger.warning("delete_by_id: no article with id=%s", article_id)
                raise StorageError()
            db.delete(article)
            db.commit()
            return article
