import logging
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """The API answered with an ``{"error": {"message": ...}}`` envelope."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ApiUnavailableError(RuntimeError):
    """The API could not be reached at ``endpoint``."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not reachable: {endpoint}")
        self.endpoint = endpoint


class ArticleApiClient:
    def __init__(self, base_url: str, session=None, timeout: int = 60):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def endpoint(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def request(self, method: str, path: str, payload: dict | None = None):
        url = self.endpoint(path)
        try:
            r = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.ConnectionError as e:
            logger.warning("%s %s unreachable: %s", method, url, e)
            raise ApiUnavailableError(url) from e
        try:
            body = r.json() if r.text else {}
        except ValueError:
            body = {}
        if r.status_code >= 400:
            message = (body.get("error") or {}).get("message") if isinstance(body, dict) else None
            logger.info("%s %s failed: %s %s", method, path, r.status_code, message)
            raise ApiError(r.status_code, message or f"{r.status_code} {r.text}")
        return body.get("data")

    def list_articles(self) -> list[dict]:
        return self.request("GET", "/articles")

    def get_article(self, article_id) -> dict:
        return self.request("GET", f"/articles/detail/{quote(str(article_id), safe='')}")

    def create_article(self, title: str, content: str, category: str, status: str) -> str:
        payload = {"title": title, "content": content, "category": category, "status": status}
        return self.request("POST", "/articles/create", payload)["id"]

    def update_article(
        self, article_id, title: str, content: str, category: str, status: str
    ) -> str:
        payload = {
            "articleId": str(article_id),
            "title": title,
            "content": content,
            "category": category,
            "status": status,
        }
        return self.request("POST", "/articles/update", payload)["id"]

    def delete_article(self, article_id) -> str:
        return self.request("POST", "/articles/delete", {"articleId": str(article_id)})["id"]
