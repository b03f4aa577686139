"""Research board backend that talks to a running worklog server over HTTP.

Pair it with ``BoardController`` to drive the board from outside the Django
process. Authentication is the caller's business: pass a ``requests.Session``
that already carries the session cookie, and the CSRF cookie if writing.
"""

import logging

import requests

from worklog.core.exceptions import (
    BoardError,
    MutationNotAllowed,
    NotFound,
    OrderingConflict,
    PersistError,
)
from worklog.core.types import BoardItem, Document, Note

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
CSRF_COOKIE_NAME = "worklog_csrftoken"

ERRORS_BY_STATUS = {
    403: MutationNotAllowed,
    404: NotFound,
}


def item_from_json(data):
    return BoardItem(
        id=data["id"],
        column=data["column"],
        position=data["position"],
        title=data.get("title", ""),
        description=data.get("description", ""),
        issue_id=data.get("issue_id", ""),
        issue_identifier=data.get("issue_identifier", ""),
        issue_url=data.get("issue_url", ""),
        notes=tuple(Note(**note) for note in data.get("notes", [])),
        documents=tuple(Document(**document) for document in data.get("documents", [])),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


class HttpBackend:
    def __init__(
        self,
        base_url,
        session=None,
        timeout=DEFAULT_TIMEOUT,
        csrf_cookie_name=CSRF_COOKIE_NAME,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.csrf_cookie_name = csrf_cookie_name

    @classmethod
    def from_settings(cls, base_url=None, session=None):
        from django.conf import settings

        return cls(
            base_url or settings.SITE_URL,
            session=session,
            timeout=settings.WORKLOG_CLIENT_TIMEOUT,
            csrf_cookie_name=settings.CSRF_COOKIE_NAME,
        )

    def fetch_snapshot(self):
        return [item_from_json(row) for row in self._request("GET", "/api/research/")]

    def create_item(self, reference, column):
        data = self._request(
            "POST",
            "/api/research/",
            json={
                "issue_id": reference.issue_id,
                "issue_identifier": reference.identifier,
                "title": reference.title,
                "issue_url": reference.url,
                "column": column,
            },
        )
        return item_from_json(data)

    def update_item(self, item_id, **fields):
        return item_from_json(self._request("PUT", f"/api/research/{item_id}/", json=fields))

    def delete_item(self, item_id):
        self._request("DELETE", f"/api/research/{item_id}/")

    def apply_batch(self, placements):
        self._request(
            "PATCH",
            "/api/research/reorder/",
            json={
                "items": [
                    {"id": p.id, "column": p.column, "position": p.position}
                    for p in placements
                ]
            },
        )

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        headers = {}
        if method != "GET":
            token = self.session.cookies.get(self.csrf_cookie_name)
            if token:
                headers["X-CSRFToken"] = token
            headers["Referer"] = self.base_url + "/"

        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise PersistError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 500:
            raise PersistError(
                f"{method} {path} failed with HTTP {response.status_code}"
            )
        if not response.ok:
            message = _error_message(response)
            if response.status_code == 409:
                raise OrderingConflict(message=message)
            raise ERRORS_BY_STATUS.get(response.status_code, BoardError)(message)
        return response.json()


def _error_message(response):
    try:
        return response.json().get("error") or f"HTTP {response.status_code}"
    except (ValueError, AttributeError):
        return f"HTTP {response.status_code}"
