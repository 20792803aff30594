"""HTTP client for the chatbot API."""
from __future__ import annotations

import logging
from typing import Any

import requests

from ui.api.main import CorpusPayload, CorpusResponse, ProjectResponse, RespondResponse

logger = logging.getLogger(__name__)


class ChatBotClientError(RuntimeError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChatBotClient:
    """Thin wrapper over the project, corpus and respond endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}/{path.lstrip('/')}"
        response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        logger.debug("%s %s -> %s", method, url, response.status_code)
        if response.status_code >= 400:
            raise ChatBotClientError(response.status_code, self._error_message(response))
        return response.json()

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"request failed with code {response.status_code}"
        detail = body.get("detail") if isinstance(body, dict) else None
        if detail:
            return str(detail)
        return f"request failed with code {response.status_code} and the error message was empty"

    def list_projects(self) -> list[ProjectResponse]:
        return [ProjectResponse.model_validate(item) for item in self._request("GET", "projects")]

    def add_project(self, name: str, config: dict[str, Any] | None = None) -> ProjectResponse:
        body = self._request("POST", "projects", json={"name": name, "config": config or {}})
        return ProjectResponse.model_validate(body)

    def delete_project(self, name: str) -> None:
        self._request("DELETE", f"projects/{name}")

    def list_corpus(self, project: str, *, question: str = "", start: int = 0, limit: int = 100) -> list[CorpusResponse]:
        params = {"question": question, "start": start, "limit": limit}
        return [CorpusResponse.model_validate(item) for item in self._request("GET", f"corpus/{project}", params=params)]

    def add_corpus(self, project: str, corpus: CorpusPayload) -> CorpusResponse:
        body = self._request("POST", f"corpus/{project}", json=corpus.model_dump(by_alias=True))
        return CorpusResponse.model_validate(body)

    def update_corpus(self, project: str, corpus_id: int, corpus: CorpusPayload) -> CorpusResponse:
        body = self._request("PUT", f"corpus/{project}/{corpus_id}", json=corpus.model_dump(by_alias=True))
        return CorpusResponse.model_validate(body)

    def delete_corpus(self, project: str, corpus_id: int) -> None:
        self._request("DELETE", f"corpus/{project}/{corpus_id}")

    def get_response(self, project: str, query: str, context: str = "") -> RespondResponse:
        body = self._request("GET", f"respond/{project}", params={"q": query, "context": context})
        return RespondResponse.model_validate(body)

    def send_feedback(self, project: str, corpus_id: int, accepted: bool) -> None:
        self._request("POST", f"respond/feedback/{project}", json={"id": corpus_id, "is_ok": accepted})


__all__ = ["ChatBotClient", "ChatBotClientError"]
