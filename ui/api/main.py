"""FastAPI layer exposing projects, corpus administration and responses.

Run with ``uvicorn ui.api.main:create_app --factory``.
"""
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Query as FastAPIQuery
from pydantic import BaseModel, ConfigDict, Field

from application.services.chatbot import ChatBot, ChatBotFactory
from domain.entities import CorpusData, CorpusEntry, Reply
from domain.errors import SnapshotError
from infrastructure.config import Container, build_default_container
from ui.logging_utils import setup_logging


class ProjectPayload(BaseModel):
    name: str
    config: dict[str, Any] = Field(default_factory=dict)


class ProjectResponse(ProjectPayload):
    id: int | None = None


class CorpusPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    answer: str
    class_: str = Field(default="", alias="class")
    qtype: int = 1
    context: str = ""
    contextual: bool = False
    next_context: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class CorpusResponse(CorpusPayload):
    id: int
    project: str
    accept_count: int = 0
    reject_count: int = 0


class QA(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    question: str
    answer: str
    score: float
    context: str = ""
    contextual: bool = False
    next_context: str = ""
    class_: str = Field(default="", alias="class")
    data: dict[str, Any] = Field(default_factory=dict)


class RespondResponse(BaseModel):
    question: str
    results: list[QA] = Field(default_factory=list)
    message: str = ""


class FeedbackRequest(BaseModel):
    id: int
    is_ok: bool


def _entry_to_response(entry: CorpusEntry) -> CorpusResponse:
    return CorpusResponse(
        id=entry.id or 0,
        project=entry.project,
        question=entry.question,
        answer=entry.answer,
        class_=entry.class_,
        qtype=entry.qtype,
        context=entry.context,
        contextual=entry.contextual,
        next_context=entry.data.next_context,
        data=entry.data.extra,
        accept_count=entry.accept_count,
        reject_count=entry.reject_count,
    )


def _reply_to_qa(reply: Reply) -> QA:
    return QA(
        id=reply.id,
        question=reply.question,
        answer=reply.answer,
        score=reply.score,
        context=reply.context,
        contextual=reply.contextual,
        next_context=reply.next_context,
        class_=reply.class_,
        data=reply.data,
    )


def create_app(container: Container | None = None) -> FastAPI:
    """Build the API around an explicitly wired container."""

    if container is None:
        setup_logging()
        container = build_default_container()
    factory = ChatBotFactory(container)
    factory.init()

    app = FastAPI(title="ChatBot Match API")
    app.state.factory = factory

    def _bot(project: str) -> ChatBot:
        bot = factory.get(project)
        if bot is None:
            raise HTTPException(status_code=404, detail=f"project '{project}' not found")
        return bot

    def _sync(bot: ChatBot) -> None:
        try:
            bot.sync()
        except SnapshotError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.get("/projects", response_model=list[ProjectResponse])
    def list_projects() -> list[ProjectResponse]:
        return [ProjectResponse(id=p.id, name=p.name, config=p.config) for p in factory.list_projects()]

    @app.post("/projects", response_model=ProjectResponse)
    def add_project(payload: ProjectPayload) -> ProjectResponse:
        try:
            project = factory.add_project(payload.name, payload.config)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except SnapshotError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return ProjectResponse(id=project.id, name=project.name, config=project.config)

    @app.get("/projects/{name}", response_model=ProjectResponse)
    def get_project(name: str) -> ProjectResponse:
        project = factory.get_project(name)
        if project is None:
            raise HTTPException(status_code=404, detail=f"project '{name}' not found")
        return ProjectResponse(id=project.id, name=project.name, config=project.config)

    @app.delete("/projects/{name}")
    def delete_project(name: str) -> dict[str, str]:
        if not factory.remove_project(name):
            raise HTTPException(status_code=404, detail=f"project '{name}' not found")
        return {"message": "success"}

    @app.get("/corpus/{project}", response_model=list[CorpusResponse])
    def list_corpus(
        project: str,
        question: str = "",
        start: int = FastAPIQuery(0, ge=0),
        limit: int = FastAPIQuery(100, ge=1, le=1000),
    ) -> list[CorpusResponse]:
        entries = container.corpus_repository.list(project, question_like=question, start=start, limit=limit)
        return [_entry_to_response(entry) for entry in entries]

    @app.post("/corpus/{project}", response_model=CorpusResponse)
    def add_corpus(project: str, payload: CorpusPayload) -> CorpusResponse:
        bot = _bot(project)
        entry = bot.add_corpus(
            CorpusEntry(
                question=payload.question,
                answer=payload.answer,
                project=project,
                class_=payload.class_,
                qtype=payload.qtype,
                context=payload.context,
                contextual=payload.contextual,
                data=CorpusData(next_context=payload.next_context, extra=payload.data),
            )
        )
        _sync(bot)
        return _entry_to_response(entry)

    @app.get("/corpus/{project}/{corpus_id}", response_model=CorpusResponse)
    def get_corpus(project: str, corpus_id: int) -> CorpusResponse:
        entry = container.corpus_repository.get(corpus_id)
        if entry is None or entry.project != project:
            raise HTTPException(status_code=404, detail="Corpus not found")
        return _entry_to_response(entry)

    @app.put("/corpus/{project}/{corpus_id}", response_model=CorpusResponse)
    def update_corpus(project: str, corpus_id: int, payload: CorpusPayload) -> CorpusResponse:
        bot = _bot(project)
        existing = container.corpus_repository.get(corpus_id)
        if existing is None or existing.project != project:
            raise HTTPException(status_code=404, detail="Corpus not found")
        entry = bot.add_corpus(
            CorpusEntry(
                id=corpus_id,
                question=payload.question,
                answer=payload.answer,
                project=project,
                class_=payload.class_,
                qtype=payload.qtype,
                context=payload.context,
                contextual=payload.contextual,
                data=CorpusData(next_context=payload.next_context, extra=payload.data),
                accept_count=existing.accept_count,
                reject_count=existing.reject_count,
            )
        )
        _sync(bot)
        return _entry_to_response(entry)

    @app.delete("/corpus/{project}/{corpus_id}")
    def delete_corpus(project: str, corpus_id: int) -> dict[str, str]:
        bot = _bot(project)
        existing = container.corpus_repository.get(corpus_id)
        if existing is None or existing.project != project:
            raise HTTPException(status_code=404, detail="Corpus not found")
        bot.remove_corpus(corpus_id)
        _sync(bot)
        return {"message": "success"}

    @app.get("/respond/{project}", response_model=RespondResponse)
    def get_response(
        project: str,
        q: str = "",
        context: str = "",
    ) -> RespondResponse:
        response = RespondResponse(question=q)
        if not q.strip():
            response.message = "No query was provided"
            return response
        bot = factory.get(project)
        if bot is None:
            response.message = "Could not initialize project"
            return response
        contexts = (context,) if context else ()
        replies = bot.respond(q, *contexts)
        response.results = [_reply_to_qa(reply) for reply in replies]
        response.message = "ok" if replies else "not found"
        return response

    @app.post("/respond/feedback/{project}")
    def add_feedback(project: str, payload: FeedbackRequest) -> dict[str, str]:
        bot = _bot(project)
        try:
            bot.record_feedback(payload.id, payload.is_ok)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="record not found") from exc
        return {"message": "success"}

    return app


__all__ = ["create_app"]
