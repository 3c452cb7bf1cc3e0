"""FastAPI entrypoint for the chat references backend."""

from __future__ import annotations

import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app_state import ReferenceAppState
from cursor_query import CursorOutOfRangeError
from models import (
    AutocompleteRequest,
    AutocompleteResponsePayload,
    CursorQueryPayload,
    InsertRequest,
    InsertResponsePayload,
    MessageRequest,
    OpenProjectRequest,
    ParseResponsePayload,
    QueryRequest,
    QueryResponsePayload,
    RenderResponsePayload,
    TokenRequest,
    TokenResponsePayload,
)

state = ReferenceAppState()


async def _close_resolver(services) -> None:
    close = getattr(services.resolver, "aclose", None)
    if close is not None:
        await close()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await _close_resolver(state.current())


app = FastAPI(
    title="Chat References Backend",
    description="Inline task and milestone references for project chat",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["health"])
async def root():
    return {"status": "ok", "message": "Chat references backend is running"}


@app.get("/health", tags=["health"])
async def health():
    return {
        "status": "ok",
        "message": "Chat references backend is running",
        "project_id": state.current().project_id,
    }


@app.post("/open-project", tags=["projects"])
async def open_project(request: OpenProjectRequest):
    try:
        previous = state.open_project(request.project_id)
        await _close_resolver(previous)
        return {"success": True, "project_id": state.current().project_id}
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/references/parse", response_model=ParseResponsePayload, tags=["references"])
async def parse(request: MessageRequest):
    try:
        return state.current().references.parse(request.text)
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/references/render", response_model=RenderResponsePayload, tags=["references"])
async def render(request: MessageRequest):
    try:
        return await state.current().references.render(request.text)
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/references/query", response_model=QueryResponsePayload, tags=["autocomplete"])
async def query(request: QueryRequest):
    try:
        found = state.current().references.query_at(request.text, request.cursor_offset, request.kind)
        return QueryResponsePayload(query=CursorQueryPayload.from_query(found) if found else None)
    except CursorOutOfRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/references/autocomplete", response_model=AutocompleteResponsePayload, tags=["autocomplete"])
async def autocomplete(request: AutocompleteRequest):
    try:
        return await state.current().references.autocomplete(
            request.text, request.cursor_offset, request.limit
        )
    except CursorOutOfRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/references/token", response_model=TokenResponsePayload, tags=["autocomplete"])
async def token(request: TokenRequest):
    return TokenResponsePayload(token=state.current().references.token(request.kind, request.identifier))


@app.post("/references/insert", response_model=InsertResponsePayload, tags=["autocomplete"])
async def insert(request: InsertRequest):
    try:
        inserted = state.current().references.insert(
            request.text, request.cursor_offset, request.kind, request.identifier
        )
        return InsertResponsePayload(text=inserted.text, cursor_offset=inserted.cursor)
    except CursorOutOfRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(exc))


if __name__ == "__main__":
    uvicorn.run(app, host=state.settings.host, port=state.settings.port)
