import json
import logging
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from memoriza import config
from memoriza.models import (
    DashboardSummary,
    Difficulty,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    GenerateFromSummaryRequest,
    GenerateResult,
    to_flashcards,
    to_upstream_request,
)
from memoriza.services import proxy
from memoriza.services.content_guard import (
    ContentRejectedError,
    build_summary_request,
    check_size,
    check_text,
)
from memoriza.services.deck import summarize_sets
from memoriza.services.upstream_client import (
    UpstreamConnectionError,
    UpstreamError,
    generate_from_summary,
    get_user_flashcard_sets,
)

load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="memoriza")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


def _bearer_token(authorization: Optional[str]) -> str:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return token
    raise HTTPException(status_code=401, detail="Unauthorized")


def _upstream_http_error(err: RuntimeError) -> HTTPException:
    if isinstance(err, UpstreamError):
        return HTTPException(status_code=err.status_code, detail=err.message)
    if isinstance(err, UpstreamConnectionError):
        return HTTPException(status_code=502, detail=str(err))
    return HTTPException(status_code=500, detail=str(err))


def _generate_result(
    response: GenerateFlashcardsResponse, topic: str, difficulty: Difficulty
) -> GenerateResult:
    return GenerateResult(
        flashcard_set_id=response.flashcard_set_id,
        topic=topic,
        difficulty=difficulty,
        flashcards=to_flashcards(response, topic),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/flashcards/generate")
async def api_generate(request: Request):
    try:
        raw = await request.body()
        try:
            payload = GenerateFlashcardsRequest.model_validate_json(raw or b"{}")
        except ValidationError as err:
            return JSONResponse(
                status_code=400,
                content={
                    "message": "Invalid request",
                    "errors": json.loads(err.json(include_url=False)),
                },
            )

        if config.use_upstream():
            target_url = f"{config.get_api_base_url()}/flashcards/generate"
            logger.info("Forwarding generate request to upstream: POST %s", target_url)
            body = to_upstream_request(payload).model_dump_json(exclude_none=True)
            return await proxy.forward(request, target_url, content=body.encode())

        logger.info("Upstream disabled, answering generate request with fallback")
        return {
            "message": "Flashcards generated successfully (fallback)",
            "topic": payload.topic,
            "flashcards": [],
        }
    except Exception:
        logger.exception("Error generating flashcards")
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.post("/api/flashcards/generate-from-file", response_model=GenerateResult)
async def api_generate_from_file(
    file: UploadFile = File(...),
    difficulty: Difficulty = Form(Difficulty.INTERMEDIATE),
    authorization: Optional[str] = Header(default=None),
):
    token = _bearer_token(authorization)
    try:
        if file.size is not None:
            check_size(file.size)
        data = await file.read()
        summary = build_summary_request(
            data,
            file.content_type or "application/octet-stream",
            file_name=file.filename,
            difficulty=difficulty,
        )
        response = await generate_from_summary(summary, token)
    except ContentRejectedError as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    except RuntimeError as err:
        raise _upstream_http_error(err) from err

    return _generate_result(response, file.filename or "", difficulty)


@app.post("/api/flashcards/generate-from-text", response_model=GenerateResult)
async def api_generate_from_text(
    req: GenerateFromSummaryRequest,
    authorization: Optional[str] = Header(default=None),
):
    token = _bearer_token(authorization)
    try:
        check_text(req.content)
        response = await generate_from_summary(req, token)
    except ContentRejectedError as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    except RuntimeError as err:
        raise _upstream_http_error(err) from err

    return _generate_result(response, req.file_name or "", req.difficulty)


@app.get("/api/users/{user_id}/dashboard", response_model=DashboardSummary)
async def api_dashboard(
    user_id: str,
    search: str = "",
    authorization: Optional[str] = Header(default=None),
):
    token = _bearer_token(authorization)
    try:
        sets = await get_user_flashcard_sets(user_id, token)
    except RuntimeError as err:
        raise _upstream_http_error(err) from err
    return summarize_sets(sets, search)


@app.api_route(
    "/api/v1/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
)
async def api_proxy(path: str, request: Request):
    return await proxy.forward(request, f"{config.get_api_base_url()}/{path}")


if __name__ == "__main__":
    uvicorn.run("memoriza.main:app", host="0.0.0.0", port=8000, reload=True)
