import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from logging_config import setup_logging
from models import ErrorResponse, QuizRequest, QuizResponse
from services.generation import (
    QuizGenerationError,
    QuizGenerator,
    QuizTimeoutError,
    create_quiz_generator,
)

setup_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

MISSING_FIELDS = "Missing required fields"
TIMEOUT_MESSAGE = "Request timed out. Please try with fewer questions."
GENERIC_FAILURE = "Failed to generate quiz. Please try again."
NOT_CONFIGURED = "OpenAI API key is not configured"
GENERATE_QUIZ_PATH = "/api/generate-quiz"


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.quiz_generator = create_quiz_generator(get_settings())
    if app.state.quiz_generator is None:
        logger.warning("OPENAI_API_KEY is not set; quiz generation will answer 500")
    yield
    if app.state.quiz_generator is not None:
        await app.state.quiz_generator.client.close()


app = FastAPI(
    title="AI Quiz Generator API",
    description="Generate multiple-choice quizzes on any topic with an LLM.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error shape ───────────────────────────────────────────────────────────────
# The frontend only understands {"questions": [...]} or {"error": "..."}.

def _describe_validation_error(errors: list[dict]) -> str:
    for err in errors:
        if err["type"] in ("missing", "blank_field") or (
            err.get("input") is None and err["type"] != "json_invalid"
        ):
            return MISSING_FIELDS

    first = errors[0]
    if first["type"] == "json_invalid":
        return "Request body is not valid JSON"
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = loc[-1] if loc else "request body"
    return f"Invalid {field}: {first['msg']}"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc.errors())})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled %s on %s", type(exc).__name__, request.url.path)
    return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE})


# ── Credential check ──────────────────────────────────────────────────────────
@app.middleware("http")
async def require_api_key(request: Request, call_next):
    """Answer 500 before the body is read when no API key is configured."""
    if request.method == "POST" and request.url.path == GENERATE_QUIZ_PATH:
        if getattr(request.app.state, "quiz_generator", None) is None:
            return JSONResponse(status_code=500, content={"error": NOT_CONFIGURED})
    return await call_next(request)


def get_quiz_generator(request: Request) -> QuizGenerator:
    generator = getattr(request.app.state, "quiz_generator", None)
    if generator is None:
        raise HTTPException(status_code=500, detail=NOT_CONFIGURED)
    return generator


# ── Info / Health ─────────────────────────────────────────────────────────────
@app.get("/")
async def root():
    return {
        "message": "AI Quiz Generator API",
        "status": "running",
        "endpoints": {"generate_quiz": GENERATE_QUIZ_PATH, "health": "/health"},
    }


@app.get("/health")
async def health():
    return {"status": "ok"}


# ── Generate Quiz ─────────────────────────────────────────────────────────────
@app.post(
    GENERATE_QUIZ_PATH,
    response_model=QuizResponse,
    responses={
        400: {"model": ErrorResponse},
        408: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_quiz_endpoint(
    data: QuizRequest,
    generator: QuizGenerator = Depends(get_quiz_generator),
):
    """
    Generate multiple-choice questions about a topic.

    - **topic**: subject of the quiz
    - **numQuestions**: how many questions (number or numeric string)
    - **difficulty**: easy, medium or hard
    """
    try:
        questions = await generator.generate(data.topic, data.num_questions, data.difficulty)
    except QuizTimeoutError as e:
        logger.warning("Quiz generation timed out: %s", e)
        raise HTTPException(status_code=408, detail=TIMEOUT_MESSAGE)
    except QuizGenerationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("Error generating quiz")
        raise HTTPException(status_code=500, detail=str(e) or GENERIC_FAILURE)
    return QuizResponse(questions=questions)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
