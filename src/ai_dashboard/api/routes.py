from fastapi import FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse

from ai_dashboard.config import settings
from ai_dashboard.core.analyst_gateway import ask_analyst
from ai_dashboard.core.filtering import apply_directive
from ai_dashboard.core.ingestion import load_dataset
from ai_dashboard.core.metrics import summarize, trend_insight
from ai_dashboard.core.query_context import extract_directive
from ai_dashboard.models import ChatRequest
from ai_dashboard.utils.exceptions import AnalystUnavailableError, AppException, InvalidQueryError
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs"
)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _generic_failure() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "The AI service encountered an error. Please try again."},
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "message": "AI Sales Dashboard API is running"}


@app.post("/upload")
async def upload_file(file: UploadFile = File(...)):
    """
    Parses an uploaded CSV/XLSX file into row objects.
    """
    logger.info(f"Received file upload: {file.filename}")
    content = await file.read()
    dataset = load_dataset(content, file.filename)

    return {
        "message": "File uploaded and processed successfully.",
        "filename": dataset.filename,
        "rows": len(dataset.rows),
        "columns": dataset.columns,
        "data": dataset.rows,
    }


@app.post("/filter")
def filter_view(payload: ChatRequest):
    """
    The dashboard view a chat message would produce, without calling the model.
    """
    directive = extract_directive(payload.message)
    view = apply_directive(payload.dataset(), directive)
    metrics = summarize(view.rows)
    insight = trend_insight(view.rows)

    return {
        "directive": directive.model_dump(mode="json") if directive else None,
        "context": view.context_label,
        "active": view.active,
        "rows": view.rows,
        "metrics": metrics.model_dump() if metrics else None,
        "insight": insight.model_dump() if insight else None,
    }


@app.post("/chat")
def chat(payload: ChatRequest):
    """
    Forwards a message and the uploaded rows to the AI analyst.
    Expected Payload: {"message": "...", "fileData": [...], "fileName": "sales.csv"}
    """
    if not payload.message or not payload.message.strip():
        raise InvalidQueryError("Message field is required.")

    logger.info(f"Received message: {payload.message}")
    dataset = payload.dataset()
    if dataset is not None:
        logger.info(f"File data available: {dataset.filename} with {len(dataset.rows)} rows")

    try:
        reply = ask_analyst(payload.message, dataset)
    except AnalystUnavailableError as e:
        logger.error(f"Error in chat endpoint: {e.message}")
        return _generic_failure()
    except AppException:
        raise
    except Exception as e:
        logger.error(f"Error in chat endpoint: {str(e)}", exc_info=True)
        return _generic_failure()

    if not reply.ok:
        return JSONResponse(status_code=reply.status_code, content={"error": reply.error})
    return {"response": reply.text}
