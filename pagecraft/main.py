import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagecraft import __version__, config
from pagecraft.errors import DEFAULT_SUGGESTION, PageCraftError
from pagecraft.logger import get_logger
from pagecraft.models import ErrorResponse
from pagecraft.routes import router

logger = get_logger(__name__)

app = FastAPI(title="PageCraft", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PageCraftError)
async def pagecraft_error_handler(request: Request, exc: PageCraftError):
    logger.warning(f"{request.method} {request.url.path} failed ({exc.status_code}): {exc.message}")
    body = ErrorResponse(error=exc.message, suggestion=exc.suggestion)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(BodyValidationError)
async def body_validation_handler(request: Request, exc: BodyValidationError):
    body = ErrorResponse(error=f"Invalid request body: {exc.errors()}", suggestion=DEFAULT_SUGGESTION)
    return JSONResponse(status_code=422, content=body.model_dump())


app.include_router(router)


def run():
    uvicorn.run("pagecraft.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
