import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arcana.errors import DomainError
from arcana.routes.progress_routes import router as progress_router
from arcana.routes.question_routes import router as question_router
from arcana.routes.reading_routes import router as reading_router

log = logging.getLogger("arcana.api")

app = FastAPI(title="Arcana Ledger", version="0.1.0")

app.include_router(reading_router)
app.include_router(question_router)
app.include_router(progress_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    log.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
def health():
    return {"ok": True}
