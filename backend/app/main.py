"""
Point d'entrée principal de l'API ChurchAdmin.
Démarrage : uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.models  # noqa: F401 enregistre tous les modèles dans Base.metadata avant les routers
from app.config import settings
from app.routers import attendance, calendar, members, ministries, parties, points

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s : %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ChurchAdmin API",
    description="API d'administration d'église : appels, points, calendrier et membres",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS : tous les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Ministry-Id"],
)


app.include_router(members.router)
app.include_router(ministries.router)
app.include_router(attendance.router)
app.include_router(points.router)
app.include_router(calendar.router)
app.include_router(parties.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte les exceptions non gérées pour que la réponse 500
    passe par CORSMiddleware et reçoive ses en-têtes.
    """
    logger.error("Exception non gérée sur %s : %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "ChurchAdmin API", "version": "0.1.0", "env": settings.ENV}
