"""Application FastAPI principale de la console d'administration."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from admin_console.api import auth, menu_preferences
from admin_console.core.config import settings
from admin_console.core.logging_config import configure_logging


configure_logging()

app = FastAPI(title="Admin Console API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(menu_preferences.router, prefix="/api/menu-preferences", tags=["menu-preferences"])


@app.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Renvoie l'état de santé générique du service."""
    return {"status": "ok"}
