"""FastAPI application - serves the narration API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bassline.api.structure import router as structure_router
from bassline.api.websocket import router as ws_router

app = FastAPI(title="Bassline", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(structure_router, prefix="/api")
app.include_router(ws_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run():
    import uvicorn
    from bassline.config import settings
    uvicorn.run(
        "bassline.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
