"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from festplanner.api.routes import health, notion, parse, share
from festplanner.config import settings

app = FastAPI(
    title="Festival Planner API",
    description="Screening extraction, Notion sync and schedule sharing for IFFR",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(parse.router, prefix="/api", tags=["parse"])
app.include_router(notion.router, prefix="/api", tags=["notion"])
app.include_router(share.router, prefix="/api", tags=["share"])


def run() -> None:
    import uvicorn

    uvicorn.run("festplanner.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
