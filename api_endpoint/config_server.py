#!/usr/bin/env python3
"""
Onboarding Agent - Configuration Document Server

A small FastAPI app the config editor UI talks to. It reads and replaces the
two JSON documents the agent builds its system prompt from:

    GET  /api/config/agent        -> config/agent.json
    POST /api/config/agent        <- replaces config/agent.json
    GET  /api/config/onboarding   -> config/onboarding.json
    POST /api/config/onboarding   <- replaces config/onboarding.json

Usage:
    python -m api_endpoint.config_server --port=8000

Running conversations are not affected by edits; a new conversation (or
/reset in the shell) picks them up.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agent.config_documents import DOCUMENT_NAMES, ConfigDocumentError, ConfigDocumentStore
from onboard_cli.config import load_settings

logger = logging.getLogger(__name__)


def create_app(config_dir: Optional[Path] = None) -> FastAPI:
    """Build the app around a document store rooted at *config_dir*."""
    store = ConfigDocumentStore(config_dir or load_settings().config_dir)

    app = FastAPI(
        title="Onboarding Agent Config Server",
        description="Read and replace the agent and onboarding configuration documents",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store

    @app.get("/api/config/{name}")
    async def read_document(name: str):
        if name not in DOCUMENT_NAMES:
            return JSONResponse({"error": f"Unknown document: {name}"}, status_code=404)
        try:
            return JSONResponse(store.read(name))
        except ConfigDocumentError as e:
            logger.warning("Failed to read %s document: %s", name, e)
            return JSONResponse({"error": str(e)}, status_code=500)

    @app.post("/api/config/{name}")
    async def write_document(name: str, request: Request):
        if name not in DOCUMENT_NAMES:
            return JSONResponse({"error": f"Unknown document: {name}"}, status_code=404)
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)
        if not isinstance(body, dict):
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)
        try:
            store.write(name, body)
        except ConfigDocumentError as e:
            logger.warning("Failed to write %s document: %s", name, e)
            return JSONResponse({"error": str(e)}, status_code=500)
        return {"ok": True}

    return app


def main(host: str = "127.0.0.1", port: int = 8000, config_dir: str = None):
    """
    Start the configuration server.

    Args:
        host (str): Interface to bind.
        port (int): Port to listen on.
        config_dir (str): Directory holding agent.json and onboarding.json.
    """
    import uvicorn

    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    app = create_app(Path(config_dir).expanduser() if config_dir else None)
    print(f"Serving config documents from {app.state.store.config_dir} on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


def cli() -> None:
    import fire
    fire.Fire(main)


if __name__ == "__main__":
    cli()
