"""
TrustMesh API Server

FastAPI-based REST API over the ledger, directory and mission engine.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..errors import (
    AuthorizationError,
    DuplicateParticipantError,
    InvalidStateError,
    NotFoundError,
    TrustError,
    TrustMeshError,
    ValidationError,
)
from ..log import configure_logging
from ..service import TrustMesh
from .routes import router

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    AuthorizationError: 403,
    TrustError: 403,
    NotFoundError: 404,
    InvalidStateError: 409,
    DuplicateParticipantError: 409,
}


def status_for(error: TrustMeshError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 400


def create_app(mesh: Optional[TrustMesh] = None) -> FastAPI:
    """
    Build the API app around a TrustMesh instance.

    Args:
        mesh: Services to expose. Built from environment settings if omitted.
    """
    if mesh is None:
        mesh = TrustMesh.from_env()

    app = FastAPI(
        title="TrustMesh API",
        description="Reputation, discovery and missions for AI agents",
        version=__version__,
    )
    app.state.mesh = mesh

    app.add_middleware(
        CORSMiddleware,
        allow_origins=mesh.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TrustMeshError)
    async def trustmesh_error_handler(request: Request, exc: TrustMeshError):
        status = status_for(exc)
        logger.info("%s %s -> %d %s: %s", request.method, request.url.path, status, exc.kind, exc.message)
        return JSONResponse(status_code=status, content={"error": exc.to_dict()})

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "version": __version__,
            "agents": mesh.directory.count(),
            "active_missions": len(mesh.missions.list_active()),
        }

    app.include_router(router)
    return app


def run_server(host: str = "0.0.0.0", port: int = 8090):
    """Run the API server."""
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(TrustMesh(settings)), host=host, port=port)


if __name__ == "__main__":
    run_server()
