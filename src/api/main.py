from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import List

from src.api.service import GraphService
from src.api.settings import Settings
from src.api.schemas import (
    CommitResponse,
    FoldedSectionResponse,
    HealthResponse,
    NodeResponse,
    RefreshResponse,
)
from src.history.errors import ExecutionError

import logging

settings = Settings.from_env()

# Configure Logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="First-Parent Graph API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Repository defaults to the one containing CWD. Can be overridden by env var REPO_ROOT.
service = GraphService(settings)

@app.on_event("startup")
async def startup_event():
    logger.info(f"Serving first-parent history of {settings.repo_root}")
    await service.start()

@app.on_event("shutdown")
def shutdown_event():
    service.stop()

@app.post("/api/refresh", response_model=RefreshResponse)
async def refresh():
    """Reload first-parent history and drop every unfolded merge."""
    try:
        return await service.refresh()
    except ExecutionError as e:
        raise HTTPException(status_code=502, detail=f"Failed to read git log: {e}")

@app.get("/api/commits", response_model=List[CommitResponse])
def list_top_level():
    """First-parent commits, newest first."""
    return service.list_top_level()

@app.get("/api/commits/{sha}", response_model=CommitResponse)
def get_commit(sha: str):
    commit = service.get_commit(sha)
    if not commit:
        raise HTTPException(status_code=404, detail="Commit not found")
    return commit

@app.get("/api/commits/{sha}/expand", response_model=List[CommitResponse])
async def expand(sha: str):
    """Commits merged in by a merge commit, each shown once."""
    return await service.expand(sha)

@app.get("/api/commits/{sha}/sections", response_model=List[FoldedSectionResponse])
async def get_folded_sections(sha: str):
    return await service.get_folded_sections(sha)

@app.get("/api/nodes", response_model=List[NodeResponse])
def list_nodes():
    return service.list_nodes()

@app.get("/api/nodes/{sha}/children", response_model=List[NodeResponse])
async def node_children(sha: str):
    children = await service.node_children(sha)
    if children is None:
        raise HTTPException(status_code=404, detail="Commit not found")
    return children

@app.get("/health", response_model=HealthResponse)
def health_check():
    return service.health()

def main():
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)

if __name__ == "__main__":
    main()
