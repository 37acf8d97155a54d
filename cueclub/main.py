import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cueclub.api.endpoints import automation as automation_endpoints
from cueclub.api.endpoints import tournaments as tournament_endpoints
from cueclub.api.endpoints import matches as match_endpoints
from cueclub.api.endpoints import notifications as notification_endpoints
from cueclub.core.exceptions import CueClubError
from cueclub.core.logging_config import configure_logging
from cueclub import models

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    models.create_all()
    yield


app = FastAPI(title="Cue Club Tournament API", lifespan=lifespan)


@app.exception_handler(CueClubError)
async def cueclub_error_handler(request: Request, exc: CueClubError):
    if exc.status_code >= 500:
        logger.error("%s %s failed at %s: %s", request.method, request.url.path, exc.step, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(automation_endpoints.router, prefix="/automation", tags=["Automation"])
app.include_router(tournament_endpoints.router, prefix="/tournaments", tags=["Tournaments"])
app.include_router(match_endpoints.router, prefix="/matches", tags=["Matches"])
app.include_router(notification_endpoints.router, prefix="/notifications", tags=["Notifications"])


@app.get("/")
async def root():
    return {"message": "Cue Club Tournament API"}


if __name__ == "__main__":
    uvicorn.run("cueclub.main:app", host="0.0.0.0", port=8000, reload=True)
