"""FastAPI entrypoint for the glossary backend."""

from __future__ import annotations

from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings
from exceptions import TermNotFoundError
from glossary_service import GlossaryService, entry_payload
from logger import configure_logging, get_logger
from models import GlossaryEntryPayload, GlossaryResponsePayload, User
from rfd_store import build_rfd_store
from storage import TermStorage

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(
    title="Glossary Backend",
    description="Glossary terms cross-referenced against RFDs",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

storage = TermStorage(settings.glossary_dir, allowed_terms=settings.allowed_terms)
rfd_store = build_rfd_store(settings)
glossary_service = GlossaryService(storage=storage, rfd_store=rfd_store)


def current_user(authorization: Optional[str] = Header(default=None)) -> User:
    """Identity forwarded to the RFD store; anonymous without a bearer token."""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[len("bearer ") :].strip()
        return User(token=token or None)
    return User()


@app.get("/", tags=["health"])
async def root():
    return {"status": "ok", "message": "Glossary backend is running"}


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "message": "Glossary backend is running"}


@app.get("/glossary", response_model=GlossaryResponsePayload, tags=["glossary"])
async def glossary(user: User = Depends(current_user)):
    try:
        entries = await glossary_service.entries(user)
        known_terms = [entry.term for entry in entries]
        return GlossaryResponsePayload(entries=[entry_payload(e, known_terms) for e in entries])
    except Exception as exc:
        logger.exception("Failed to build glossary")
        raise HTTPException(status_code=500, detail=str(exc))


@app.get("/glossary/{term}", response_model=GlossaryEntryPayload, tags=["glossary"])
async def glossary_term(term: str, user: User = Depends(current_user)):
    try:
        entry = await glossary_service.entry(term, user)
        return entry_payload(entry, glossary_service.term_names())
    except TermNotFoundError:
        raise HTTPException(status_code=404, detail="Term not found")
    except Exception as exc:
        logger.exception("Failed to build glossary entry %r", term)
        raise HTTPException(status_code=500, detail=str(exc))


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
