from typing import Optional

from fastapi import Depends, Header, Request

from ..services.identity import IdentityVerifier, parse_bearer
from ..services.play_sessions import SessionWorkflow
from ..services.store import Store


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity


def get_workflow(store: Store = Depends(get_store)) -> SessionWorkflow:
    return SessionWorkflow(store)


def get_current_user_id(
    authorization: Optional[str] = Header(None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> str:
    return verifier.verify(parse_bearer(authorization))
