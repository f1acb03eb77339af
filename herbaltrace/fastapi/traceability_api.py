# herbaltrace/fastapi/traceability_api.py
# Mobile (FastAPI) version of the consumer scan.

import os
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict

import jwt
from fastapi import APIRouter, Depends, HTTPException, Query, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo import MongoClient

from herbaltrace.errors import HerbalTraceError
from herbaltrace.row_store import RowStore
from herbaltrace.services.traceability.traceability_services import TraceabilityService

# ==========================================================
# CONFIG (must match the Flask app)
# ==========================================================
MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017/herbaltrace_db")
JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "change-me")
TRACE_MAX_WORKERS = int(os.environ.get("TRACE_MAX_WORKERS", "3"))

router = APIRouter(prefix="/api/v1", tags=["traceability"])

bearer = HTTPBearer(scheme_name="AccessToken", bearerFormat="JWT", auto_error=False)


@lru_cache(maxsize=1)
def _default_store() -> RowStore:
    return RowStore(MongoClient(MONGO_URI).get_database())


def get_store() -> RowStore:
    return _default_store()


def get_jwt_secret() -> str:
    return JWT_SECRET_KEY


# ==========================================================
# AUTH HELPERS (validate Flask-issued access tokens)
# ==========================================================
def auth_identity(
    credentials: HTTPAuthorizationCredentials = Security(bearer),
    secret: str = Depends(get_jwt_secret),
) -> Dict[str, Any]:
    if not credentials or (credentials.scheme or "").lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    try:
        payload = jwt.decode(credentials.credentials.strip(), secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Not an access token")
    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return {"profileId": payload["sub"], "role": payload.get("role", "")}


# ==========================================================
# ROUTES
# ==========================================================
@router.get("/traceability/scan")
def scan(
    token: str = Query(..., description="Token read from the product QR code"),
    store: RowStore = Depends(get_store),
):
    if not token.strip():
        raise HTTPException(status_code=400, detail="Please enter a QR code to scan.")
    try:
        trace = TraceabilityService(store, max_workers=TRACE_MAX_WORKERS).resolve(token)
    except HerbalTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"ok": True, "trace": trace.to_dict()}


@router.get("/me")
def me(identity: Dict[str, Any] = Depends(auth_identity), store: RowStore = Depends(get_store)):
    try:
        profile = store.get("profiles", identity["profileId"])
    except HerbalTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"ok": True, "profile": profile}


@router.get("/traceability/_health")
def trace_health():
    return {"ok": True, "source": "traceability_api", "ts": int(datetime.now(timezone.utc).timestamp())}
