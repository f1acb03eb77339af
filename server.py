# server.py
# FastAPI app for the mobile scanner. Run: uvicorn server:app

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herbaltrace import __version__
from herbaltrace.fastapi.traceability_api import router as traceability_router

app = FastAPI(title="HerbalTrace Mobile API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(traceability_router)


@app.get("/_health")
def _health():
    return {"ok": True, "service": "herbaltrace-mobile"}
