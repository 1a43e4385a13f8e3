# main.py
import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
# Importamos los routers de la capa de infraestructura
from app.infrastructure.api.routers import renegotiation_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - [%(funcName)s] - %(message)s'
)

app = FastAPI(
    title="API de Renegociación de Boletos IXCSoft",
    description="Detecta pagos aplicados al boleto equivocado y renegocia el boleto en abierto más antiguo.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(renegotiation_router.router)


@app.get("/", tags=["Health Check"])
def read_root():
    return {"status": "ok", "message": "API de Renegociación de Boletos IXCSoft"}


@app.get("/health", tags=["Health Check"])
def health():
    return {"status": "ok", "timestamp": datetime.now().isoformat()}
