# config.py
import os
from dotenv import load_dotenv

load_dotenv()

# --- CONFIGURACIÓN DEL IXC (API DE FACTURACIÓN) ---
# URL base del webservice, p. ej. https://ixc.midominio.com.br/webservice/v1
IXC_BASE_URL = os.getenv("IXC_BASE_URL")

# Credencial en formato "usuario:token" o un header Authorization completo
IXC_TOKEN = os.getenv("IXC_TOKEN")

# Timeout en segundos para cada llamada HTTP
IXC_REQUEST_TIMEOUT = float(os.getenv("IXC_REQUEST_TIMEOUT", "30"))

# --- BÚSQUEDA DEL BOLETO GENERADO POR LA RENEGOCIACIÓN ---
# El IXC crea el boleto nuevo de forma asíncrona tras finalizar
REPLACEMENT_POLL_ATTEMPTS = int(os.getenv("REPLACEMENT_POLL_ATTEMPTS", "8"))
REPLACEMENT_POLL_DELAY_MS = int(os.getenv("REPLACEMENT_POLL_DELAY_MS", "2000"))

# --- API ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]
