# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import init_db
from configurator.catalog import load_catalog_file
from configurator.session import SessionStore
from routes.configurator import router as configurator_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

# Audit log tables
init_db()

app = FastAPI(title="Product Configurator API", version="1.0.0")

# Catalog is parsed once; a broken file degrades to an empty configurator
app.state.sessions = SessionStore(load_catalog_file(settings.CATALOG_PATH))

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(configurator_router)

@app.get("/")
def read_root():
    return {"message": "Product Configurator API is running"}
