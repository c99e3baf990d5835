from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
import logging

from codementor.config import MONGO_URL, MONGO_DB_NAME, CORS_ORIGINS
from codementor.logger import setup_logger
from codementor.app import setup_routes, startup_system

setup_logger()
logger = logging.getLogger(__name__)

app = FastAPI(title="CodeMentor API")

# MongoDB Configuration
client = AsyncIOMotorClient(MONGO_URL)
db = client[MONGO_DB_NAME]


@app.on_event("startup")
async def startup_event():
    await startup_system(db)


@app.on_event("shutdown")
async def shutdown_event():
    client.close()


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Server error", "message": str(exc)})


# ==================== ROUTER REGISTRATION ====================
setup_routes(app)
# ============================================================


@app.get("/health")
def health():
    return {"status": "ok"}
