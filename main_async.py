import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
from datetime import datetime, timezone
import logging

load_dotenv()

from database.mongo import db, ensure_indexes
from routes import recipe_route
from routes.auth_route import auth_router

# ==== Logging ====
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# ==== FastAPI app ====
app = FastAPI(title="Recipedia API")

# ==== Health Check Endpoint ====
@app.api_route("/", methods=["GET", "HEAD"])
async def root():
    """Root endpoint for health checks"""
    return {
        "status": "ok",
        "message": "Recipedia API is running",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    """Detailed health check endpoint"""
    try:
        await db.command("ping")
        mongo_status = "connected"
    except Exception as e:
        mongo_status = f"error: {str(e)}"

    return {
        "status": "ok",
        "services": {
            "api": "running",
            "mongodb": mongo_status,
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

# ==== Startup Events ====
@app.on_event("startup")
async def startup_event():
    """Create MongoDB indexes on startup"""
    await ensure_indexes(db)
    logger.info("🚀 Backend services initialized")

# Include các routers từ routes
app.include_router(recipe_route.router, prefix="/api/recipes", tags=["Recipes"])
app.include_router(auth_router)

# Dynamic CORS based on environment
ALLOWED_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",
]

FRONTEND_URL = os.getenv("FRONTEND_URL")
if FRONTEND_URL:
    ALLOWED_ORIGINS.append(FRONTEND_URL.rstrip("/"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==== Logging middleware ====
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"Response: {response.status_code}")
    return response

# ==== Error responses: always {"message": ...} ====
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return JSONResponse(status_code=400, content={"message": "; ".join(messages) or "Invalid request"})

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error")  # vẫn log full stacktrace
    message = str(exc) if os.getenv("DEBUG", "False").lower() == "true" else "Server error"
    return JSONResponse(status_code=500, content={"message": message})
