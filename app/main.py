import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.errors import register_exception_handlers
from app.middleware import RequestLogMiddleware
from app.routers import articles, profiles, tags, users
from app.services import build_services

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Conduit API",
    description="RealWorld blogging platform: users, profiles, articles, comments and tags",
    version="1.0.0",
)

# Built once per process; routers reach them through get_services.
app.state.services = build_services(settings)

register_exception_handlers(app)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(profiles.router, prefix=settings.API_PREFIX)
app.include_router(articles.router, prefix=settings.API_PREFIX)
app.include_router(tags.router, prefix=settings.API_PREFIX)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
