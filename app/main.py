import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.exceptions import register_exception_handlers
from app.middleware import RequestLogMiddleware
from app.routers import blogger, blogs, comments, posts, sa_blogs, testing, users

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Blog Platform API",
    description="Blogs, posts and comments with moderation-aware likes",
    version="1.0.0",
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(blogs.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(blogger.router)
app.include_router(users.router)
app.include_router(sa_blogs.router)
if settings.TESTING_ENDPOINTS_ENABLED:
    app.include_router(testing.router)

logger.info("Application configured (env=%s)", settings.APP_ENV)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
