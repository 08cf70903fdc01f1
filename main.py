import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import cors_headers, require_admin, secured_cors_headers
from config import Settings
from database import Store, build_store
from errors import ValidationError, VidShareError
from hashing import fingerprint
from services import (
    CategoryService,
    ImageUploadService,
    LocalImageStore,
    PageConfigService,
    VideoCatalog,
    parse_batch,
)

logger = logging.getLogger(__name__)

VIDEO_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=600"
CATEGORY_CACHE_CONTROL = "public, max-age=600, stale-while-revalidate=1200"

READ_PATHS = {"/api/get-videos", "/api/get-categories", "/api/get-page-config"}
WRITE_PATHS = {"/api/save-videos", "/api/save-categories", "/api/save-page-config", "/api/upload-page-image"}

router = APIRouter(prefix="/api")
status_router = APIRouter()


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


# Dependencies

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Optional[Store]:
    return request.app.state.store


def get_video_catalog(store: Optional[Store] = Depends(get_store)) -> VideoCatalog:
    return VideoCatalog(store)


def get_category_service(store: Optional[Store] = Depends(get_store)) -> CategoryService:
    return CategoryService(store)


def get_page_configs(store: Optional[Store] = Depends(get_store),
                     settings: Settings = Depends(get_settings)) -> PageConfigService:
    return PageConfigService(store, settings.site_url)


def get_image_uploads(request: Request,
                      page_configs: PageConfigService = Depends(get_page_configs)) -> ImageUploadService:
    return ImageUploadService(page_configs, request.app.state.images)


async def read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        raise ValidationError("Request body is required")
    try:
        return json.loads(body)
    except ValueError:
        raise ValidationError("Request body must be valid JSON")


def etag_matches(header: Optional[str], etag: str) -> bool:
    if not header:
        return False
    for candidate in header.split(","):
        candidate = candidate.strip()
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == etag or candidate == "*":
            return True
    return False


def conditional_json(request: Request, data: List[Dict[str, Any]], cache_control: str) -> Response:
    """JSON response with an ETag; 304 with no body when the client already has it."""
    etag = fingerprint(data)
    headers = {"ETag": etag, "Cache-Control": cache_control}
    if etag_matches(request.headers.get("if-none-match"), etag):
        return Response(status_code=304, headers=headers)
    return JSONResponse(data, headers=headers)


# Read endpoints

@router.get("/get-videos")
def get_videos(request: Request, page: Optional[str] = Query(None),
               catalog: VideoCatalog = Depends(get_video_catalog),
               settings: Settings = Depends(get_settings)):
    """Videos for a page, ordered for display."""
    page = page or settings.default_page
    logger.info("Fetching videos for page: %s", page)
    return conditional_json(request, catalog.list(page), VIDEO_CACHE_CONTROL)


@router.get("/get-categories")
def get_categories(request: Request, page: Optional[str] = Query(None),
                   categories: CategoryService = Depends(get_category_service),
                   settings: Settings = Depends(get_settings)):
    page = page or settings.default_page
    logger.info("Fetching categories for page: %s", page)
    return conditional_json(request, categories.list(page), CATEGORY_CACHE_CONTROL)


@router.get("/get-page-config")
def get_page_config(page: Optional[str] = Query(None),
                    page_configs: PageConfigService = Depends(get_page_configs)):
    """A single page's config when page is given, every config otherwise."""
    return page_configs.get(page)


# Admin endpoints

@router.post("/save-videos", dependencies=[Depends(require_admin)])
async def save_videos(request: Request, catalog: VideoCatalog = Depends(get_video_catalog),
                      settings: Settings = Depends(get_settings)):
    """
    Replace every video of a page.
    Body: [videos...] (default page) or {"videos": [...], "page": "..."}
    """
    page, items = parse_batch(await read_json(request), "videos", settings.default_page)
    return await run_in_threadpool(catalog.replace, page, items)


@router.post("/save-categories", dependencies=[Depends(require_admin)])
async def save_categories(request: Request, categories: CategoryService = Depends(get_category_service),
                          settings: Settings = Depends(get_settings)):
    page, items = parse_batch(await read_json(request), "categories", settings.default_page)
    return await run_in_threadpool(categories.replace, page, items)


@router.post("/save-page-config", dependencies=[Depends(require_admin)])
async def save_page_config(request: Request, page_configs: PageConfigService = Depends(get_page_configs)):
    """Write only the supplied fields, creating the page's config if needed."""
    return await run_in_threadpool(page_configs.upsert, await read_json(request))


@router.post("/upload-page-image", dependencies=[Depends(require_admin)])
async def upload_page_image(request: Request, uploads: ImageUploadService = Depends(get_image_uploads)):
    """
    Store a base64 share image and point the page's ogImageUrl at it.
    Body: {"page": "...", "image": "<base64>", "contentType": "image/png"}
    """
    return await run_in_threadpool(uploads.upload, await read_json(request))


# Status and assets

@status_router.get("/")
def read_root():
    return {"message": "VidShare backend running"}


@status_router.get("/test")
def test_database(request: Request):
    store = request.app.state.store
    settings = request.app.state.settings
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.database_url else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
        "admin_token": "✅ Set" if settings.admin_token else "❌ Not Set",
    }
    if store is None:
        response["database"] = "⚠️  Not configured, serving defaults"
        return response

    response["database"] = "✅ Available"
    response["database_name"] = settings.database_name if store.name == "mongodb" else store.name
    try:
        store.ping()
        response["connection_status"] = "Connected"
        response["collections"] = store.collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except VidShareError as e:
        response["database"] = f"⚠️  Connected but Error: {e.message[:50]}"
    return response


@status_router.get("/assets/{filename}")
def serve_asset(filename: str, request: Request):
    """Serve an uploaded page image"""
    images: LocalImageStore = request.app.state.images
    path = images.path(filename)
    if os.path.basename(filename) != filename or not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)


# Error handlers

async def handle_vidshare_error(request: Request, exc: VidShareError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def handle_request_validation(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": f"Invalid request: {exc.errors()}"}, status_code=400)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("%s %s crashed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse({"error": str(exc) or "Internal server error"}, status_code=500)


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    """
    Build the API around an explicit store.
    Without a store one is built from settings; None means no database.
    """
    settings = settings or Settings.from_env()
    if store is None:
        store = build_store(settings)

    app = FastAPI(title="VidShare API")
    app.state.settings = settings
    app.state.store = store
    app.state.images = LocalImageStore(settings.upload_dir)

    @app.middleware("http")
    async def apply_cors(request: Request, call_next):
        path = request.url.path
        if path in WRITE_PATHS:
            headers = secured_cors_headers(settings.allowed_origin)
        elif path in READ_PATHS:
            headers = cors_headers()
        else:
            return await call_next(request)

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)
        response = await call_next(request)
        response.headers.update(headers)
        return response

    app.add_exception_handler(VidShareError, handle_vidshare_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)
    app.include_router(status_router)
    return app


settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
