import secrets
from typing import Any

from aiohttp import web
from aiohttp.web_request import FileField

from src.config.logger_config import logger
from src.config.settings import AppSettings
from src.importing.api import build_analysis_workflow, build_import_workflow, build_ingest_workflow
from src.importing.application.workflows.analyze_pages import AnalyzePagesWorkflow
from src.importing.application.workflows.import_files import ImportFilesWorkflow
from src.importing.application.workflows.ingest_file import IngestFileCommand, IngestFileWorkflow
from src.importing.domain.models import NotesRequestError, UploadedFile
from src.importing.domain.rules import get_extension
from src.notes.domain.models import InvalidSlugError, PageMoveError
from src.notes.domain.rules import join_slug, split_slug
from src.notes.infrastructure.fs_page_store import FilePageStore

MAX_UPLOAD_BYTES = 200 * 1024 * 1024

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

SETTINGS_KEY = web.AppKey("settings", AppSettings)
PAGE_STORE_KEY = web.AppKey("page_store", FilePageStore)
IMPORT_WORKFLOW_KEY = web.AppKey("import_workflow", ImportFilesWorkflow)
INGEST_WORKFLOW_KEY = web.AppKey("ingest_workflow", IngestFileWorkflow)
ANALYSIS_WORKFLOW_KEY = web.AppKey("analysis_workflow", AnalyzePagesWorkflow)


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _to_uploaded_file(field: Any) -> UploadedFile | None:
    if not isinstance(field, FileField):
        return None
    return UploadedFile(
        filename=field.filename,
        data=field.file.read(),
        content_type=field.content_type,
    )


async def _read_json(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise NotesRequestError("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise NotesRequestError("Request body must be a JSON object")
    return body


async def handle_import(request: web.Request) -> web.Response:
    workflow = request.app[IMPORT_WORKFLOW_KEY]
    try:
        form = await request.post()
        explanation = form.get("explanation") or ""
        if not isinstance(explanation, str):
            explanation = ""
        files = [f for f in (_to_uploaded_file(field) for field in form.getall("files", [])) if f is not None]
        report = await workflow.run(files, explanation)
    except NotesRequestError as exc:
        return _error(str(exc), 400)
    except Exception as exc:
        logger.exception("Import request failed")
        workflow.sink.record(f"FATAL ERROR: {exc}")
        return _error(str(exc) or "Import failed", 500)
    return web.json_response(report.to_dict())


async def handle_ingest(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    if settings.ingest_api_key:
        expected = f"Bearer {settings.ingest_api_key}"
        provided = request.headers.get("Authorization", "")
        if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            return _error("Unauthorized", 401)

    try:
        form = await request.post()
        slug = form.get("slug")
        title = form.get("title")
        result = request.app[INGEST_WORKFLOW_KEY].run(
            IngestFileCommand(
                file=_to_uploaded_file(form.get("file")),
                slug=slug if isinstance(slug, str) else None,
                title=title if isinstance(title, str) and title else None,
            )
        )
    except (NotesRequestError, InvalidSlugError) as exc:
        return _error(str(exc), 400)
    except Exception as exc:
        logger.exception("Ingest request failed")
        return _error(str(exc) or "Ingest failed", 500)
    return web.json_response(result.to_dict())


async def handle_get_page(request: web.Request) -> web.Response:
    slug = request.query.get("slug")
    if not slug:
        return _error("Missing slug", 400)
    try:
        content = request.app[PAGE_STORE_KEY].get_page_content(split_slug(slug))
    except InvalidSlugError as exc:
        return _error(str(exc), 400)
    return web.json_response({"content": content})


async def handle_save_page(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
        slug = body.get("slug")
        if not slug:
            return _error("Missing slug", 400)
        parts = split_slug(str(slug))
        store = request.app[PAGE_STORE_KEY]
        content = body.get("content")
        if content is not None:
            store.save_page_content(parts, str(content))
        else:
            store.create_page(parts)
    except (NotesRequestError, InvalidSlugError) as exc:
        return _error(str(exc), 400)
    return web.json_response({"ok": True})


async def handle_delete_page(request: web.Request) -> web.Response:
    slug = request.query.get("slug")
    if not slug:
        return _error("Missing slug", 400)
    try:
        request.app[PAGE_STORE_KEY].delete_page(split_slug(slug))
    except InvalidSlugError as exc:
        return _error(str(exc), 400)
    return web.json_response({"ok": True})


async def handle_update_page(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
        slug = body.get("slug")
        if not slug:
            return _error("Missing slug", 400)
        parts = split_slug(str(slug))
        store = request.app[PAGE_STORE_KEY]

        new_parent = body.get("newParent")
        if new_parent is not None:
            new_slug = store.move_page(parts, split_slug(str(new_parent)))
            return web.json_response({"newSlug": join_slug(new_slug)})

        new_name = body.get("newName")
        if not new_name:
            return _error("Missing newName or newParent", 400)
        new_slug = store.rename_page(parts, str(new_name))
    except (NotesRequestError, InvalidSlugError, PageMoveError) as exc:
        return _error(str(exc), 400)
    return web.json_response({"newSlug": join_slug(new_slug)})


async def handle_tree(request: web.Request) -> web.Response:
    tree = request.app[PAGE_STORE_KEY].get_tree()
    return web.json_response([node.to_dict() for node in tree])


async def handle_asset(request: web.Request) -> web.Response:
    segments = request.match_info["path"].split("/")
    if any(segment == ".." or "\\" in segment for segment in segments):
        return _error("Invalid path", 400)

    mime_type = IMAGE_MIME_TYPES.get(get_extension(segments[-1]))
    if mime_type is None:
        return _error("Unsupported file type", 400)

    try:
        file_path = request.app[PAGE_STORE_KEY].get_asset_path(segments)
    except InvalidSlugError:
        return _error("Invalid path", 400)
    if not file_path.is_file():
        return _error("Not found", 404)

    return web.Response(
        body=file_path.read_bytes(),
        content_type=mime_type,
        headers={"Cache-Control": "public, max-age=3600"},
    )


async def handle_analysis(request: web.Request) -> web.Response:
    try:
        body = await _read_json(request)
        slugs = body.get("slugs") or []
        if not isinstance(slugs, list):
            return _error("slugs must be a list", 400)
        analysis = await request.app[ANALYSIS_WORKFLOW_KEY].run(
            [str(slug) for slug in slugs],
            context=str(body.get("context") or ""),
            prompt=str(body.get("prompt") or ""),
        )
    except (NotesRequestError, InvalidSlugError) as exc:
        return _error(str(exc), 400)
    except Exception as exc:
        logger.exception("Analysis request failed")
        return _error(str(exc) or "Analysis failed", 500)
    return web.json_response({"analysis": analysis})


def create_app(
    settings: AppSettings | None = None,
    *,
    page_store: FilePageStore | None = None,
    import_workflow: ImportFilesWorkflow | None = None,
    ingest_workflow: IngestFileWorkflow | None = None,
    analysis_workflow: AnalyzePagesWorkflow | None = None,
) -> web.Application:
    settings = settings or AppSettings.from_env()
    page_store = page_store or FilePageStore(settings.notes_dir)

    app = web.Application(client_max_size=MAX_UPLOAD_BYTES)
    app[SETTINGS_KEY] = settings
    app[PAGE_STORE_KEY] = page_store
    app[IMPORT_WORKFLOW_KEY] = import_workflow or build_import_workflow(settings, page_store)
    app[INGEST_WORKFLOW_KEY] = ingest_workflow or build_ingest_workflow(settings, page_store)
    app[ANALYSIS_WORKFLOW_KEY] = analysis_workflow or build_analysis_workflow(settings, page_store)

    app.router.add_post("/api/import", handle_import)
    app.router.add_post("/api/ingest", handle_ingest)
    app.router.add_get("/api/notes", handle_get_page)
    app.router.add_post("/api/notes", handle_save_page)
    app.router.add_delete("/api/notes", handle_delete_page)
    app.router.add_patch("/api/notes", handle_update_page)
    app.router.add_get("/api/notes/tree", handle_tree)
    app.router.add_get("/api/notes/images/{path:.+}", handle_asset)
    app.router.add_post("/api/analysis", handle_analysis)
    return app


def run_server(settings: AppSettings | None = None) -> None:
    settings = settings or AppSettings.from_env()
    logger.info(
        "Starting notes server: host={}, port={}, notes_dir={}, model_configured={}",
        settings.host,
        settings.port,
        str(settings.notes_dir),
        bool(settings.anthropic_api_key),
    )
    web.run_app(create_app(settings), host=settings.host, port=settings.port)
