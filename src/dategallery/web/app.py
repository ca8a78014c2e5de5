"""Flask application exposing the upload, listing, and reconciliation endpoints.

Every endpoint answers with HTTP 200 and a JSON body carrying ``success`` and
``message``; failures never surface as error pages.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from dategallery.config.models import GalleryConfig
from dategallery.reconcile import reconcile
from dategallery.store import (
    EmptyBucketError,
    GalleryError,
    GalleryStores,
    IncomingFile,
    UploadResult,
    validate_date,
)
from dategallery.uploads import UploadCoordinator

LOGGER = logging.getLogger(__name__)

EXTENSION_KEY = "dategallery"


def _upload_success(result: UploadResult) -> dict[str, Any]:
    return {
        "success": True,
        "message": "Files uploaded successfully",
        "date": result.date,
        "files": [{"name": item.name, "path": item.path} for item in result.files],
        "filePaths": result.file_paths,
        "file_count": result.file_count,
        "skipped": result.skipped,
        "failed": result.failed,
        "warnings": result.warnings,
    }


def _upload_failure(message: str, *, date: str = "", code: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "message": message,
        "date": date,
        "files": [],
        "filePaths": [],
    }
    if code:
        payload["error"] = code
    return payload


def _incoming_files() -> list[IncomingFile]:
    parts = request.files.getlist("images") + request.files.getlist("images[]")
    return [
        IncomingFile(name=part.filename, content=part.read(), mime_type=part.mimetype or "")
        for part in parts
        if part.filename
    ]


def create_app(config: GalleryConfig | None = None) -> Flask:
    """Build the Flask application for ``config``.

    Args:
        config: Loaded gallery configuration; defaults are used when omitted.

    Returns:
        Flask: Configured application with upload, list, and reconcile routes.
    """
    config = config or GalleryConfig()
    stores = GalleryStores.from_config(config)
    coordinator = UploadCoordinator.from_stores(stores, config.uploads)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.server.max_request_mb * 1024 * 1024
    app.extensions[EXTENSION_KEY] = stores

    @app.post("/upload")
    @app.post("/uploader.php")
    def upload() -> Any:
        raw_date = (request.form.get("date") or "").strip()
        try:
            result = coordinator.submit(raw_date, _incoming_files())
        except GalleryError as exc:
            LOGGER.info("Upload rejected: %s", exc)
            return jsonify(_upload_failure(str(exc), date=raw_date, code=exc.code))
        return jsonify(_upload_success(result))

    @app.get("/list-images")
    @app.get("/list-images.php")
    def list_images() -> Any:
        payload: dict[str, Any] = {
            "success": False,
            "date": "",
            "images": [],
            "directory_exists": False,
        }
        try:
            date = validate_date(request.args.get("date"))
            payload["date"] = date
            images = stores.buckets.list_images(date)
        except EmptyBucketError as exc:
            payload["directory_exists"] = True
            payload["message"] = str(exc)
        except GalleryError as exc:
            payload["message"] = str(exc)
        else:
            payload.update(success=True, images=images, count=len(images), directory_exists=True)
        return jsonify(payload)

    @app.route("/update-folder-list", methods=["GET", "POST"])
    @app.route("/update-folder-list.php", methods=["GET", "POST"])
    def update_folder_list() -> Any:
        try:
            result = reconcile(stores.buckets, stores.index)
        except GalleryError as exc:
            LOGGER.warning("Folder list rebuild failed: %s", exc)
            return jsonify(
                {"success": False, "message": str(exc), "folder_count": 0, "folders": []}
            )
        return jsonify(
            {
                "success": True,
                "message": "Folder list updated successfully",
                "folder_count": result.folder_count,
                "folders": [
                    status.model_dump(exclude_none=True) for status in result.folders
                ],
            }
        )

    @app.errorhandler(RequestEntityTooLarge)
    def request_too_large(exc: RequestEntityTooLarge) -> Any:
        limit = config.server.max_request_mb
        return jsonify(_upload_failure(f"Upload exceeds the {limit} MB request limit."))

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception) -> Any:
        if isinstance(exc, HTTPException):
            response = jsonify({"success": False, "message": exc.description or exc.name})
            response.status_code = exc.code or 500
            return response
        LOGGER.exception("Unhandled error while serving %s", request.path)
        return jsonify({"success": False, "message": f"Unexpected server error: {exc}"})

    return app


__all__ = ["EXTENSION_KEY", "create_app"]
