"""
API Namespaces - Organized endpoint groups
"""

from flask import current_app, request, send_file
from flask_restx import Namespace, Resource
from werkzeug.exceptions import RequestEntityTooLarge

from ...application.file_share_service import FileShareService
from ...domain.errors import (
    AccessDeniedError,
    AuthenticationRequiredError,
    ErrorCategory,
    FileConflictError,
    FileGoneError,
    SharedFileNotFoundError,
    StorageError,
    ValidationError,
    create_error_response,
)
from ...domain.file_storage import SharedFile
from ..health import get_health_status
from ..identity import current_identity
from .models import (
    ALL_MODELS,
    error_response,
    file_list_response,
    file_metadata,
    health_response,
    upload_parser,
    upload_response,
)


def _service() -> FileShareService:
    return current_app.container.resolve(FileShareService)


def _urls(file: SharedFile) -> dict:
    config = current_app.app_config
    base_url = config.download_base_url
    prefix = config.files_prefix()
    return {
        "downloadUrl": file.generate_download_url(base_url, prefix),
        "viewUrl": file.generate_view_url(base_url, prefix),
    }


def _iso(moment) -> str:
    return moment.isoformat() + "Z"


def _error_response(error: Exception, context: str):
    """Map a domain exception to a structured error response."""
    if isinstance(error, ValidationError):
        return create_error_response(error.category, str(error), status_code=400)
    if isinstance(error, AuthenticationRequiredError):
        return create_error_response(ErrorCategory.AUTH_REQUIRED, str(error), status_code=401)
    if isinstance(error, AccessDeniedError):
        return create_error_response(ErrorCategory.ACCESS_DENIED, str(error), status_code=403)
    if isinstance(error, SharedFileNotFoundError):
        return create_error_response(ErrorCategory.FILE_NOT_FOUND, str(error), status_code=404)
    if isinstance(error, FileGoneError):
        return create_error_response(error.category, str(error), status_code=410)
    if isinstance(error, (StorageError, FileConflictError)):
        current_app.logger.exception(f"{context}: {error}")
        return create_error_response(ErrorCategory.STORAGE_ERROR, str(error), status_code=500)

    current_app.logger.exception(f"Unexpected error in {context}: {error}")
    return create_error_response(ErrorCategory.SYSTEM_ERROR, str(error), status_code=500)


# =============================================================================
# Files Namespace - Upload, metadata, download, deletion
# =============================================================================

files_ns = Namespace("files", description="Bounded-access file sharing")

for _model in ALL_MODELS:
    files_ns.add_model(_model.name, _model)


@files_ns.route("/")
class FileCollection(Resource):
    """Upload files and list the caller's files"""

    @files_ns.doc("upload_file")
    @files_ns.expect(upload_parser)
    @files_ns.response(201, "File stored", upload_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(401, "Authentication Required", error_response)
    @files_ns.response(500, "Storage Error", error_response)
    def post(self):
        """
        Upload a file

        Stores the file and returns an unguessable token. The file is
        served until it expires or its download budget is used up.
        """
        try:
            upload = request.files.get("file")
            form = request.form
        except RequestEntityTooLarge as e:
            return create_error_response(ErrorCategory.FILE_TOO_LARGE, str(e), status_code=400)

        if upload is None or not upload.filename:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "File is required", status_code=400
            )

        try:
            file = _service().upload(
                content=upload.read(),
                original_name=upload.filename,
                mime_type=upload.mimetype,
                owner_id=current_identity(),
                expires_at=form.get("expiresAt"),
                expires_in=form.get("expiresIn"),
                max_downloads=form.get("maxDownloads"),
            )
        except Exception as e:
            return _error_response(e, "upload")

        current_app.logger.info(f"Uploaded file {file.id} ({file.size_bytes} bytes)")
        return {
            "id": file.id,
            "token": file.download_token,
            **_urls(file),
            "expiresAt": _iso(file.expires_at),
            "maxDownloads": file.max_downloads,
        }, 201

    @files_ns.doc("list_files")
    @files_ns.response(200, "Files owned by the caller", file_list_response)
    @files_ns.response(401, "Authentication Required", error_response)
    def get(self):
        """
        List the caller's files

        Most recently created first.
        """
        try:
            files = _service().list_files(current_identity())
        except Exception as e:
            return _error_response(e, "list files")

        return {
            "files": [
                {
                    "id": file.id,
                    "name": file.original_name,
                    "size": file.size_bytes,
                    "mimeType": file.mime_type,
                    "expiresAt": _iso(file.expires_at),
                    "downloadCount": file.download_count,
                    "maxDownloads": file.max_downloads,
                    **_urls(file),
                }
                for file in files
            ]
        }, 200


@files_ns.route("/<string:token>")
@files_ns.param("token", "The download token")
class FileMetadata(Resource):
    """Public metadata of a shared file"""

    @files_ns.doc("get_file_metadata")
    @files_ns.response(200, "Success", file_metadata)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(410, "File Expired or Download Limit Reached", error_response)
    def get(self, token):
        """Get file metadata by token"""
        try:
            file = _service().get_metadata(token)
        except Exception as e:
            return _error_response(e, "metadata")

        return {
            "name": file.original_name,
            "size": file.size_bytes,
            "mimeType": file.mime_type,
            "expiresAt": _iso(file.expires_at),
            "downloadCount": file.download_count,
            "remainingDownloads": file.remaining_downloads(),
            "maxDownloads": file.max_downloads,
        }, 200


@files_ns.route("/<string:token>/download")
@files_ns.param("token", "The download token")
class FileDownload(Resource):
    """Stream a shared file"""

    @files_ns.doc("download_file")
    @files_ns.response(200, "File content")
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(410, "File Expired or Download Limit Reached", error_response)
    @files_ns.response(500, "Storage Error", error_response)
    def get(self, token):
        """
        Download file content

        Each successful call consumes one download, counted when the
        stream starts.
        """
        try:
            file, stream = _service().begin_download(token)
        except Exception as e:
            return _error_response(e, "download")

        current_app.logger.info(f"Serving file {file.id} for token {token[:8]}...")

        response = send_file(
            stream,
            mimetype=file.mime_type,
            as_attachment=True,
            download_name=file.original_name,
            conditional=False,
            etag=False,
            max_age=0,
        )
        response.content_length = file.size_bytes
        return response


@files_ns.route("/id/<string:file_id>")
@files_ns.param("file_id", "The file identifier")
class FileById(Resource):
    """Owner operations on a file"""

    @files_ns.doc("delete_file")
    @files_ns.response(204, "File deleted")
    @files_ns.response(403, "Access Denied", error_response)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(500, "Storage Error", error_response)
    def delete(self, file_id):
        """
        Delete a file

        Owned files can only be deleted by their owner; anonymous files
        by anyone who knows the id.
        """
        try:
            _service().delete(file_id, current_identity())
        except Exception as e:
            return _error_response(e, "delete")

        return "", 204


# =============================================================================
# System Namespace - Health
# =============================================================================

system_ns = Namespace("system", description="Service status")
system_ns.add_model(health_response.name, health_response)


@system_ns.route("/health")
class Health(Resource):
    """Dependency health"""

    @system_ns.doc("health")
    @system_ns.response(200, "Healthy", health_response)
    @system_ns.response(503, "Degraded", health_response)
    def get(self):
        """Report Redis, blob store, Celery and reclamation status"""
        return get_health_status(current_app._get_current_object())
