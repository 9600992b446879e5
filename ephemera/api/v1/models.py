"""
API Models for request/response documentation
"""

from flask_restx import Model, fields, reqparse
from werkzeug.datastructures import FileStorage

# =============================================================================
# Request Parsers
# =============================================================================

upload_parser = reqparse.RequestParser()
upload_parser.add_argument(
    "file", location="files", type=FileStorage, required=True, help="File to share"
)
upload_parser.add_argument(
    "expiresAt", location="form", type=str,
    help="Absolute expiry as ISO-8601 (e.g. 2030-01-01T12:00:00Z)",
)
upload_parser.add_argument(
    "expiresIn", location="form", type=str,
    help="Relative expiry in seconds; used when expiresAt is absent",
)
upload_parser.add_argument(
    "maxDownloads", location="form", type=str,
    help="Download budget; omit for unlimited downloads",
)

# =============================================================================
# Response Models
# =============================================================================

upload_response = Model(
    "UploadResponse",
    {
        "id": fields.String(description="File identifier, used for deletion"),
        "token": fields.String(description="Download token"),
        "downloadUrl": fields.String(description="URL that streams the content"),
        "viewUrl": fields.String(description="URL that returns the metadata"),
        "expiresAt": fields.String(description="Expiry moment (ISO-8601, UTC)"),
        "maxDownloads": fields.Integer(description="Download budget", allow_null=True),
    },
)

file_metadata = Model(
    "FileMetadata",
    {
        "name": fields.String(description="Original file name"),
        "size": fields.Integer(description="Size in bytes"),
        "mimeType": fields.String(description="Content type"),
        "expiresAt": fields.String(description="Expiry moment (ISO-8601, UTC)"),
        "downloadCount": fields.Integer(description="Downloads so far"),
        "remainingDownloads": fields.Integer(
            description="Downloads left, null when unlimited", allow_null=True
        ),
        "maxDownloads": fields.Integer(description="Download budget", allow_null=True),
    },
)

owned_file = Model(
    "OwnedFile",
    {
        "id": fields.String(description="File identifier"),
        "name": fields.String(description="Original file name"),
        "size": fields.Integer(description="Size in bytes"),
        "mimeType": fields.String(description="Content type"),
        "expiresAt": fields.String(description="Expiry moment (ISO-8601, UTC)"),
        "downloadCount": fields.Integer(description="Downloads so far"),
        "maxDownloads": fields.Integer(description="Download budget", allow_null=True),
        "downloadUrl": fields.String(description="URL that streams the content"),
        "viewUrl": fields.String(description="URL that returns the metadata"),
    },
)

file_list_response = Model(
    "FileListResponse",
    {"files": fields.List(fields.Nested(owned_file))},
)

error_response = Model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
    },
)

health_response = Model(
    "HealthResponse",
    {
        "status": fields.String(description="ok or degraded"),
        "redis": fields.String(description="Metadata store connectivity"),
        "storage": fields.String(description="Blob store availability"),
        "celery": fields.String(description="Celery availability"),
        "reclamation": fields.String(description="Reclamation scheduler state"),
    },
)

ALL_MODELS = (
    upload_response,
    file_metadata,
    owned_file,
    file_list_response,
    error_response,
    health_response,
)
