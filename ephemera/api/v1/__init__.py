"""
API v1 - Ephemera REST API

Versioned endpoints for bounded-access file sharing with OpenAPI/Swagger
documentation.
"""

from flask import Blueprint
from flask_restx import Api

from .namespaces import files_ns, system_ns


def create_api_blueprint(api_version: str = "v1") -> Blueprint:
    """
    Build the v1 blueprint with its Flask-RESTX Api.

    A fresh blueprint per application keeps test apps independent.

    Args:
        api_version: Version segment of the URL prefix

    Returns:
        Blueprint mounted at /api/<version>, Swagger UI at /api/<version>/docs
    """
    blueprint = Blueprint(f"api_{api_version}", __name__, url_prefix=f"/api/{api_version}")

    api = Api(
        blueprint,
        version="1.0",
        title="Ephemera API",
        description="Share files through unguessable links that expire by time or download count",
        doc="/docs",
    )

    api.add_namespace(files_ns, path="/files")
    api.add_namespace(system_ns, path="/system")

    return blueprint


__all__ = ["create_api_blueprint", "files_ns", "system_ns"]
