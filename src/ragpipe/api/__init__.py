"""
FastAPI REST API for ragpipe.

Endpoints:
    POST /query - Answer a question from indexed documents
    POST /ingest - Index a document
    GET /health - Health check for k8s probes
"""

from ragpipe.api.main import app, create_app

__all__ = ["app", "create_app"]
