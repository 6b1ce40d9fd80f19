"""
FastAPI REST API Layer for eigo-ms.

This package defines all HTTP endpoints:
    - routes.py: Lesson endpoints (/v1/catalog, /v1/lessons, /health, /metrics)
    - speech_routes.py: Speech endpoints (/v1/speech/voices, /plan, /stream)
    - schemas.py: Request Pydantic models
    - dependencies.py: FastAPI dependency injection
"""
