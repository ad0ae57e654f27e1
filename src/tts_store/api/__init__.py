"""
FastAPI REST API Layer for tts-store.

    - routes.py: POST /v1/convert, GET /health
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection
"""
