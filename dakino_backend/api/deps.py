"""Shared API dependencies and helpers."""

from flask import current_app
from sqlalchemy.orm import sessionmaker

from dakino_backend.services.llm import VisionLLMClient


def get_sessionmaker() -> sessionmaker:
    """Return the configured SQLAlchemy session factory."""

    session_factory: sessionmaker | None = current_app.extensions.get(
        "db_sessionmaker"
    )
    if session_factory is None:
        raise RuntimeError("database session factory is not configured")
    return session_factory


def get_vision_llm_client() -> VisionLLMClient:
    """Return the configured ticket vision client."""

    client: VisionLLMClient | None = current_app.extensions.get(
        "vision_llm_client"
    )
    if client is None:
        raise RuntimeError("vision LLM client is not configured")
    return client
