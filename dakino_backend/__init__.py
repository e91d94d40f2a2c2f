import logging
import os

from flask import Flask, jsonify
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dakino_backend.api import init_app as init_api
from dakino_backend.config import (
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MODEL,
    DEFAULT_MATCH_ACCEPT_THRESHOLD,
    DEFAULT_MATCH_CANDIDATE_FLOOR,
    DEFAULT_TICKET_PROMPT,
)
from dakino_backend.models import get_database_url
from dakino_backend.services.llm import (
    VisionLLMSettings,
    init_vision_llm_client,
)


def create_app() -> Flask:
    """Application factory for the Dakino backend."""
    app = Flask(__name__)

    _configure_logging(app)
    _configure_matching(app)
    _init_database(app)

    @app.get("/healthz")
    def healthcheck():
        return jsonify(status="ok")

    @app.get("/api/healthz")
    def api_healthcheck():
        return jsonify(status="ok")

    llm_api_key = (
        os.environ.get("DAKINO_LLM_API_KEY")
        or os.environ.get("GROQ_API_KEY")
        or os.environ.get("OPENAI_API_KEY")
    )
    llm_model = os.environ.get("DAKINO_LLM_MODEL") or DEFAULT_LLM_MODEL
    llm_base_url = os.environ.get("DAKINO_LLM_BASE_URL", DEFAULT_LLM_BASE_URL)
    ticket_prompt = os.environ.get(
        "DAKINO_LLM_TICKET_PROMPT", DEFAULT_TICKET_PROMPT
    )

    if llm_api_key:
        app.extensions["vision_llm_client"] = init_vision_llm_client(
            VisionLLMSettings(
                api_key=llm_api_key,
                model=llm_model,
                base_url=llm_base_url or None,
                ticket_prompt=ticket_prompt or DEFAULT_TICKET_PROMPT,
            )
        )
    else:
        app.logger.warning(
            "DAKINO_LLM_API_KEY/GROQ_API_KEY/OPENAI_API_KEY not set; ticket scanning disabled"
        )

    init_api(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Ensure application and root loggers emit INFO-level logs."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger().setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)


def _read_float_env(app: Flask, name: str, default: float) -> float:
    raw_value = os.environ.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return float(raw_value)
    except ValueError:
        app.logger.warning(
            "ignoring invalid %s=%s; using %s", name, raw_value, default
        )
        return default


def _configure_matching(app: Flask) -> None:
    """Load catalog matching thresholds, falling back to the tuned defaults."""

    app.config["MATCH_CANDIDATE_FLOOR"] = _read_float_env(
        app, "DAKINO_MATCH_CANDIDATE_FLOOR", DEFAULT_MATCH_CANDIDATE_FLOOR
    )
    app.config["MATCH_ACCEPT_THRESHOLD"] = _read_float_env(
        app, "DAKINO_MATCH_ACCEPT_THRESHOLD", DEFAULT_MATCH_ACCEPT_THRESHOLD
    )


def _init_database(app: Flask) -> None:
    """Configure the SQLAlchemy session factory for request handlers."""

    try:
        database_url = get_database_url()
    except RuntimeError:
        app.logger.warning(
            "DATABASE_URL not set; catalog matching disabled"
        )
        return

    engine = create_engine(database_url, pool_pre_ping=True)
    SessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
    app.extensions["db_engine"] = engine
    app.extensions["db_sessionmaker"] = SessionLocal


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000)
