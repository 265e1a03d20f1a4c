"""Quart application exposing the documentation question answering API."""
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from quart import Quart, jsonify, request
import structlog

from docqa.errors import RagError
from docqa.log import configure_logging
from docqa.rag.pipeline import QueryPipeline, build_pipeline

configure_logging()

logger = structlog.get_logger()

MAX_QUESTION_LENGTH = 2000


class AskRequest(BaseModel):
    """Body of POST /api/ask."""

    question: str = Field(..., max_length=MAX_QUESTION_LENGTH)


def create_app(pipeline: Optional[QueryPipeline] = None) -> Quart:
    """Create the app; the pipeline is built from configuration on first use."""
    app = Quart(__name__)
    state = {"pipeline": pipeline}

    def get_pipeline() -> QueryPipeline:
        if state["pipeline"] is None:
            state["pipeline"] = build_pipeline()
        return state["pipeline"]

    @app.route("/api/ask", methods=["POST"])
    async def ask():
        """Answer a question.

        Expects JSON body: {"question": "..."}

        Returns JSON: {"answer": "...", "sources": [...]}
        """
        data = await request.get_json(silent=True)

        try:
            body = AskRequest.model_validate(data or {})
        except ValidationError as e:
            logger.error("invalid_ask_request", errors=e.errors(include_url=False))
            return jsonify({"error": "Body must be JSON with a 'question' string"}), 400

        question = body.question.strip()
        if not question:
            return jsonify({"error": "Question cannot be empty"}), 400

        try:
            result = await get_pipeline().answer(question)
        except RagError as e:
            logger.error(
                "ask_failed",
                error=str(e),
                error_type=type(e).__name__,
                status=e.status,
            )
            return jsonify({"error": f"Could not answer the question: {e.message}"}), 502

        return jsonify(result.to_dict())

    @app.route("/health/live")
    async def health_live():
        """Liveness probe - check if app is running."""
        return jsonify({"status": "alive"}), 200

    @app.errorhandler(404)
    async def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    async def internal_error(error):
        logger.error("internal_server_error", error=str(error))
        return jsonify({"error": "Internal server error"}), 500

    return app


app = create_app()


if __name__ == "__main__":
    # For development - run with hypercorn in production
    app.run(host="0.0.0.0", port=5000, debug=True)
