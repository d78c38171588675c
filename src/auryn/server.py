"""HTTP API and static shell server."""

import logging
from pathlib import Path

from flask import Flask, Response, jsonify, request, send_from_directory
from flask_cors import CORS

from .config import Config, load_config
from .core.clock import civil_today
from .core.offline import render_service_worker
from .errors import NotFound, StorageError, ValidationError
from .ports import CalendarRepository, TaskStore
from .workflows import aggregate_month, get_calendar, get_store

logger = logging.getLogger(__name__)

# 500 messages per verb, matching what each endpoint was trying to do
_STORAGE_FAILURES = {
    "GET": "Failed to read tasks",
    "POST": "Failed to create task",
    "PATCH": "Failed to update task",
    "DELETE": "Failed to delete task",
}


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _int_arg(name: str, default: int) -> int:
    """Query parameter as int, falling back to default when missing or unparsable."""
    try:
        return int(request.args.get(name, ""))
    except ValueError:
        return default


def create_app(
    config: Config | None = None,
    store: TaskStore | None = None,
    calendar: CalendarRepository | None = None,
) -> Flask:
    """Create and configure the Flask application."""
    config = config or load_config()
    store = store or get_store(config)
    calendar = calendar or get_calendar(config)
    static_dir = Path(config.static_dir).expanduser().resolve() if config.static_dir else None

    app = Flask(__name__, static_folder=None)
    app.json.sort_keys = False
    CORS(app)

    @app.errorhandler(ValidationError)
    def validation_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(NotFound)
    def not_found(e):
        return jsonify({"error": "Task not found"}), 404

    @app.errorhandler(StorageError)
    def storage_error(e):
        logger.error(f"{request.method} {request.path} failed: {e}")
        message = _STORAGE_FAILURES.get(request.method, "Storage error")
        return jsonify({"error": message, "details": str(e)}), 500

    @app.get("/api/tasks")
    def list_tasks():
        return jsonify(store.list().to_dict())

    @app.post("/api/tasks")
    def create_task():
        body = _json_body()
        task = store.create(
            body.get("title"),
            priority=body.get("priority"),
            category=body.get("category"),
            due_date=body.get("due_date"),
        )
        return jsonify(task.to_dict()), 201

    @app.patch("/api/tasks/<task_id>")
    def patch_task(task_id: str):
        task = store.patch(task_id, _json_body())
        return jsonify(task.to_dict())

    @app.delete("/api/tasks/<task_id>")
    def delete_task(task_id: str):
        store.delete(task_id)
        return jsonify({"success": True})

    @app.get("/api/calendar")
    def month_calendar():
        today = civil_today(config.timezone)
        year = _int_arg("year", today.year)
        month = _int_arg("month", today.month)
        view = aggregate_month(store, calendar, year, month)
        return jsonify(view.to_dict())

    @app.get("/sw.js")
    def service_worker():
        return Response(
            render_service_worker(),
            mimetype="application/javascript",
            headers={"Cache-Control": "no-cache", "Service-Worker-Allowed": "/"},
        )

    @app.get("/")
    @app.get("/<path:path>")
    def shell(path: str = ""):
        if path.startswith("api/"):
            return jsonify({"error": "Not found"}), 404
        if static_dir is None:
            return jsonify({"error": "No static shell configured"}), 404
        if path and (static_dir / path).is_file():
            return send_from_directory(static_dir, path)
        # SPA fallback
        return send_from_directory(static_dir, "index.html")

    return app


def serve(config: Config | None = None) -> None:
    """Run the single-threaded development server."""
    config = config or load_config()
    app = create_app(config)
    logger.info(f"Auryn Tasks running on http://{config.host}:{config.port}")
    app.run(host=config.host, port=config.port, threaded=False)
