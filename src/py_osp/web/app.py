"""Flask application factory for the PyOSP JSON API.

The ``create_app`` function boots a kernel (unless one is passed in)
and returns a Flask app that drives it:

- ``GET /api/status`` — snapshot of processor, queues, and tables.
- ``POST /api/tasks`` — create a task.
- ``POST /api/tasks/<task_id>/threads`` — create a thread in a task.
- ``POST /api/threads/<tid>/kill`` — kill a thread.
- ``POST /api/threads/<tid>/suspend`` — suspend on ``{"event": ...}``.
- ``POST /api/threads/<tid>/resume`` — resume a thread once.
- ``POST /api/events/<name>/notify`` — signal an event.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Flask, Response, jsonify, request

from py_osp.kernel import Kernel

if TYPE_CHECKING:
    from py_osp.process.task import Task
    from py_osp.process.threads import Thread

_HTTP_CREATED = 201
_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409


def _task_json(task: Task) -> dict[str, object]:
    """Serialise a task."""
    return {"task_id": task.task_id, "name": task.name, "threads": [t.tid for t in task.threads]}


def _thread_json(thread: Thread) -> dict[str, object]:
    """Serialise a thread."""
    return {"tid": thread.tid, "task_id": thread.task.task_id, "status": str(thread.status)}


def create_app(kernel: Kernel | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        kernel: A running kernel to drive; a fresh one is booted if omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    if kernel is None:
        kernel = Kernel()
        kernel.boot()

    app = Flask(__name__)

    @app.errorhandler(ValueError)
    def not_found(error: ValueError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Map unknown ids to 404."""
        return jsonify({"error": str(error)}), _HTTP_NOT_FOUND

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the machine snapshot."""
        return jsonify(kernel.snapshot())

    @app.route("/api/tasks", methods=["POST"])
    def create_task() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Create a task.

        Expects JSON body: ``{"name": "..."}``
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "name" not in data:
            return jsonify({"error": "Missing 'name' field"}), _HTTP_BAD_REQUEST
        task = kernel.create_task(str(data["name"]))
        return jsonify(_task_json(task)), _HTTP_CREATED

    @app.route("/api/tasks/<int:task_id>/threads", methods=["POST"])
    def create_thread(task_id: int) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Create a thread; 409 if the task refuses it."""
        thread = kernel.create_thread(task_id)
        if thread is None:
            return jsonify({"error": f"Task {task_id} refused a new thread"}), _HTTP_CONFLICT
        return jsonify(_thread_json(thread)), _HTTP_CREATED

    @app.route("/api/threads/<int:tid>/kill", methods=["POST"])
    def kill_thread(tid: int) -> Response:  # pyright: ignore[reportUnusedFunction]
        """Kill a thread."""
        dispatched = kernel.kill_thread(tid)
        return jsonify({"tid": tid, "dispatched": dispatched})

    @app.route("/api/threads/<int:tid>/suspend", methods=["POST"])
    def suspend_thread(tid: int) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Suspend a thread on a named event.

        Expects JSON body: ``{"event": "..."}``
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "event" not in data:
            return jsonify({"error": "Missing 'event' field"}), _HTTP_BAD_REQUEST
        try:
            dispatched = kernel.suspend_thread(tid, str(data["event"]))
        except RuntimeError as e:
            return jsonify({"error": str(e)}), _HTTP_CONFLICT
        return jsonify({"thread": _thread_json(kernel.thread(tid)), "dispatched": dispatched})

    @app.route("/api/threads/<int:tid>/resume", methods=["POST"])
    def resume_thread(tid: int) -> Response:  # pyright: ignore[reportUnusedFunction]
        """Resume a thread once."""
        resumed = kernel.resume_thread(tid)
        return jsonify({"thread": _thread_json(kernel.thread(tid)), "resumed": resumed})

    @app.route("/api/events/<name>/notify", methods=["POST"])
    def notify(name: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        """Signal an event and report who woke up."""
        return jsonify({"event": name, "resumed": kernel.notify(name)})

    return app


def main() -> None:
    """Run the development server.

    This is the ``py-osp-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
