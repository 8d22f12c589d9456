"""Flask application factory for the py-let web UI.

The ``create_app`` function builds an engine, creates a shell, and
returns a Flask app with three endpoints:

- ``GET /`` — render the terminal HTML page.
- ``POST /api/execute`` — execute a command and return JSON.
- ``GET /api/status`` — return whether the session is open plus a
  summary of the engine.

The engine works on a private in-memory copy of the server's
environment, so nothing a browser user does reaches the real process
environment.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, render_template, request

from py_let.config import EngineConfig, build_engine
from py_let.env import Environment, OsEnvironment
from py_let.shell import Shell

_HTTP_BAD_REQUEST = 400


def create_app(
    config: EngineConfig | None = None,
    *,
    environment: Environment | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Engine settings; defaults if omitted.
        environment: The table the session starts from; a snapshot of
            the server's environment if omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    if environment is None:
        environment = OsEnvironment().copy()
    engine = build_engine(config, environment=environment)
    engine.bootstrap()
    shell = Shell(engine=engine)
    session = {"open": True}

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", banner=shell.execute("version"))

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output`` and ``closed`` fields.

        """
        data = request.get_json(silent=True)
        if data is None or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        if not session["open"]:
            return jsonify({"output": "Session closed.", "closed": True})

        command: str = data["command"]
        result = shell.execute(command)

        if result == Shell.EXIT_SENTINEL:
            engine.teardown()
            session["open"] = False
            return jsonify({"output": "Session closed.", "closed": True})

        return jsonify({"output": result, "closed": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return session status for polling.

        Returns:
            JSON with ``open`` and ``status`` fields.

        """
        is_open = session["open"]
        status_text = shell.execute("version") if is_open else "Session closed."
        return jsonify({"open": is_open, "status": status_text})

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``py-let-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080, threaded=False)
