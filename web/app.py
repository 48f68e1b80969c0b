"""
Flask web server for the Insight Board page.

Routes
──────
GET    /?q=...                       Page UI
GET    /api/state?q=...              Page state (JSON); drains notifications
POST   /api/dialogs/add-topic        Open the add-topic dialog
POST   /api/dialogs/edit-topic/<id>  Open the edit dialog for a topic
POST   /api/dialogs/insight/<id>     Open the video dialog for an insight
DELETE /api/dialogs                  Close the open dialog
PATCH  /api/draft                    Update the open dialog's draft
POST   /api/draft/confirm            Confirm the add / edit dialog
DELETE /api/topics/<id>              Soft-delete a topic
POST   /api/topics/toggle            Expand / collapse the topics panel
GET    /api/stream                   SSE: broker pushes for both streams

POST   /topics/new                   Form: open the add-topic dialog
POST   /topics/<id>/edit             Form: open the edit dialog
POST   /topics/<id>/delete           Form: soft-delete a topic
POST   /topics/draft                 Form: submit the add / edit dialog
POST   /topics/toggle                Form: expand / collapse the topics panel
POST   /insights/<id>/watch          Form: open the video dialog
POST   /dialogs/close                Form: close the open dialog

Form routes redirect back to /.
"""

from __future__ import annotations

import json
import logging
import os
import queue
import sys

from dotenv import load_dotenv
from flask import (
    Flask,
    Response,
    abort,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
    stream_with_context,
    url_for,
)

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.broker import Stream, SubscriptionBroker
from core.models import Insight
from core.page import InsightPage
from core.service import DataService, LocalDataService
from core.view_state import AddingTopic, EditingTopic, ViewingInsight, ViewState

logger = logging.getLogger(__name__)

#: Seconds between SSE keep-alive comments.
KEEPALIVE_SECONDS = 15


def load_seed(path: str) -> list[Insight]:
    """Read a JSON array of insight records."""
    with open(path, encoding="utf-8") as fh:
        return [Insight.model_validate(item) for item in json.load(fh)]


def _page() -> InsightPage:
    return current_app.extensions["insight_page"]


def _view_state_json(state: ViewState) -> dict:
    data: dict = {"kind": state.kind}
    if isinstance(state, (AddingTopic, EditingTopic)):
        data["draft"] = state.draft.model_dump()
    if isinstance(state, EditingTopic):
        data["topic_id"] = state.topic_id
    if isinstance(state, ViewingInsight):
        data["insight"] = state.insight.model_dump()
    return data


def _state_json(page: InsightPage, notifications: list) -> dict:
    return {
        "loading": page.loading,
        "error": page.error,
        "search_term": page.search_term,
        "insights": [i.model_dump() for i in page.visible_insights],
        "topics": [t.model_dump() for t in page.topics],
        "topics_expanded": page.topics_expanded,
        "view_state": _view_state_json(page.view_state),
        "notifications": [n.model_dump() for n in notifications],
    }


def _result_json(result) -> tuple:
    if result is None:
        return jsonify({"issued": False}), 200
    return jsonify({"issued": True, **result.model_dump()}), 200


def create_app(settings: Settings | None = None, service: DataService | None = None) -> Flask:
    """Build the Flask app and mount a page on a fresh broker.

    Args:
        settings: Configuration; read from the environment if omitted.
        service: Data service to attach to; a ``LocalDataService`` if omitted.
    """
    settings = settings or Settings()
    settings.validate()

    app = Flask(__name__)
    app.config["DEBUG"] = settings.debug

    if service is None:
        service = LocalDataService(emit_on_change=settings.emit_on_change)
        if settings.seed_path:
            service.seed_insights(load_seed(settings.seed_path))

    broker = SubscriptionBroker(service)
    page = InsightPage(broker)
    page.mount()
    app.extensions["insight_page"] = page

    # Initial load: ask the service for its first push.
    emit = getattr(service, "emit", None)
    if callable(emit):
        try:
            emit()
        except Exception:
            logger.exception("Initial emit failed")
            page.report_load_failure()

    _register_routes(app)
    return app


def _register_routes(app: Flask) -> None:

    # ── UI ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        page = _page()
        page.set_search_term(request.args.get("q", page.search_term))
        return render_template(
            "index.html",
            page=page,
            state=_view_state_json(page.view_state),
            notifications=page.notifications.drain(),
        )

    @app.route("/api/state")
    def get_state():
        page = _page()
        if "q" in request.args:
            page.set_search_term(request.args["q"])
        return jsonify(_state_json(page, page.notifications.drain()))

    # ── Dialogs ────────────────────────────────────────────────────────────

    @app.route("/api/dialogs/add-topic", methods=["POST"])
    def open_add_topic():
        page = _page()
        page.add_topic()
        return jsonify(_view_state_json(page.view_state))

    @app.route("/api/dialogs/edit-topic/<int:topic_id>", methods=["POST"])
    def open_edit_topic(topic_id: int):
        page = _page()
        try:
            page.edit_topic(topic_id)
        except KeyError:
            return jsonify({"error": "Not found"}), 404
        return jsonify(_view_state_json(page.view_state))

    @app.route("/api/dialogs/insight/<int:insight_id>", methods=["POST"])
    def open_insight(insight_id: int):
        page = _page()
        try:
            page.watch_insight(insight_id)
        except KeyError:
            return jsonify({"error": "Not found"}), 404
        return jsonify(_view_state_json(page.view_state))

    @app.route("/api/dialogs", methods=["DELETE"])
    def close_dialog():
        page = _page()
        page.close_dialog()
        return jsonify(_view_state_json(page.view_state))

    # ── Drafts and commands ────────────────────────────────────────────────

    @app.route("/api/draft", methods=["PATCH"])
    def update_draft():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "JSON object body is required"}), 400
        name = body.get("name")
        explanation = body.get("explanation")
        if not all(v is None or isinstance(v, str) for v in (name, explanation)):
            return jsonify({"error": "name and explanation must be strings"}), 400

        page = _page()
        page.update_draft(name=name, explanation=explanation)
        return jsonify(_view_state_json(page.view_state))

    @app.route("/api/draft/confirm", methods=["POST"])
    def confirm_draft():
        return _result_json(_page().confirm())

    @app.route("/api/topics/<int:topic_id>", methods=["DELETE"])
    def delete_topic(topic_id: int):
        return _result_json(_page().delete_topic(topic_id))

    @app.route("/api/topics/toggle", methods=["POST"])
    def toggle_topics():
        return jsonify({"topics_expanded": _page().toggle_topics()})

    # ── Form posts (non-JS page) ───────────────────────────────────────────

    def _back():
        return redirect(url_for("index"))

    @app.route("/topics/new", methods=["POST"])
    def form_add_topic():
        _page().add_topic()
        return _back()

    @app.route("/topics/<int:topic_id>/edit", methods=["POST"])
    def form_edit_topic(topic_id: int):
        try:
            _page().edit_topic(topic_id)
        except KeyError:
            abort(404)
        return _back()

    @app.route("/topics/<int:topic_id>/delete", methods=["POST"])
    def form_delete_topic(topic_id: int):
        _page().delete_topic(topic_id)
        return _back()

    @app.route("/topics/draft", methods=["POST"])
    def form_confirm_draft():
        page = _page()
        page.update_draft(
            name=request.form.get("name"),
            explanation=request.form.get("explanation"),
        )
        page.confirm()
        return _back()

    @app.route("/topics/toggle", methods=["POST"])
    def form_toggle_topics():
        _page().toggle_topics()
        return _back()

    @app.route("/insights/<int:insight_id>/watch", methods=["POST"])
    def form_watch_insight(insight_id: int):
        try:
            _page().watch_insight(insight_id)
        except KeyError:
            abort(404)
        return _back()

    @app.route("/dialogs/close", methods=["POST"])
    def form_close_dialog():
        _page().close_dialog()
        return _back()

    # ── Push stream ────────────────────────────────────────────────────────

    @app.route("/api/stream")
    def stream_endpoint():
        """SSE endpoint relaying broker pushes.

        SSE events emitted:
          {"type": "insights", "data": [...]}   full insight list
          {"type": "topics",   "data": [...]}   full live topic list
        """
        broker = _page().broker
        inbox: queue.Queue = queue.Queue()
        handles = [
            broker.subscribe(stream, lambda payload, s=stream: inbox.put((s, payload)))
            for stream in Stream
        ]

        def generate():
            try:
                while True:
                    try:
                        stream, payload = inbox.get(timeout=KEEPALIVE_SECONDS)
                    except queue.Empty:
                        yield ": keep-alive\n\n"
                        continue
                    data = json.dumps(
                        {"type": stream.value, "data": [item.model_dump() for item in payload]}
                    )
                    yield f"data: {data}\n\n"
            finally:
                for handle in handles:
                    broker.unsubscribe(handle)
                logger.debug("SSE client disconnected")

        return Response(
            stream_with_context(generate()),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = Settings()
    logging.basicConfig(level=settings.log_level)
    app = create_app(settings)
    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)
