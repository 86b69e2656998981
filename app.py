import os
import logging
from flask import Flask, render_template, request, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from plugins import register_plugins, plugin_metas

# ---------------- 日志 ----------------
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------- 应用 ----------------
# 站点级模板放在 core 包里，随包一起安装
app = Flask(__name__, template_folder="core/templates")
app.config.from_object(Config)
Config.validate()

register_plugins(app)


@app.context_processor
def inject_games():
    return {"games": plugin_metas()}


def _wants_json():
    return "/api/" in request.path or request.accept_mimetypes.best == "application/json"


# ---------------- 路由 ----------------
@app.route("/")
def index():
    return render_template("index.html")


@app.get("/healthz")
def healthz():
    return jsonify({"status": "ok", "games": [m["slug"] for m in plugin_metas()]})


# ---------------- 错误处理 ----------------
@app.errorhandler(HTTPException)
def handle_http_error(e):
    if _wants_json():
        code = (e.name or "error").upper().replace(" ", "_")
        return jsonify({"ok": False, "error": code}), e.code
    return e


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.exception("unhandled error on %s %s", request.method, request.path)
    if _wants_json():
        return jsonify({"ok": False, "error": "INTERNAL"}), 500
    return "Internal Server Error", 500


if __name__ == "__main__":
    app.run(
        debug=not Config.IS_PRODUCTION,
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "5000")),
    )
