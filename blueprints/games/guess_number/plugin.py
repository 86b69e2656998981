from flask import (
    Blueprint, render_template, request, jsonify, g, make_response,
    redirect, url_for, current_app,
)
from itsdangerous import URLSafeSerializer, BadSignature
import secrets

from core.hooks import attach_inspect_hooks
from core.runtime import GameRuntime
from .game_engine import (
    GameSession, Phase, RoundOverError, GUESS_MIN, GUESS_MAX, MAX_TRIALS,
)

SLUG = "guess_number"
SID_COOKIE = f"{SLUG}_sid"
RUNTIME_KEY = f"{SLUG}_runtime"

# live action <-> phase
ACTION_PHASES = {
    "retry": Phase.RETRY,
    "correct": Phase.CORRECT,
    "over": Phase.GAME_OVER,
}
PHASE_ACTIONS = {phase: action for action, phase in ACTION_PHASES.items()}

# new_game 的 reason：猜中后开新局总是保留分数；game over 后看配置
REASON_CORRECT = "correctly_answered"
REASON_GAME_OVER = "game_over"


def get_meta():
    return {
        "slug": SLUG,
        "title": "Guess the Number",
        "subtitle": f"Pick {GUESS_MIN}-{GUESS_MAX}, {MAX_TRIALS} tries per round",
        "path": f"/g/{SLUG}/",
        "tags": ["Demo", "Live", "Forms"]
    }


bp = Blueprint(
    SLUG, __name__,
    template_folder="templates",
    static_folder="static",
    static_url_path=f"/static/games/{SLUG}",
)


@bp.record_once
def _init_runtime(state):
    opts = state.app.config.get("GAME_FEATURES", {}).get(SLUG, {})
    max_trials = opts.get("max_trials", MAX_TRIALS)
    state.app.extensions[RUNTIME_KEY] = GameRuntime(
        SLUG,
        lambda: GameSession(max_trials=max_trials),
        idle_minutes=opts.get("session_idle_minutes", 30),
        max_sessions=opts.get("max_sessions", 10000),
    )


def _runtime() -> GameRuntime:
    return current_app.extensions[RUNTIME_KEY]


def _options():
    return current_app.config.get("GAME_FEATURES", {}).get(SLUG, {})


def _ser():
    # 签名 cookie 的序列化器
    return URLSafeSerializer(current_app.config["SECRET_KEY"], salt=f"{SLUG}-state")


def _sid():
    """从签名 cookie 取 sid；没有或验签失败就发一个新的"""
    if "sid" in g:
        return g.sid
    raw = request.cookies.get(SID_COOKIE)
    sid = None
    if raw:
        try:
            sid = _ser().loads(raw)
        except BadSignature:
            current_app.logger.info("[%s] bad sid cookie, issuing a new one", SLUG)
    if not sid:
        sid = secrets.token_hex(16)
        g.new_sid = sid
    g.sid = sid
    return sid


def _ensure_sid(resp):
    sid = g.get("new_sid")
    if sid:
        resp.set_cookie(SID_COOKIE, _ser().dumps(sid), httponly=True, samesite="Lax",
                        secure=current_app.config.get("COOKIE_SECURE", False))
    return resp


def _game():
    return _runtime().session(_sid())


def _path_for(phase):
    action = PHASE_ACTIONS.get(phase)
    if action is None:
        return url_for(f"{SLUG}.page")
    return url_for(f"{SLUG}.live_action", action=action)


def _guess_input():
    """兼容 JSON {"guess": {"number": n}} / {"number": n} 和表单 guess[number] / number"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        inner = data.get("guess")
        if isinstance(inner, dict):
            return inner.get("number")
        return data.get("number")
    form = request.form
    return form.get("guess[number]", form.get("number"))


def _reason():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data.get("reason")
    return request.form.get("reason")


REASON_PHASES = {
    REASON_CORRECT: Phase.CORRECT,
    REASON_GAME_OVER: Phase.GAME_OVER,
}


def _new_game_policy(game, reason):
    """
    按会话当前 phase 决定能否开新局、是否保留分数
    返回 (keep_score, error, status)；error 非空时不要开新局
    """
    if reason not in REASON_PHASES:
        return None, "BAD_REASON", 400
    if not game.phase.round_over:
        return None, "ROUND_NOT_OVER", 409
    if REASON_PHASES[reason] is not game.phase:
        return None, "BAD_REASON", 409
    if game.phase is Phase.CORRECT:
        return True, None, 200
    return bool(_options().get("keep_score_after_game_over", False)), None, 200


def _render(game, action="new", form_value="", form_error=None, status=200):
    html = render_template(
        f"games/{SLUG}/index.html",
        meta=get_meta(),
        action=action,
        state=game.current_snapshot(),
        max_trials=game.max_trials,
        guess_min=GUESS_MIN,
        guess_max=GUESS_MAX,
        form_value=form_value,
        form_error=form_error,
    )
    return _ensure_sid(make_response(html, status))


# 页面：/ 是表单，/retry /correct /over 是同一页面的不同 live action
@bp.get("/")
def page():
    game = _game()
    if game.phase.round_over:
        # 本局已结束，回到对应弹窗
        return _ensure_sid(redirect(_path_for(game.phase)))
    return _render(game)


@bp.get("/<any(retry, correct, over):action>")
def live_action(action):
    game = _game()
    if game.phase is not ACTION_PHASES[action]:
        return _ensure_sid(redirect(_path_for(game.phase)))
    return _render(game, action=action)


# 事件接口：validate / check_guess / new_game
@bp.post("/api/validate")
def api_validate():
    game = _game()
    result = game.preview_guess(_guess_input())
    return _ensure_sid(jsonify(result.to_dict()))


@bp.post("/api/check_guess")
def api_check_guess():
    raw = _guess_input()
    with _runtime().locked(_sid()) as game:
        try:
            outcome = game.submit_guess(raw)
        except RoundOverError as e:
            payload = {"ok": False, "error": "ROUND_OVER", "phase": e.phase.value,
                       "path": _path_for(e.phase)}
            return _ensure_sid(jsonify(payload)), 409
        last_guess = game.last_guess

    payload = outcome.to_dict()
    payload["path"] = _path_for(outcome.phase)
    if outcome.ok:
        payload["last_guess"] = last_guess
        _runtime().log(_sid(), "check_guess", {"number": raw}, {"phase": outcome.phase.value})
    return _ensure_sid(jsonify(payload))


@bp.post("/api/new_game")
def api_new_game():
    reason = _reason()
    with _runtime().locked(_sid()) as game:
        keep, error, status = _new_game_policy(game, reason)
        if error:
            payload = {"ok": False, "error": error, "phase": game.phase.value}
            return _ensure_sid(jsonify(payload)), status
        snapshot = game.start_new_game(keep_score=keep)

    _runtime().log(_sid(), "new_game", {"reason": reason}, {"score": snapshot.score})
    payload = {"ok": True, **snapshot.to_dict(), "path": _path_for(snapshot.phase)}
    return _ensure_sid(jsonify(payload))


@bp.get("/api/state")
def api_state():
    game = _game()
    payload = {"ok": True, **game.current_snapshot().to_dict(), "max_trials": game.max_trials}
    return _ensure_sid(jsonify(payload))


# 没有 JS 时的表单兜底：POST 后重定向
@bp.post("/check_guess")
def form_check_guess():
    raw = _guess_input()
    with _runtime().locked(_sid()) as game:
        if game.phase.round_over:
            return _ensure_sid(redirect(_path_for(game.phase)))
        outcome = game.submit_guess(raw)
    if not outcome.ok:
        return _render(game, form_value=raw or "", form_error=outcome.error.message, status=422)
    _runtime().log(_sid(), "check_guess", {"number": raw}, {"phase": outcome.phase.value})
    return _ensure_sid(redirect(_path_for(outcome.phase)))


@bp.post("/new_game")
def form_new_game():
    reason = _reason()
    with _runtime().locked(_sid()) as game:
        keep, error, status = _new_game_policy(game, reason)
        if error == "ROUND_NOT_OVER":
            # 本局还没结束，回到表单继续猜
            return _ensure_sid(redirect(_path_for(game.phase)))
        if error:
            return _ensure_sid(make_response(error.lower(), status))
        game.start_new_game(keep_score=keep)
    _runtime().log(_sid(), "new_game", {"reason": reason})
    return _ensure_sid(redirect(url_for(f"{SLUG}.page")))


attach_inspect_hooks(bp, sid_getter=_sid)


def get_blueprint():
    return bp
