# core/hooks.py
"""
请求生命周期的检查钩子（教学用）
挂在蓝图上，按阶段打日志：
  mount         页面首次渲染（GET 页面）
  handle_event  前端发来的事件（POST /api/<event> 或表单）
  handle_params 同一页面切换 live action（/retry /correct /over）
  after_render  响应发出前
INSPECT_HOOKS=0 时全部跳过
"""
from flask import current_app, request, g

DIVIDER = "-" * 40


def _enabled():
    return current_app.config.get("INSPECT_HOOKS", False)


def _block(title, **fields):
    lines = [f"{DIVIDER} {title} START {DIVIDER}"]
    for k, v in fields.items():
        lines.append(f"    {k}: {v!r}")
    lines.append(f"{DIVIDER} {title} END {DIVIDER}")
    return "\n".join(lines)


def _stage():
    """根据 endpoint 判断当前请求属于哪个生命周期阶段"""
    endpoint = (request.endpoint or "").rsplit(".", 1)[-1]
    if request.method != "GET":
        return "handle_event", endpoint
    if endpoint == "page":
        return "mount", endpoint
    if endpoint == "live_action":
        return "handle_params", endpoint
    return None, endpoint


def attach_inspect_hooks(bp, sid_getter=None):
    """给蓝图挂上 before/after 钩子；sid_getter 用来在日志里带上玩家会话 id"""

    @bp.before_request
    def _inspect_before():
        if not _enabled():
            return None
        stage, endpoint = _stage()
        g.inspect_stage = stage
        if stage is None:
            return None
        sid = sid_getter() if sid_getter else None
        log = current_app.logger
        if stage == "mount":
            log.info(_block("BEFORE MOUNT", session=sid, params=request.args.to_dict()))
        elif stage == "handle_event":
            params = request.get_json(silent=True)
            if params is None:
                params = request.form.to_dict()
            log.info(_block(f"HANDLE EVENT ({endpoint})", event=endpoint, params=params, session=sid))
        else:
            log.warning(_block(f"HANDLE PARAMS ({request.path})",
                               uri=request.url, params=request.view_args, session=sid))
        return None

    @bp.after_request
    def _inspect_after(resp):
        if _enabled() and g.get("inspect_stage"):
            current_app.logger.debug("after_render %s %s -> %s",
                                     request.method, request.path, resp.status_code)
        return resp

    return bp
