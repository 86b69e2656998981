"""
配置管理模块
全部从环境变量读取，启动时 Config.validate() 做一次检查
"""
import os


def _flag(name, default="0"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """应用配置类"""

    # Flask 配置
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key-change-in-production")
    COOKIE_SECURE = _flag("COOKIE_SECURE")

    # 日志
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    # 生命周期钩子日志（mount / event / params / after render），教学演示用
    INSPECT_HOOKS = _flag("INSPECT_HOOKS", "1")

    # 环境检测
    IS_PRODUCTION = os.environ.get("FLASK_ENV") == "production"

    # 各游戏的参数
    GAME_FEATURES = {
        "guess_number": {
            "max_trials": int(os.getenv("GUESS_MAX_TRIALS", "3")),
            # game over 之后开新局是否保留分数（猜中后开新局总是保留）
            "keep_score_after_game_over": _flag("GUESS_KEEP_SCORE_AFTER_GAME_OVER"),
            "session_idle_minutes": int(os.getenv("GUESS_SESSION_IDLE_MINUTES", "30")),
            "max_sessions": int(os.getenv("GUESS_MAX_SESSIONS", "10000")),
        },
    }

    @classmethod
    def validate(cls):
        """验证必要配置"""
        errors = []

        guess = cls.GAME_FEATURES.get("guess_number", {})
        if guess.get("max_trials", 0) < 1:
            errors.append("GUESS_MAX_TRIALS must be >= 1")
        if guess.get("session_idle_minutes", 0) < 1:
            errors.append("GUESS_SESSION_IDLE_MINUTES must be >= 1")
        if guess.get("max_sessions", 0) < 1:
            errors.append("GUESS_MAX_SESSIONS must be >= 1")

        # 生产环境额外检查
        if cls.IS_PRODUCTION:
            if cls.SECRET_KEY == "dev-secret-key-change-in-production":
                errors.append("Must set FLASK_SECRET_KEY in production")

        if errors:
            raise ValueError("\n".join(errors))

        return True
