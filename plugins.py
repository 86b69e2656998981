# plugins.py
import importlib, pkgutil, logging
from typing import List, Dict

logger = logging.getLogger(__name__)

_PLUGINS: List[Dict] = []


def register_plugins(app, base_pkg="blueprints.games"):
    """
    自动发现 base_pkg.*.plugin，调用 get_meta()/get_blueprint() 注册到 /g/<slug>
    """
    try:
        pkg = importlib.import_module(base_pkg)
    except ModuleNotFoundError:
        logger.warning("[plugins] base_pkg '%s' not found", base_pkg)
        return []

    registered = []
    for m in pkgutil.iter_modules(pkg.__path__):
        if not m.ispkg:
            continue
        mod_name = f"{base_pkg}.{m.name}.plugin"
        try:
            mod = importlib.import_module(mod_name)
        except ModuleNotFoundError as e:
            # 子目录没有 plugin.py，跳过；plugin.py 自己缺依赖要往上抛
            if e.name != mod_name:
                raise
            continue

        get_meta = getattr(mod, "get_meta", None)
        get_bp   = getattr(mod, "get_blueprint", None)
        if not callable(get_meta) or not callable(get_bp):
            logger.warning("[plugins] %s missing get_meta/get_blueprint, skipped", mod_name)
            continue

        meta = get_meta()
        bp   = get_bp()
        slug = meta.get("slug", m.name)

        if slug in app.blueprints:
            continue
        app.register_blueprint(bp, url_prefix=f"/g/{slug}")
        registered.append(meta)
        if not any(p.get("slug") == slug for p in _PLUGINS):
            _PLUGINS.append(meta)
        logger.info("[plugins] Registered '%s' at /g/%s/", slug, slug)
    return registered


def plugin_metas() -> List[Dict]:
    return list(_PLUGINS)
