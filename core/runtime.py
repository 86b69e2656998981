# core/runtime.py
import logging
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("session", "last_seen", "lock")

    def __init__(self, session, last_seen):
        self.session = session
        self.last_seen = last_seen
        self.lock = threading.Lock()


class GameRuntime:
    """
    每个游戏一份的会话表：sid -> 游戏会话对象
    不落库，进程重启即丢；每个玩家只拿到自己的会话，互不共享
    同一玩家的并发请求（比如连点提交）通过 locked() 串行执行
    """

    def __init__(self, game_key, factory, *, idle_minutes=30, max_sessions=10000, clock=time.monotonic):
        self.game_key = game_key
        self._factory = factory
        self._idle_seconds = idle_minutes * 60
        self._max_sessions = max_sessions
        self._clock = clock
        self._sessions = OrderedDict()  # sid -> _Entry
        self._lock = threading.Lock()

    def _touch(self, sid):
        now = self._clock()
        with self._lock:
            self._evict_idle(now)
            entry = self._sessions.pop(sid, None)
            if entry is None:
                entry = _Entry(self._factory(), now)
                logger.debug("[%s] new session sid=%s", self.game_key, _short(sid))
            else:
                entry.last_seen = now
            # 放到队尾，队首永远是最久没动的
            self._sessions[sid] = entry
            while len(self._sessions) > self._max_sessions:
                old_sid, _ = self._sessions.popitem(last=False)
                logger.info("[%s] session cap reached, dropped sid=%s", self.game_key, _short(old_sid))
            return entry

    def session(self, sid):
        """取玩家的会话，没有就新建（只读场景用）"""
        return self._touch(sid).session

    @contextmanager
    def locked(self, sid):
        """取玩家的会话并持有它的锁，改状态的请求都走这里"""
        entry = self._touch(sid)
        with entry.lock:
            yield entry.session

    def peek(self, sid):
        with self._lock:
            entry = self._sessions.get(sid)
            return entry.session if entry else None

    def discard(self, sid):
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def _evict_idle(self, now):
        while self._sessions:
            sid, entry = next(iter(self._sessions.items()))
            if now - entry.last_seen <= self._idle_seconds:
                break
            del self._sessions[sid]
            logger.debug("[%s] idle session evicted sid=%s", self.game_key, _short(sid))

    def log(self, sid, action, payload=None, result=None):
        logger.info("[%s] sid=%s action=%s payload=%s result=%s",
                    self.game_key, _short(sid), action, payload or {}, result or {})


def _short(sid):
    return (sid or "")[:8]
