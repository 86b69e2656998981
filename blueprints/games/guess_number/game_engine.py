"""
猜数字游戏引擎
包含：输入校验（GuessValidator）、单局状态机（GameSession）
纯内存、无副作用，不依赖 Flask，方便单测
"""
import random
from enum import Enum

GUESS_MIN = 1
GUESS_MAX = 9
MAX_TRIALS = 3

HINT_TOO_HIGH = "too high"
HINT_TOO_LOW = "too low"


class GameError(Exception):
    """游戏流程错误（不是用户输入错误）"""


class RoundOverError(GameError):
    """本局已结束（猜中或次数用完），必须先开新局"""

    def __init__(self, phase):
        super().__init__(f"round is over ({phase.value}), start a new game first")
        self.phase = phase


class Phase(Enum):
    GUESSING = "guessing"
    RETRY = "retry"
    CORRECT = "correct"
    GAME_OVER = "game_over"

    @property
    def round_over(self):
        return self in (Phase.CORRECT, Phase.GAME_OVER)


class ValidationError(Enum):
    REQUIRED = "guess is required"
    OUT_OF_RANGE = f"guess must be a number between {GUESS_MIN} and {GUESS_MAX}"

    @property
    def code(self):
        return self.name

    @property
    def message(self):
        return self.value


class ValidGuess:
    __slots__ = ("number",)

    def __init__(self, number: int):
        self.number = number

    def __eq__(self, other):
        return isinstance(other, ValidGuess) and other.number == self.number

    def __hash__(self):
        return hash(self.number)

    def __repr__(self):
        return f"ValidGuess(number={self.number})"


class ValidationResult:
    """校验结果：guess 和 error 二选一"""
    __slots__ = ("guess", "error")

    def __init__(self, guess: ValidGuess | None = None, error: ValidationError | None = None):
        if (guess is None) == (error is None):
            raise ValueError("exactly one of guess/error must be set")
        self.guess = guess
        self.error = error

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def success(cls, number):
        return cls(guess=ValidGuess(number))

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    def to_dict(self):
        if self.ok:
            return {"ok": True, "number": self.guess.number}
        return {"ok": False, "error": self.error.code, "message": self.error.message}

    def __repr__(self):
        return f"ValidationResult(guess={self.guess!r}, error={self.error!r})"


class GuessValidator:
    """单次猜测的校验，纯函数"""

    @staticmethod
    def parse(raw):
        """把表单/JSON 里的值转成 int；转不了返回 None"""
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, int):
            return raw
        if isinstance(raw, str):
            s = raw.strip()
            negative = s[:1] == "-"
            digits = s[1:] if s[:1] in ("+", "-") else s
            # 只认 ASCII 数字；全角数字、"1_0" 这类 int() 能吃的写法都不算
            if not (digits.isascii() and digits.isdigit()):
                return None
            # 超长数字串不转 int，直接按越界处理
            if len(digits.lstrip("0")) > len(str(GUESS_MAX)):
                return GUESS_MIN - 1 if negative else GUESS_MAX + 1
            number = int(digits)
            return -number if negative else number
        # float/list/dict 等一律当作没填
        return None

    @staticmethod
    def validate(raw) -> ValidationResult:
        number = GuessValidator.parse(raw)
        if number is None:
            return ValidationResult.failure(ValidationError.REQUIRED)
        if not (GUESS_MIN <= number <= GUESS_MAX):
            return ValidationResult.failure(ValidationError.OUT_OF_RANGE)
        return ValidationResult.success(number)


def validate(raw) -> ValidationResult:
    return GuessValidator.validate(raw)


class Guess:
    """
    本局的猜测记录
    number: 当前这次猜的数（答错后清空，避免表单回显旧值）
    trials: 本局已答错的次数，只在确认答错时 +1
    is_correct: 猜中即 True
    """
    __slots__ = ("number", "trials", "is_correct")

    def __init__(self, number=None, trials=0, is_correct=False):
        self.number = number
        self.trials = trials
        self.is_correct = is_correct

    def to_dict(self):
        return {"number": self.number, "trials": self.trials, "is_correct": self.is_correct}


class GameSnapshot:
    """给模板/接口渲染用的只读状态（不含 secret）"""
    __slots__ = ("phase", "score", "remaining_trials", "last_message", "last_guess")

    def __init__(self, phase, score, remaining_trials, last_message="", last_guess=None):
        self.phase = phase
        self.score = score
        self.remaining_trials = remaining_trials
        self.last_message = last_message
        self.last_guess = last_guess

    def to_dict(self):
        return {
            "phase": self.phase.value,
            "score": self.score,
            "remaining_trials": self.remaining_trials,
            "last_message": self.last_message,
            "last_guess": self.last_guess,
        }


class GuessOutcome:
    """submit_guess 的返回；error 非空表示输入不合法、状态未变"""
    __slots__ = ("phase", "score", "remaining_trials", "message", "error")

    def __init__(self, phase, score, remaining_trials, message="", error=None):
        self.phase = phase
        self.score = score
        self.remaining_trials = remaining_trials
        self.message = message
        self.error = error

    @property
    def ok(self):
        return self.error is None

    def to_dict(self):
        d = {
            "ok": self.ok,
            "phase": self.phase.value,
            "score": self.score,
            "remaining_trials": self.remaining_trials,
        }
        if self.message:
            d["message"] = self.message
        if self.error is not None:
            d["error"] = self.error.code
            d["message"] = self.error.message
        return d


class GameSession:
    """
    一个玩家一份的状态机
    GUESSING/RETRY 可以继续猜；CORRECT/GAME_OVER 冻结，直到 start_new_game
    score 跨局累计，是否在 game over 后保留由调用方决定（keep_score）
    """

    def __init__(self, max_trials=MAX_TRIALS, rng=None):
        if max_trials < 1:
            raise ValueError("max_trials must be >= 1")
        self.max_trials = max_trials
        self._rng = rng or random.Random()
        self.score = 0
        self._reset_round()

    def _draw_secret(self):
        return self._rng.randint(GUESS_MIN, GUESS_MAX)

    def _reset_round(self):
        self.secret_number = self._draw_secret()
        self.remaining_trials = self.max_trials
        self.last_message = ""
        self.last_guess = None
        self.phase = Phase.GUESSING
        self.guess = Guess()

    # 对外操作
    def preview_guess(self, raw) -> ValidationResult:
        """边输入边校验：只跑校验，不消耗次数、不改 phase"""
        return GuessValidator.validate(raw)

    def submit_guess(self, raw) -> GuessOutcome:
        if self.phase.round_over:
            raise RoundOverError(self.phase)

        result = GuessValidator.validate(raw)
        if not result.ok:
            return self._outcome(error=result.error)

        number = result.guess.number
        self.last_guess = number

        if number == self.secret_number:
            self.guess = Guess(number, self.guess.trials, is_correct=True)
            self.score += 1
            self.phase = Phase.CORRECT
            return self._outcome()

        hint = HINT_TOO_HIGH if self.secret_number < number else HINT_TOO_LOW
        # 每次答错只扣 1 次
        self.remaining_trials -= 1
        self.guess = Guess(None, self.guess.trials + 1)
        self.last_message = hint
        if self.remaining_trials <= 0:
            self.remaining_trials = 0
            self.phase = Phase.GAME_OVER
        else:
            self.phase = Phase.RETRY
        return self._outcome(message=hint)

    def start_new_game(self, keep_score: bool) -> GameSnapshot:
        """
        开新局。引擎本身不限制 phase（方便测试和重置）；
        对玩家暴露的接口只在 CORRECT/GAME_OVER 时才允许调用，见 plugin._new_game_policy
        """
        score = self.score if keep_score else 0
        self._reset_round()
        self.score = score
        return self.current_snapshot()

    def current_snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self.phase,
            score=self.score,
            remaining_trials=self.remaining_trials,
            last_message=self.last_message,
            last_guess=self.last_guess,
        )

    def _outcome(self, message="", error=None):
        return GuessOutcome(
            phase=self.phase,
            score=self.score,
            remaining_trials=self.remaining_trials,
            message=message,
            error=error,
        )

    def __repr__(self):
        # 不打印 secret
        return (f"<GameSession phase={self.phase.value} score={self.score} "
                f"remaining_trials={self.remaining_trials}>")
