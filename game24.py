"""24 Game model.

Core classes for the 24 Game: the four number cards of a round, the
expression the player builds from them, round statistics, and the
``Game`` object that applies player actions with the game's legality
rules. Rendering is plain ANSI text via ``__str__`` so the same model
backs the interactive terminal front end and the unit tests.
"""

from __future__ import annotations

import collections
import dataclasses
import enum
import logging
import os
import random
import time
from typing import Callable

import evaluator

logger = logging.getLogger(__name__)


# =============================================================================
# ANSI Color Constants
# =============================================================================

class _Colors:
    """ANSI escape codes for terminal coloring."""
    BLUE = "\033[94m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


# =============================================================================
# Enums
# =============================================================================

class FeedbackLevel(enum.Enum):
    """Severity of a feedback message shown to the player."""
    SUCCESS = enum.auto()
    WARNING = enum.auto()
    INFO = enum.auto()

    def ansi(self) -> str:
        """Returns the ANSI color code for this feedback level."""
        return {
            FeedbackLevel.SUCCESS: _Colors.GREEN,
            FeedbackLevel.WARNING: _Colors.YELLOW,
            FeedbackLevel.INFO: _Colors.BLUE,
        }[self]


class Proximity(enum.Enum):
    """How close the current result is to the target.

    EXACT: within the solve tolerance.
    NEAR: within ``GameConfig.near_band`` of the target.
    FAR: anything else.
    NONE: there is no numeric result.
    """
    EXACT = enum.auto()
    NEAR = enum.auto()
    FAR = enum.auto()
    NONE = enum.auto()

    def ansi(self) -> str:
        """Returns the ANSI color code for this proximity band."""
        return {
            Proximity.EXACT: _Colors.GREEN,
            Proximity.NEAR: _Colors.YELLOW,
            Proximity.FAR: _Colors.RED,
            Proximity.NONE: _Colors.DIM,
        }[self]


_TOKEN_COLORS = {
    evaluator.TokenKind.NUMBER: _Colors.BOLD,
    evaluator.TokenKind.OPERATOR: _Colors.CYAN,
    evaluator.TokenKind.PARENTHESIS: _Colors.DIM,
    evaluator.TokenKind.UNKNOWN: _Colors.RED,
}

_BINARY_OPERATORS = tuple(evaluator.OPERATORS)

EMPTY_EXPRESSION_HINT = "Enter numbers and operations to build an expression"


# =============================================================================
# Configuration
# =============================================================================

@dataclasses.dataclass(frozen=True)
class GameConfig:
    """Tunable rules for a game.

    Attributes:
        target: The value a solution must reach.
        tolerance: Maximum absolute error for a result to count as the
            target.
        near_band: Results within this distance of the target are shown
            as NEAR.
        number_count: How many cards are drawn each round.
        min_value: Smallest card value (inclusive).
        max_value: Largest card value (inclusive).
        seed: Optional random seed for reproducible draws.
    """
    target: float = 24.0
    tolerance: float = 0.001
    near_band: float = 5.0
    number_count: int = 4
    min_value: int = 1
    max_value: int = 9
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.number_count < 1:
            raise ValueError(
                f"number_count must be positive, got {self.number_count}"
            )
        if self.min_value < 0 or self.min_value > self.max_value:
            raise ValueError(
                f"Invalid card range {self.min_value}-{self.max_value}"
            )
        if self.max_value - self.min_value + 1 < self.number_count:
            raise ValueError(
                f"Cannot draw {self.number_count} distinct values from "
                f"{self.min_value}-{self.max_value}"
            )
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.near_band < 0:
            raise ValueError(f"near_band must be >= 0, got {self.near_band}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> GameConfig:
        """Build a config from ``GAME24_*`` environment variables.

        Recognised variables: ``GAME24_SEED`` (int) and ``GAME24_TARGET``
        (number). Unset variables keep their defaults.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ValueError: If a variable is set but cannot be parsed.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        seed = env.get("GAME24_SEED")
        if seed:
            kwargs["seed"] = int(seed)
        target = env.get("GAME24_TARGET")
        if target:
            kwargs["target"] = float(target)
        return cls(**kwargs)  # type: ignore[arg-type]


# =============================================================================
# Feedback
# =============================================================================

@dataclasses.dataclass(frozen=True)
class Feedback:
    """A message for the player after an action.

    Attributes:
        message: Text shown in the feedback banner.
        level: Severity, used for coloring.
    """
    message: str
    level: FeedbackLevel = FeedbackLevel.INFO

    def __str__(self) -> str:
        return f"{self.level.ansi()}{self.message}{_Colors.RESET}"


# =============================================================================
# Number Cards
# =============================================================================

@dataclasses.dataclass
class NumberCard:
    """One of the numbers dealt for a round.

    Cards are tracked by slot so repeated values stay distinct.

    Attributes:
        index: Slot position (0-based).
        value: The number shown on the card.
        used: Whether the card is currently placed in the expression.
    """
    index: int
    value: int
    used: bool = False

    def __str__(self) -> str:
        if self.used:
            return f"{_Colors.DIM}[{self.value}]{_Colors.RESET}"
        return f"{_Colors.BOLD}[{self.value}]{_Colors.RESET}"


def generate_numbers(
    config: GameConfig, rng: random.Random | None = None,
) -> list[int]:
    """Draw the numbers for a new round.

    Values are drawn independently and redrawn on collision until
    ``config.number_count`` distinct values are collected.

    Args:
        config: Game rules giving the count and value range.
        rng: Random source; the module-level generator if None.

    Returns:
        List of distinct ints in ``[min_value, max_value]``, in draw order.
    """
    source = rng if rng is not None else random
    numbers: list[int] = []
    while len(numbers) < config.number_count:
        num = source.randint(config.min_value, config.max_value)
        if num not in numbers:
            numbers.append(num)
    return numbers


# =============================================================================
# Expression
# =============================================================================

@dataclasses.dataclass
class Expression:
    """The ordered token sequence the player has built.

    Attributes:
        tokens: Number, operator and parenthesis tokens in order.
    """
    tokens: list[str] = dataclasses.field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    @property
    def last_token(self) -> str | None:
        """The most recently appended token, or None if empty."""
        return self.tokens[-1] if self.tokens else None

    @property
    def open_count(self) -> int:
        return self.tokens.count("(")

    @property
    def close_count(self) -> int:
        return self.tokens.count(")")

    def push(self, token: str) -> None:
        self.tokens.append(token)

    def pop(self) -> str:
        return self.tokens.pop()

    def clear(self) -> None:
        self.tokens.clear()

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        if not self.tokens:
            return f"{_Colors.DIM}{EMPTY_EXPRESSION_HINT}{_Colors.RESET}"
        parts = []
        for token in self.tokens:
            color = _TOKEN_COLORS[evaluator.classify_token(token)]
            parts.append(f"{color}{token}{_Colors.RESET}")
        return " ".join(parts)


# =============================================================================
# RoundState
# =============================================================================

@dataclasses.dataclass
class RoundState:
    """Per-round status and running statistics.

    Attributes:
        is_solved: Whether the current round has been solved.
        start_time: Clock reading when the round started, or None.
        end_time: Clock reading when the timer stopped, or None while
            it is running.
        games_played: Rounds started so far.
        games_solved: Rounds solved so far.
    """
    is_solved: bool = False
    start_time: float | None = None
    end_time: float | None = None
    games_played: int = 0
    games_solved: int = 0

    @property
    def timer_running(self) -> bool:
        return self.start_time is not None and self.end_time is None

    def start_timer(self, now: float) -> None:
        self.start_time = now
        self.end_time = None

    def stop_timer(self, now: float) -> None:
        if self.timer_running:
            self.end_time = now

    def elapsed_seconds(self, now: float) -> int:
        """Whole seconds since the round started.

        Frozen at the stop time once the timer is stopped.

        Args:
            now: Current clock reading.
        """
        if self.start_time is None:
            return 0
        end = self.end_time if self.end_time is not None else now
        return max(0, int(end - self.start_time))

    def format_elapsed(self, now: float) -> str:
        """Elapsed time as ``MM:SS``."""
        elapsed = self.elapsed_seconds(now)
        minutes, seconds = divmod(elapsed, 60)
        return f"{minutes:02d}:{seconds:02d}"


def classify_proximity(result: float | None, config: GameConfig) -> Proximity:
    """Classify a result by its distance from the target.

    Args:
        result: The current result, or None.
        config: Rules giving the target, tolerance and near band.

    Returns:
        The proximity band for display.
    """
    if result is None:
        return Proximity.NONE
    diff = abs(result - config.target)
    if diff < config.tolerance:
        return Proximity.EXACT
    if diff <= config.near_band:
        return Proximity.NEAR
    return Proximity.FAR


# =============================================================================
# Game
# =============================================================================

@dataclasses.dataclass
class Game:
    """The complete state of a 24 Game session.

    All player actions are methods on this object. Illegal actions are
    soft rejections: state is left unchanged and a warning ``Feedback``
    is returned and stored in ``feedback``. Once a round is solved, the
    building and checking actions do nothing until a new round starts.

    Attributes:
        config: Game rules.
        cards: Number cards for the current round.
        expression: Tokens built so far.
        round_state: Solve flag, timer and statistics.
        placed: Card indices in the order they were placed into the
            expression.
        feedback: The latest feedback message, or None.
        rng: Random source for drawing numbers.
        clock: Returns the current time in seconds.
    """
    config: GameConfig = dataclasses.field(default_factory=GameConfig)
    cards: list[NumberCard] = dataclasses.field(default_factory=list)
    expression: Expression = dataclasses.field(default_factory=Expression)
    round_state: RoundState = dataclasses.field(default_factory=RoundState)
    placed: list[int] = dataclasses.field(default_factory=list)
    feedback: Feedback | None = None
    rng: random.Random = dataclasses.field(
        default_factory=random.Random, repr=False,
    )
    clock: Callable[[], float] = dataclasses.field(
        default=time.monotonic, repr=False,
    )

    # -----------------------------------------------------------------
    # Factories
    # -----------------------------------------------------------------

    @classmethod
    def create_game(
        cls,
        config: GameConfig | None = None,
        clock: Callable[[], float] | None = None,
    ) -> Game:
        """Create a game and deal its first round.

        Args:
            config: Game rules; defaults to ``GameConfig()``.
            clock: Time source; defaults to ``time.monotonic``.

        Returns:
            A game in the Playing state with the timer running.
        """
        config = config if config is not None else GameConfig()
        game = cls(
            config=config,
            rng=random.Random(config.seed),
            clock=clock if clock is not None else time.monotonic,
        )
        game.request_new_round()
        return game

    @classmethod
    def from_numbers(
        cls,
        numbers: list[int],
        config: GameConfig | None = None,
        clock: Callable[[], float] | None = None,
    ) -> Game:
        """Create a game with a fixed set of numbers.

        Counts as one game played. Repeated values are allowed here;
        each card is tracked separately.

        Args:
            numbers: The card values, one per slot.
            config: Game rules; defaults to ``GameConfig()``.
            clock: Time source; defaults to ``time.monotonic``.

        Raises:
            ValueError: If the count does not match the config or a
                value is outside the configured range.
        """
        config = config if config is not None else GameConfig()
        if len(numbers) != config.number_count:
            raise ValueError(
                f"Expected {config.number_count} numbers, got {len(numbers)}"
            )
        for n in numbers:
            if not config.min_value <= n <= config.max_value:
                raise ValueError(
                    f"Number {n} outside {config.min_value}-{config.max_value}"
                )
        game = cls(
            config=config,
            rng=random.Random(config.seed),
            clock=clock if clock is not None else time.monotonic,
        )
        game._start_round(list(numbers))
        return game

    # -----------------------------------------------------------------
    # Derived state
    # -----------------------------------------------------------------

    @property
    def numbers(self) -> list[int]:
        """Card values for the current round, in slot order."""
        return [card.value for card in self.cards]

    @property
    def is_solved(self) -> bool:
        return self.round_state.is_solved

    @property
    def used_count(self) -> int:
        """Number of cards currently placed in the expression."""
        return sum(1 for card in self.cards if card.used)

    @property
    def used_numbers(self) -> collections.Counter[int]:
        """Placed values with their counts."""
        return collections.Counter(card.value for card in self.cards if card.used)

    @property
    def current_numbers(self) -> list[int]:
        """Placed values in the order they were placed."""
        return [self.cards[i].value for i in self.placed]

    def get_expression_tokens(self) -> list[str]:
        """A copy of the current expression tokens."""
        return list(self.expression.tokens)

    def get_current_result(self) -> float | None:
        """Evaluate the current expression.

        Returns:
            The finite numeric result, or None if there is none.
        """
        return evaluator.evaluate_tokens(self.expression.tokens)

    def proximity(self) -> Proximity:
        """Proximity band of the current result."""
        return classify_proximity(self.get_current_result(), self.config)

    def elapsed_seconds(self) -> int:
        return self.round_state.elapsed_seconds(self.clock())

    # -----------------------------------------------------------------
    # Round lifecycle
    # -----------------------------------------------------------------

    def request_new_round(self) -> None:
        """Deal new numbers and reset to the Playing state.

        Works from any state. Clears the expression and feedback,
        restarts the timer and counts a game played.
        """
        self._start_round(generate_numbers(self.config, self.rng))

    def _start_round(self, numbers: list[int]) -> None:
        self.cards = [NumberCard(i, n) for i, n in enumerate(numbers)]
        self.expression.clear()
        self.placed.clear()
        self.feedback = None
        self.round_state.is_solved = False
        self.round_state.games_played += 1
        self.round_state.start_timer(self.clock())
        logger.info(
            "Round %d started with numbers %s",
            self.round_state.games_played, self.numbers,
        )

    def reject(self, message: str) -> Feedback:
        """Record a warning for an action that was not applied."""
        logger.debug("Rejected action: %s", message)
        self.feedback = Feedback(message, FeedbackLevel.WARNING)
        return self.feedback

    # -----------------------------------------------------------------
    # Expression building
    # -----------------------------------------------------------------

    def _number_placement_error(self) -> str | None:
        last = self.expression.last_token
        if last is None or last == "(" or last in _BINARY_OPERATORS:
            return None
        return "A number must follow an operator or an opening parenthesis."

    def append_number(self, value: int) -> Feedback | None:
        """Place the first unused card showing ``value``.

        Args:
            value: The number to place.

        Returns:
            None if the number was placed, else the warning feedback.
        """
        if self.is_solved:
            return None
        matching = [card for card in self.cards if card.value == value]
        if not matching:
            return self.reject(f"{value} is not one of this round's numbers.")
        available = [card for card in matching if not card.used]
        if not available:
            return self.reject(
                "This number has already been used! "
                "Each number can only be used once."
            )
        return self._place_card(available[0])

    def append_card(self, index: int) -> Feedback | None:
        """Place the card in slot ``index``.

        Args:
            index: Card slot (0-based).

        Returns:
            None if the card was placed, else the warning feedback.

        Raises:
            ValueError: If the index does not name a card.
        """
        if not 0 <= index < len(self.cards):
            raise ValueError(f"No card at index {index}")
        if self.is_solved:
            return None
        card = self.cards[index]
        if card.used:
            return self.reject(
                "This number has already been used! "
                "Each number can only be used once."
            )
        return self._place_card(card)

    def _place_card(self, card: NumberCard) -> Feedback | None:
        error = self._number_placement_error()
        if error is not None:
            return self.reject(error)
        card.used = True
        self.placed.append(card.index)
        self.expression.push(str(card.value))
        self.feedback = None
        return None

    def append_operator(self, symbol: str) -> Feedback | None:
        """Append an operator or parenthesis.

        Args:
            symbol: One of ``+ - * / ( )``; ``×``, ``x``, ``÷`` and
                ``−`` are accepted as alternates.

        Returns:
            None if the token was appended, else the warning feedback.
        """
        if self.is_solved:
            return None
        op = evaluator.canonical_token(symbol)
        if op not in _BINARY_OPERATORS and op not in evaluator.PARENTHESES:
            return self.reject(f"Unknown operation: {symbol!r}")

        last = self.expression.last_token

        if last is None and op not in ("(", "-"):
            return self.reject(
                "Expression must start with a number or opening parenthesis."
            )

        if last in _BINARY_OPERATORS and op in _BINARY_OPERATORS:
            return self.reject("Cannot have consecutive operators.")

        # Only a unary minus may directly follow "("
        if last == "(" and op in _BINARY_OPERATORS and op != "-":
            return self.reject("Operator cannot follow an opening parenthesis.")

        if op == "(" and last is not None and last not in _BINARY_OPERATORS + ("(",):
            return self.reject(
                "Opening parenthesis must follow an operator or another "
                "parenthesis."
            )

        if op == "(":
            unused = len(self.cards) - self.used_count
            if unused == 0:
                return self.reject("No numbers left to place inside a parenthesis.")
            depth = self.expression.open_count - self.expression.close_count
            if depth + 1 > len(self.cards):
                return self.reject("Too many nested parentheses.")

        if op == ")":
            if self.expression.close_count >= self.expression.open_count:
                return self.reject("No matching opening parenthesis.")
            if last is None or not (evaluator.is_number_token(last) or last == ")"):
                return self.reject(
                    "Closing parenthesis must follow a number or another "
                    "closing parenthesis."
                )

        self.expression.push(op)
        self.feedback = None
        return None

    def remove_last_token(self) -> None:
        """Remove the last token, releasing its card if it was a number."""
        if self.is_solved or self.expression.is_empty:
            return
        token = self.expression.pop()
        if evaluator.is_number_token(token):
            card = self.cards[self.placed.pop()]
            card.used = False
        self.feedback = None

    def clear_expression(self) -> None:
        """Empty the expression and release every card."""
        if self.is_solved:
            return
        self.expression.clear()
        self.placed.clear()
        for card in self.cards:
            card.used = False
        self.feedback = None

    # -----------------------------------------------------------------
    # Checking
    # -----------------------------------------------------------------

    def request_check(self) -> Feedback | None:
        """Check whether the expression solves the round.

        Guards, in order: the expression must evaluate, every card must
        be used, and the result must be within tolerance of the target.
        A wrong value is reported as information and the round goes on.

        Returns:
            The feedback for the check, or None if the round was
            already solved.
        """
        if self.is_solved:
            return None

        result = self.get_current_result()
        if result is None:
            return self.reject("Invalid expression. Please check your calculation.")

        if self.used_count != len(self.cards):
            return self.reject(
                f"You must use all {_count_word(len(self.cards))} numbers "
                "exactly once."
            )

        if abs(result - self.config.target) < self.config.tolerance:
            now = self.clock()
            self.round_state.is_solved = True
            self.round_state.games_solved += 1
            self.round_state.stop_timer(now)
            logger.info(
                "Round %d solved in %ds: %s",
                self.round_state.games_played,
                self.round_state.elapsed_seconds(now),
                evaluator.render_expression(self.expression.tokens),
            )
            self.feedback = Feedback(
                "Congratulations! You solved it! The expression equals "
                f"{evaluator.format_result(self.config.target)}.",
                FeedbackLevel.SUCCESS,
            )
            return self.feedback

        self.feedback = Feedback(
            f"The expression equals {evaluator.format_fixed(result)}. "
            "Keep trying!",
            FeedbackLevel.INFO,
        )
        return self.feedback

    # -----------------------------------------------------------------
    # Display
    # -----------------------------------------------------------------

    def __str__(self) -> str:
        state = self.round_state
        lines = [
            f"{_Colors.BOLD}=== 24 Game ==={_Colors.RESET}",
            f"Time: {state.format_elapsed(self.clock())}"
            f" | Played: {state.games_played}"
            f" | Solved: {state.games_solved}",
            "",
            f"Numbers:    {' '.join(str(card) for card in self.cards)}",
            f"Expression: {self.expression}",
        ]

        result = self.get_current_result()
        band = classify_proximity(result, self.config)
        lines.append(
            f"Result:     {band.ansi()}{evaluator.format_result(result)}"
            f"{_Colors.RESET}"
        )

        if self.feedback is not None:
            lines.append("")
            lines.append(str(self.feedback))

        if state.is_solved:
            lines.append("")
            lines.append(f"{_Colors.GREEN}{_Colors.BOLD}SOLVED!{_Colors.RESET}")

        return "\n".join(lines)


def _count_word(n: int) -> str:
    words = {2: "two", 3: "three", 4: "four", 5: "five", 6: "six"}
    return words.get(n, str(n))
