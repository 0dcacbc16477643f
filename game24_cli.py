"""Interactive terminal front end for the 24 Game.

Reads commands from stdin, applies them to a ``game24.Game`` and prints
the board after each line. A whole expression can be typed on one line,
e.g. ``8/(3-8/3)`` followed by an empty line to check.

Environment:
    GAME24_SEED: Seed for reproducible number draws.
    GAME24_TARGET: Target value (default 24).
    GAME24_LOG_LEVEL: Logging level (default WARNING).
"""

import logging
import os
import re
import sys

import evaluator
import game24

# Print the command reference before the first round.
SHOW_HELP_ON_START = True

# Emit ANSI colors; also disabled automatically when stdout is not a tty.
USE_COLOR = True

HELP_TEXT = """\
Commands:
  1-9          place a number (the first unused card with that value)
  + - * /      operators (x and ÷ also work)
  ( )          parentheses
  <enter> / =  check the expression
  b / back     remove the last token
  c / esc      clear the expression
  n / new      start a new round
  ? / help     show this help
  q / quit     leave the game"""

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")

_CHECK_WORDS = {"", "=", "check"}
_CLEAR_WORDS = {"c", "clear", "esc", "escape"}
_BACK_WORDS = {"b", "back", "backspace"}
_NEW_WORDS = {"n", "new"}
_HELP_WORDS = {"?", "h", "help"}
_QUIT_WORDS = {"q", "quit", "exit"}


def handle_line(game: game24.Game, line: str) -> bool:
    """Apply one line of input to the game.

    Word commands (``new``, ``back``, ...) must be on a line by
    themselves. Anything else is read as a sequence of numbers,
    operators and ``=``; processing stops at the first rejection.

    Args:
        game: The game to act on.
        line: Raw input line.

    Returns:
        False if the player asked to quit, True otherwise.
    """
    word = line.strip().lower()
    if word in _QUIT_WORDS:
        return False
    if word in _CHECK_WORDS:
        game.request_check()
    elif word in _CLEAR_WORDS:
        game.clear_expression()
    elif word in _BACK_WORDS:
        game.remove_last_token()
    elif word in _NEW_WORDS:
        game.request_new_round()
    elif word in _HELP_WORDS:
        print(HELP_TEXT)
    else:
        _apply_expression(game, line)
    return True


def _apply_expression(game: game24.Game, line: str) -> None:
    """Apply expression text, checking the expression at each ``=``.

    Each segment is tokenized before any of it is applied, so a segment
    with an unknown character changes nothing. Processing stops at the
    first rejection.
    """
    segments = line.split("=")
    for i, segment in enumerate(segments):
        try:
            tokens = evaluator.tokenize(evaluator.normalize_expression(segment))
        except evaluator.ExpressionError as e:
            game.reject(str(e))
            return
        for token in tokens:
            if not _apply_token(game, token):
                return
        if i < len(segments) - 1:
            if game.is_solved:
                return
            feedback = game.request_check()
            if feedback is None or feedback.level == game24.FeedbackLevel.WARNING:
                return


def _apply_token(game: game24.Game, token: str) -> bool:
    """Apply a single token. Returns False if it was rejected."""
    if game.is_solved:
        return False
    if token.isdigit():
        return game.append_number(int(token)) is None
    return game.append_operator(token) is None


def render(game: game24.Game, color: bool = True) -> str:
    """Render the board, optionally stripping ANSI colors."""
    text = str(game)
    if not color:
        text = _ANSI_RE.sub("", text)
    return text


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("GAME24_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    color = USE_COLOR and sys.stdout.isatty()
    config = game24.GameConfig.from_env()
    game = game24.Game.create_game(config)

    if SHOW_HELP_ON_START:
        print(HELP_TEXT)
        print()

    while True:
        print(render(game, color=color))
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not handle_line(game, line):
            break
        print()

    state = game.round_state
    print(f"Games played: {state.games_played} | Solved: {state.games_solved}")


if __name__ == "__main__":
    main()
