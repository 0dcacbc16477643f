"""Play a scripted round of the 24 Game.

Uses ``Game.from_numbers()`` to deal a fixed puzzle (3, 3, 8, 8) and
walks through a few rejected moves, a wrong answer, and finally the
classic solution ``8 / (3 - 8 / 3)``, printing the board after each
step.
"""

import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import game24


def _step(game: game24.Game, label: str) -> None:
    print(f"── {label} " + "─" * max(0, 50 - len(label)))
    print(game)
    print()


def main() -> None:
    game = game24.Game.from_numbers([3, 3, 8, 8])
    _step(game, "New round")

    # ── Rejected moves ──────────────────────────────────────
    game.append_operator("*")
    _step(game, "Operator at the start")

    game.append_number(8)
    game.append_number(3)
    _step(game, "Two numbers in a row")

    # ── A wrong answer ──────────────────────────────────────
    # 8 * 3 + 8 - 3 = 29
    for token in ["*", "3", "+", "8", "-"]:
        if token.isdigit():
            game.append_number(int(token))
        else:
            game.append_operator(token)
    game.append_number(3)
    game.request_check()
    _step(game, "Wrong answer")

    # ── The solution ────────────────────────────────────────
    game.clear_expression()
    for token in ["8", "/", "(", "3", "-", "8", "/", "3", ")"]:
        if token.isdigit():
            game.append_number(int(token))
        else:
            game.append_operator(token)
    game.request_check()
    _step(game, "Solved")


if __name__ == "__main__":
    main()
