from __future__ import annotations

from ecs_anywhere_installer.main import main as core_main


def main(argv: list[str] | None = None) -> int:
    # Console entrypoint kept separate so packaging tools can wrap it.
    return core_main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
