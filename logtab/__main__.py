"""Entry point module for running logtab via `python -m logtab` or the `logtab` script."""

from typing import Optional, Sequence

from logtab.app import run


def main(argv: Optional[Sequence[str]] = None) -> None:
    run(argv)


if __name__ == "__main__":
    main()
