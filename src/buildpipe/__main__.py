"""Package entry point.

Preferred invocation is via the installed console script:

    buildpipe ...

For convenience we also support:

    python -m buildpipe ...
"""

from __future__ import annotations

from .cli import app


def main() -> None:
    """Entry point used by `python -m buildpipe`."""

    app()


if __name__ == "__main__":
    main()
