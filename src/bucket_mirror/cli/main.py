"""Main CLI entry point for bucket-mirror."""  # pragma: no cover

from bucket_mirror.cli.app import app  # pragma: no cover
from bucket_mirror.config import get_config  # pragma: no cover
from bucket_mirror.utils import setup_logging  # pragma: no cover

# Register commands
from bucket_mirror.cli.commands import files, serve, sync  # pragma: no cover

__all__ = ["files", "serve", "sync"]  # pragma: no cover


def main() -> None:  # pragma: no cover
    config = get_config()
    setup_logging(level=config.log_level, log_file=config.log_file)
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
