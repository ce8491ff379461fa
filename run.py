import sys

from lint_reviewer.logger import get_logger


def main() -> int:
    logger = get_logger()
    logger.info("Starting ESLint Gemini review for this pull request")

    from lint_reviewer.main import main as run_action

    return run_action()


if __name__ == "__main__":
    sys.exit(main())
