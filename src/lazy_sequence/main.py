"""Main entry point for the lazy_sequence demo."""

import logging
import sys

from .config import get_demo_config
from .exceptions import LazySequenceError
from .sources import naturals

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging level.

    Args:
        verbose: Enable verbose logging
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.INFO)


def main():
    """Main execution function."""
    try:
        config = get_demo_config()
        setup_logging(config.verbose)

        logger.info(
            f"naturals({config.start}).drop({config.skip})"
            f".map(n * {config.factor}).take({config.take})"
        )

        factor = config.factor
        chain = naturals(config.start).drop(config.skip).map(lambda n: n * factor).take(config.take)
        chain.for_each(print)

        logger.info("Chain completed")
        return 0

    except KeyboardInterrupt:
        logger.warning("Execution interrupted by user")
        return 130
    except (LazySequenceError, ValueError) as e:
        logger.error(f"Error during execution: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
