import logging


def setup_logging(verbose: bool = False) -> None:
    # StreamHandler writes to stderr; stdout is reserved for scan output
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
