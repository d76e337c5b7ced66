import logging


def setup_logging(level: str) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=lvl, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    # kafka-python is chatty at INFO (connection state changes, metadata refreshes)
    logging.getLogger("kafka").setLevel(max(lvl, logging.WARNING))
