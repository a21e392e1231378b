"""Console logging for the scorebin package."""

import logging


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure the 'scorebin' logger once; later calls only adjust the level."""
    logger = logging.getLogger('scorebin')
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    if logger.handlers:
        return logger

    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s',
                                      datefmt='%H:%M:%S'))
    logger.addHandler(ch)
    return logger
