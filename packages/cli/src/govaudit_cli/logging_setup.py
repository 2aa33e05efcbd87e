import logging

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(verbosity: int = 0) -> None:
    """
    Configure logging based on verbosity level.
    0 = WARNING (default)
    1 = INFO for govaudit (-v)
    2 = DEBUG for govaudit, libraries WARNING (-vv)
    3 = DEBUG everywhere (-vvv)
    """
    root_level = logging.DEBUG if verbosity >= 3 else logging.WARNING
    if verbosity >= 2:
        app_level = logging.DEBUG
    elif verbosity == 1:
        app_level = logging.INFO
    else:
        app_level = logging.WARNING

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    logging.basicConfig(level=root_level, format=_FORMAT, handlers=[logging.StreamHandler()])

    for name in ("govaudit_core", "govaudit_store", "govaudit_cli"):
        logging.getLogger(name).setLevel(app_level)
