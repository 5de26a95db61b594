# src/webapp2worker/utils/configure_logging.py
import logging
import sys
from tqdm import tqdm

# Third-party loggers that only matter when something is already broken.
DEFAULT_SILENCED_LOGGERS = {
    "aiohttp": "WARNING",
    "asyncio": "WARNING",
    "html5lib": "WARNING",
}


class LogWithTqdm(logging.Handler):
    """
    A custom logging handler that redirects logging output to `tqdm.write()`,
    so log lines do not tear through the batch conversion progress bar.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level, fallback):
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level


def configure_logger(general_level='WARNING', module_specific_levels=None, silenced_loggers=None, verbose=False):
    """
    Configures the root logger with a TQDM-friendly handler.

    `verbose` (the CLI's -v) forces DEBUG for the webapp2worker loggers only;
    third-party loggers keep the levels from `silenced_loggers`
    (DEFAULT_SILENCED_LOGGERS when not given).
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.WARNING))

    # Replace whatever handlers a previous call (or a library) installed.
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    levels = dict(module_specific_levels or {})
    if verbose:
        levels["webapp2worker"] = "DEBUG"
    for name, level in levels.items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    silenced = DEFAULT_SILENCED_LOGGERS if silenced_loggers is None else silenced_loggers
    for name, level in silenced.items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))
