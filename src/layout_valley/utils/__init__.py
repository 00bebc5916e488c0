from layout_valley.utils.env import EnvConfig
from layout_valley.utils.logger import PACKAGE_LOGGER, get_logger
from layout_valley.utils.timing import trace

__all__ = ["EnvConfig", "PACKAGE_LOGGER", "get_logger", "trace"]
