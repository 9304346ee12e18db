import logging
import sys

LOGGER_NAME = "portfolio_sync"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", name: str = LOGGER_NAME) -> logging.Logger:
    """
    統一的日誌配置，由各入口 (CLI、HTTP) 依注入的 Settings.LOG_LEVEL 呼叫。
    輸出到 Console (Stdout)，讓 Serverless 平台與 Docker 都能收集。
    重複呼叫只會調整等級，不會重複添加 Handler。
    """
    logger = logging.getLogger(name)
    resolved = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(resolved)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(resolved)
    return logger


# 各模組共用的 Logger；等級與輸出由 setup_logging() 設定
logger = logging.getLogger(LOGGER_NAME)
