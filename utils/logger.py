"""
Logger Configuration
研究流水线的日志配置: 终端用 Rich, 可选写入 logs/ 下的文件
"""
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

from rich.console import Console
from rich.logging import RichHandler


console = Console(stderr=True)

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

LOG_DIR = Path(__file__).parent.parent / "logs"

# 各模块 logging.getLogger(__name__) 的顶层包名
PIPELINE_PACKAGES = ("providers", "aggregator", "sources", "intelligence")

# 每个 HTTP 请求都会打 INFO 的第三方库
CHATTY_LIBRARIES = ("httpx", "httpcore", "anthropic")


def _console_handler(use_rich: bool) -> logging.Handler:
    if use_rich:
        handler = RichHandler(console=console, show_path=False, rich_tracebacks=True, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _file_handler(log_file: Union[str, Path]) -> logging.Handler:
    path = Path(log_file)
    if not path.is_absolute():
        path = LOG_DIR / path
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logger(
    name: str = "research_agent",
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """
    配置一个命名 logger

    已有 handler 的 logger 只更新级别, 不会重复挂载。

    Args:
        name: logger 名称
        level: 日志级别
        log_file: 日志文件; 相对路径放在 logs/ 下
        use_rich: 终端输出是否使用 RichHandler
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handlers = [_console_handler(use_rich)]
    if log_file:
        handlers.append(_file_handler(log_file))
    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)

    return logger


def get_logger(name: str = "research_agent") -> logging.Logger:
    """取 logger, 首次使用时按默认方式配置"""
    logger = logging.getLogger(name)
    return logger if logger.handlers else setup_logger(name)


def configure_package_logging(
    level: int = logging.INFO,
    use_rich: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    quiet: Iterable[str] = CHATTY_LIBRARIES,
) -> None:
    """
    为流水线各包挂载同一套 handler, 并把第三方 HTTP 客户端压到 WARNING

    Args:
        level: 流水线日志级别
        use_rich: 是否使用 Rich
        log_file: 可选的日志文件
        quiet: 需要降到 WARNING 的第三方 logger
    """
    for package in PIPELINE_PACKAGES:
        setup_logger(package, level=level, log_file=log_file, use_rich=use_rich)
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
