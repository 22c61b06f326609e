# config/event_loop.py
import asyncio
import logging
import sys

logger = logging.getLogger(__name__)


def setup_event_loop():
    """Playwright launches browsers as subprocesses, which on Windows needs the proactor loop"""
    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
        logger.info("WindowsProactorEventLoopPolicy set for browser subprocesses")
    else:
        logger.debug(f"Platform {sys.platform} - using default event loop")
