#!/usr/bin/env python3
"""
MindBot Server - HTTP launcher
Runs the FastAPI message endpoint under uvicorn
"""
import os
import sys

# Fix encoding issues on servers with ASCII locale
os.environ.setdefault('PYTHONIOENCODING', 'utf-8')

import logging
import uvicorn
from mindbot.config import settings
from mindbot.telemetry import configure_logging

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


def main():
    logger.info("Starting MindBot server...")
    logger.info(f"Python {sys.version}, encoding={sys.getdefaultencoding()}")
    logger.info(f"HTTP server will run on http://{settings.http_host}:{settings.http_port}")
    uvicorn.run(
        "mindbot.main:app",
        host=settings.http_host,
        port=settings.http_port,
        log_level=settings.log_level.lower(),
        log_config=None,  # keep our handlers (and the request-context filter)
    )


if __name__ == "__main__":
    main()
