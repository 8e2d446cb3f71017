#!/usr/bin/env python3
"""
Almanac - Entry point for running the web API.

Usage:
    python main.py                      # Serve on [::]:8000
    python main.py --host 0.0.0.0 --port 9000
"""

import argparse
import logging

import uvicorn

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Almanac financial calendar API")
    parser.add_argument("--host", default="::", help="Web server host")
    parser.add_argument("--port", type=int, default=8000, help="Web server port")
    args = parser.parse_args()

    # The app's lifespan connects the database in the loop that serves requests.
    logger.info(f"Running web server on {args.host}:{args.port}")
    uvicorn.run("almanac.app:app", host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
