"""Meligy API entry point."""

import asyncio
import logging

from meligy.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


async def serve() -> None:
    """Run the HTTP API until cancelled."""
    from meligy.web.server import WebServer

    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is empty — chat replies will use local fallbacks")

    server = WebServer()
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main() -> None:
    logger.info("Starting Meligy with model %s...", settings.gemini_text_model)
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Meligy stopped")


if __name__ == "__main__":
    main()
