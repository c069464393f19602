"""
Command line entry point.

    babelpost serve            # HTTP API
    babelpost worker           # detection job worker
    babelpost load-settings settings.yaml
    babelpost clear-translations   # forget every cached detection/translation
"""

from __future__ import annotations

import argparse
import asyncio
import logging

import uvicorn

from babelpost.config import get_settings
from babelpost.config_loader import load_site_settings
from babelpost.integrations.sentry import init_sentry, set_tag
from babelpost.wiring import build_components

logger = logging.getLogger(__name__)


async def run_worker() -> None:
    """Consume detection jobs until interrupted."""
    settings = get_settings()
    if not settings.use_redis:
        logger.warning("REDIS_URL is not set; this worker only sees its own in-memory queue")
    
    init_sentry()
    set_tag("process", "worker")
    components = build_components(settings)
    if settings.site_settings_file:
        await load_site_settings(settings.site_settings_file, components.settings_store)
    
    await components.worker().run_forever()


async def run_load_settings(path: str) -> None:
    components = build_components(get_settings())
    config = await load_site_settings(path, components.settings_store)
    print(f"Translator enabled: {config.translator_enabled}, provider: {config.translator}")


async def run_clear_translations() -> None:
    components = build_components(get_settings())
    removed = await components.state_store.clear_all()
    print(f"Cleared translation state for {removed} posts")


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(prog="babelpost", description=__doc__.strip().splitlines()[0])
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    
    subparsers.add_parser("worker", help="Run the detection job worker")
    
    load = subparsers.add_parser("load-settings", help="Seed translator settings from YAML")
    load.add_argument("path")
    
    subparsers.add_parser("clear-translations", help="Forget all cached detections and translations")
    
    args = parser.parse_args(argv)
    settings = get_settings()
    
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    
    if args.command == "serve":
        uvicorn.run(
            "babelpost.api.app:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
        )
    elif args.command == "worker":
        try:
            asyncio.run(run_worker())
        except KeyboardInterrupt:
            logger.info("Worker interrupted")
    elif args.command == "load-settings":
        asyncio.run(run_load_settings(args.path))
    elif args.command == "clear-translations":
        asyncio.run(run_clear_translations())


if __name__ == "__main__":
    main()
