from __future__ import annotations

import argparse
import logging
import mimetypes
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from .config_loader import AppConfig, load_config
from .server import create_app
from ..ai.gemini_client import GeminiCascadeClassifier

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser with minimal CLI flags.

    Most configuration is loaded from config/identify.json.
    CLI flags are only for quick overrides.
    """
    parser = argparse.ArgumentParser(
        description="Run the image identification API server",
        epilog="Configuration is loaded from config/identify.json. "
               "CLI arguments override config file settings."
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/identify.json",
        help="Path to JSON configuration file (default: config/identify.json)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Override server host (default: from config file)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Override server port (default: from config file)"
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Identify a single local image, print the label and exit"
    )
    return parser


def build_classifier(cfg: AppConfig) -> GeminiCascadeClassifier:
    gemini = cfg.classifier.gemini
    key = os.environ.get(gemini.api_key_env)
    if not key:
        logger.error("Environment variable %s must be set for the Gemini classifier", gemini.api_key_env)
        sys.exit(1)
    settings = gemini.to_settings(key)
    logger.info(
        "Gemini cascade models=%s api_versions=%s timeout=%.1fs",
        ",".join(settings.models_to_try),
        ",".join(settings.api_versions),
        settings.timeout,
    )
    return GeminiCascadeClassifier(settings=settings)


def identify_file(classifier: GeminiCascadeClassifier, image_path: Path) -> int:
    try:
        image_bytes = image_path.read_bytes()
    except OSError as exc:
        logger.error("Failed to read image %s: %s", image_path, exc)
        return 1
    media_type = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
    outcome = classifier.classify_image(image_bytes, media_type)
    for attempt in outcome.attempts:
        logger.info(
            "Attempt model=%s api_version=%s result=%s",
            attempt.model,
            attempt.api_version,
            attempt.kind.value,
        )
    if not outcome.ok:
        logger.error("Identification failed: %s", outcome.last_error or "Model not available")
        return 2
    print(outcome.label)
    return 0


def main() -> None:
    load_dotenv()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s"
        )
    parser = build_parser()
    args = parser.parse_args()

    try:
        cfg = load_config(args.config if Path(args.config).exists() else None)
    except ValueError as exc:
        logger.error("Failed to load configuration: %s", exc)
        sys.exit(1)
    if not Path(args.config).exists():
        logger.info("Configuration file %s not found; using defaults", args.config)

    if args.host:
        cfg.server.host = args.host
    if args.port:
        cfg.server.port = args.port

    classifier = build_classifier(cfg)

    if args.image:
        sys.exit(identify_file(classifier, Path(args.image)))

    logger.info("Server configuration: %s:%s", cfg.server.host, cfg.server.port)
    logger.info("Records root: %s", cfg.storage.records_root)

    app = create_app(classifier, root_dir=Path(cfg.storage.records_root))
    config = uvicorn.Config(
        app,
        host=cfg.server.host,
        port=cfg.server.port,
        log_level="info",
        timeout_graceful_shutdown=1,
    )
    server = uvicorn.Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received during shutdown")


if __name__ == "__main__":
    main()
