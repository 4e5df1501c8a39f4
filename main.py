#!/usr/bin/env python3
"""
iQuiz - Main Entry Point

Runs the quiz catalog service: downloads the catalog from the configured
source, keeps a cache on disk and refreshes on a timer until stopped.

Usage:
    python main.py

Configuration:
    1. Adjust logging and storage locations in config.json
    2. Source URL and refresh interval are persisted in <data_directory>/settings.json

Environment Variables:
    IQUIZ_SOURCE_URL: Catalog URL (overrides and updates the persisted setting)
"""

import asyncio
import sys
import os
import json
import logging
from pathlib import Path

from iquiz.config_manager import ConfigManager
from iquiz.data_manager import DataManager
from iquiz.quiz_store import QuizStore


def load_config():
    """Load configuration from config.json file."""
    config_path = Path("config.json")

    if not config_path.exists():
        print("⚠️ config.json not found, using default settings")
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
        return config
    except json.JSONDecodeError as e:
        print(f"❌ Error: Invalid JSON in config.json: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"❌ Error loading config.json: {e}")
        sys.exit(1)


def setup_logging_from_config(config):
    """Set up logging based on configuration."""
    log_config = config.get('logging', {})
    log_level = getattr(logging, log_config.get('level', 'INFO').upper())
    log_directory = Path(log_config.get('log_directory', './logs/'))

    # Create logs directory
    log_directory.mkdir(parents=True, exist_ok=True)

    # Configure logging
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_directory / "iquiz.log", encoding='utf-8')
        ]
    )

    # Reduce aiohttp noise
    logging.getLogger('aiohttp').setLevel(logging.WARNING)


def build_store(config):
    """Create the store and its collaborators from configuration."""
    storage = config.get('storage', {})
    data_directory = Path(storage.get('data_directory', './data/'))

    config_manager = ConfigManager(str(data_directory / "settings.json"))

    source_url = os.getenv('IQUIZ_SOURCE_URL')
    if source_url:
        config_manager.set_source_url(source_url)

    data_manager = DataManager(str(data_directory / DataManager.CACHE_FILENAME))
    return QuizStore(
        config_manager,
        data_manager,
        request_timeout=float(storage.get('request_timeout', QuizStore.DEFAULT_REQUEST_TIMEOUT))
    )


def log_catalog(store):
    """Store subscriber that reports what is currently published."""
    logger = logging.getLogger("iquiz")
    if store.show_network_error:
        logger.warning(f"Network error: {store.network_error_message}")
    for quiz in store.quizzes:
        logger.info(f"  [{quiz.icon_name}] {quiz.title}: {quiz.description} ({quiz.question_count} questions)")


async def run_with_config():
    """Run the catalog service with configuration."""
    # Load configuration
    config = load_config()

    # Set up logging
    setup_logging_from_config(config)

    store = build_store(config)
    store.subscribe(log_catalog)
    logging.getLogger("iquiz").info(store.config_manager.get_settings_summary())

    try:
        store.start()
        await asyncio.Event().wait()
    finally:
        await store.close()


if __name__ == "__main__":
    try:
        print("📚 Starting iQuiz catalog service...")
        asyncio.run(run_with_config())
    except KeyboardInterrupt:
        print("\n👋 iQuiz stopped by user")
    except Exception as e:
        print(f"❌ Failed to start iQuiz: {e}")
        sys.exit(1)
