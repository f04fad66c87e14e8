#!/usr/bin/env python3
"""
QuizMaster - Main Entry Point

This script runs the terminal quiz. Settings are read from config.json in
the current directory, or from the file named by QUIZMASTER_CONFIG.

Usage:
    python main.py

Configuration:
    1. Put category files in the quiz directory (./categories/ by default)
    2. Adjust question count, timer and extra time in config.json as needed

Environment Variables:
    QUIZMASTER_CONFIG: Path to the configuration file (overrides config.json)
"""

import asyncio
import sys
import os
import logging
from pathlib import Path

from quizmaster.config_manager import ConfigManager, ConfigError, load_config_file
from quizmaster.quiz_controller import QuizController


def load_config():
    """Load configuration from config.json or QUIZMASTER_CONFIG."""
    config_path = Path(os.getenv('QUIZMASTER_CONFIG', 'config.json'))

    try:
        return load_config_file(config_path)
    except ConfigError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


def setup_logging_from_config(config):
    """
    Set up logging based on configuration.

    The terminal belongs to the game, so log records only go to files.
    """
    log_config = config.get('logging', {})
    if not isinstance(log_config, dict):
        print("⚠️  Ignoring invalid setting: Section 'logging' must be an object")
        log_config = {}
    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)
    log_directory = Path(log_config.get('log_directory', './logs/'))

    # Create logs directory
    log_directory.mkdir(parents=True, exist_ok=True)

    error_handler = logging.FileHandler(log_directory / "errors.log", encoding='utf-8')
    error_handler.setLevel(logging.ERROR)

    # Configure logging
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_directory / "quizmaster.log", encoding='utf-8'),
            error_handler
        ]
    )


def build_controller(config):
    """Create the config manager and controller from the parsed configuration."""
    config_manager = ConfigManager()
    for error in config_manager.apply_config(config):
        print(f"⚠️  Ignoring invalid setting: {error}")

    return QuizController(config_manager)


async def run_quiz_with_config():
    """Run the quiz with configuration."""
    # Load configuration
    config = load_config()

    # Set up logging
    setup_logging_from_config(config)
    logging.getLogger(__name__).info("Starting QuizMaster")

    controller = build_controller(config)
    return await controller.run()


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(run_quiz_with_config()))
    except KeyboardInterrupt:
        print("\n👋 Quiz stopped by user. Progress has been saved.")
