"""
Main entry point for the Prayer Times Bot.

This module provides the main function and CLI interface for starting
the Discord bot. It handles configuration loading, logging setup,
and graceful shutdown handling.

Exit status is 1 when the Discord token is missing or login fails, and 0
after a shutdown signal.
"""

import asyncio
import signal
import sys
from typing import Optional

import discord

from prayer_times_bot import __version__
from prayer_times_bot.config import load_config, AppConfig
from prayer_times_bot.utils.logging import setup_logging, get_logger
from prayer_times_bot.utils.exceptions import ConfigurationError
from prayer_times_bot.bot.client import PrayerTimesBot


async def create_bot(config: AppConfig) -> PrayerTimesBot:
    """
    Create and configure the Discord bot instance.

    Args:
        config: Application configuration

    Returns:
        Configured PrayerTimesBot instance
    """
    logger = get_logger(__name__)
    logger.info(
        "Creating Discord bot instance",
        city=config.location.city,
        country=config.location.country,
        method=config.location.calculation_method,
    )

    bot = PrayerTimesBot(config)
    await bot.setup()
    return bot


async def run_bot(config: AppConfig) -> None:
    """
    Run the Discord bot until it stops or a shutdown signal arrives.

    Args:
        config: Application configuration

    Raises:
        discord.LoginFailure: If the token is rejected
    """
    logger = get_logger(__name__)
    bot: Optional[PrayerTimesBot] = None

    shutdown_event = asyncio.Event()

    try:
        bot = await create_bot(config)

        loop = asyncio.get_running_loop()

        def signal_handler(signum: int) -> None:
            logger.info("Received shutdown signal", signal=signum)
            shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows event loops
                signal.signal(signum, lambda s, f: signal_handler(s))

        logger.info("Starting Discord bot",
                    token_prefix=config.discord.token[:10] + "...")

        bot_task = asyncio.create_task(bot.start(config.discord.token))
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        done, pending = await asyncio.wait(
            [bot_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED
        )

        # Pending one-shot retries are abandoned, not awaited
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if bot_task in done:
            # Re-raises login failures and fatal gateway errors
            bot_task.result()

    finally:
        if bot:
            logger.info("Cleaning up bot resources")
            try:
                await asyncio.wait_for(bot.close(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Bot shutdown timed out after 5 seconds, forcing close")
            except Exception as e:
                logger.error("Error during bot shutdown", error=str(e))


async def main_async() -> None:
    """
    Async main function that handles the complete bot lifecycle.

    This function:
    1. Loads configuration, failing fast without a Discord token
    2. Sets up logging
    3. Creates and runs the bot
    4. Handles shutdown gracefully
    """
    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info("Prayer Times Bot starting up",
                version=__version__,
                debug_mode=config.debug)

    try:
        await run_bot(config)
    except discord.LoginFailure as e:
        logger.error("Failed to login", error=str(e))
        print(f"Failed to login: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.error("Bot encountered fatal error", error=str(e))
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("Prayer Times Bot shutdown complete")


def main() -> None:
    """
    Main entry point for the Prayer Times Bot.

    Example:
        Command line usage:
        ```bash
        prayer-times-bot
        ```

        Programmatic usage:
        ```python
        from prayer_times_bot.main import main
        main()
        ```
    """
    try:
        asyncio.run(main_async())
    except KeyboardInterrupt:
        print("\nBot shutdown requested", file=sys.stderr)
        sys.exit(0)

    sys.exit(0)


if __name__ == "__main__":
    main()
