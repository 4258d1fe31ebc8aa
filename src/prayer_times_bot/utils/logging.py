"""
Logging setup and event helpers for the Prayer Times Bot.

Output is either human-readable lines on a rich console (``LOG_FORMAT=text``)
or one JSON object per line (``LOG_FORMAT=json``). Loggers are structlog
loggers; each helper below writes one kind of bot event with a stable
set of keys:

- ``log_fetch_started`` / ``log_fetch_finished``: one Aladhan round trip,
  tied together by a correlation id
- ``log_command``: a slash command invocation
- ``log_prayer_event``: notifier and dispatch activity
- ``log_discord_event``: gateway lifecycle
- ``log_error``: any failure, including the context of a ``PrayerBotError``
"""

import json
import logging
import sys
import uuid
from typing import Any, Dict, Optional, TYPE_CHECKING

import structlog
from rich.console import Console
from rich.logging import RichHandler

from prayer_times_bot.utils.exceptions import PrayerBotError

if TYPE_CHECKING:
    import discord

    from prayer_times_bot.config import LoggingConfig


# Keys the console renderer leaves out of the trailing key=value list
_CONSOLE_HIDDEN_KEYS = {"timestamp", "filename", "lineno"}


def setup_logging(config: "LoggingConfig") -> None:
    """
    Configure stdlib logging and structlog for the whole process.

    Args:
        config: Logging configuration settings

    Example:
        ```python
        app_config = load_config()
        setup_logging(app_config.logging)
        get_logger(__name__).info("Bot starting", city=app_config.location.city)
        ```
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(config.level)

    if config.format == "json":
        _setup_json_logging(config)
    else:
        _setup_rich_logging(config)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                parameters=[structlog.processors.CallsiteParameter.FILENAME,
                            structlog.processors.CallsiteParameter.LINENO]
            ),
            _json_renderer if config.format == "json" else _console_renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.level)
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    configure_external_loggers()


def _setup_json_logging(config: "LoggingConfig") -> None:
    """Third-party stdlib records as JSON lines on stdout."""
    formatter = logging.Formatter(
        fmt='{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "event": "%(message)s"}',
        datefmt="%Y-%m-%dT%H:%M:%SZ"
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(config.level)
    logging.getLogger().addHandler(handler)


def _setup_rich_logging(config: "LoggingConfig") -> None:
    """Third-party stdlib records on a rich console."""
    handler = RichHandler(
        console=Console(width=120),
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(config.level)
    logging.getLogger().addHandler(handler)


def _json_renderer(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    return json.dumps(event_dict, default=str, ensure_ascii=False)


def _console_renderer(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    """Render ``<timestamp> [level] event (key=value, ...)``."""
    event = event_dict.pop("event", "")
    level = event_dict.pop("level", "info")

    extras = ", ".join(
        f"{key}={value}"
        for key, value in event_dict.items()
        if key not in _CONSOLE_HIDDEN_KEYS
    )
    if extras:
        event = f"{event} ({extras})"

    return f"{event_dict.get('timestamp', '')} [{level}] {event}"


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def get_service_logger(service_name: str) -> structlog.BoundLogger:
    """
    Logger bound with a ``service`` key.

    Args:
        service_name: One of ``aladhan``, ``discord``, ``commands``, ``notifier``
    """
    return get_logger(f"service.{service_name}").bind(service=service_name)


def generate_correlation_id() -> str:
    """Short id tying together the log lines of one fetch."""
    return uuid.uuid4().hex[:8]


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log a failure with its context.

    For a ``PrayerBotError`` the exception's own context and the type of the
    wrapped error are included too; explicit ``context`` wins on key clashes.

    Example:
        ```python
        try:
            await channel.send(embed=embed)
        except discord.HTTPException as e:
            log_error(e, {"channel_id": channel.id, "prayer": "Asr"})
        ```
    """
    fields: Dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": error.message if isinstance(error, PrayerBotError) else str(error),
    }
    if isinstance(error, PrayerBotError):
        fields.update(error.context)
        if error.original_error is not None:
            fields["cause_type"] = type(error.original_error).__name__
            fields["cause"] = str(error.original_error)
    if context:
        fields.update(context)

    get_logger().error("Exception occurred", **fields)


def log_fetch_started(city: str, country: str, method: int, correlation_id: str) -> None:
    """An Aladhan ``timingsByCity`` request is about to be sent."""
    get_service_logger("aladhan").info(
        "Fetching prayer times",
        city=city,
        country=country,
        method=method,
        correlation_id=correlation_id,
    )


def log_fetch_finished(
    status_code: int,
    elapsed_ms: float,
    correlation_id: str,
    error: Optional[str] = None,
) -> None:
    """
    An Aladhan request completed or failed.

    Args:
        status_code: HTTP status, 0 when no response arrived
        elapsed_ms: Round trip time in milliseconds
        correlation_id: Id passed to ``log_fetch_started``
        error: Transport failure description, if any
    """
    logger = get_service_logger("aladhan")
    fields: Dict[str, Any] = {
        "status_code": status_code,
        "elapsed_ms": round(elapsed_ms, 2),
        "correlation_id": correlation_id,
    }
    if error:
        fields["error"] = error

    if status_code == 0 or status_code >= 500:
        logger.error("Prayer times request failed", **fields)
    elif status_code >= 400:
        logger.warning("Prayer times request rejected", **fields)
    else:
        logger.info("Prayer times response received", **fields)


def log_command(command: str, interaction: "discord.Interaction", **context: Any) -> None:
    """A slash command was invoked."""
    get_service_logger("commands").info(
        "Slash command invoked",
        command=command,
        user_id=interaction.user.id,
        guild_id=interaction.guild_id,
        channel_id=interaction.channel_id,
        **context
    )


def log_discord_event(event_type: str, **context: Any) -> None:
    """Gateway lifecycle event (ready, resumed, commands synced)."""
    get_service_logger("discord").info(
        f"Discord event: {event_type}",
        event_type=event_type,
        **context
    )


def log_prayer_event(event_type: str, prayer: Optional[str] = None, **context: Any) -> None:
    """
    Notifier or dispatch event (prayer due, broadcast sent, ledger purged).

    Args:
        event_type: Short event name
        prayer: Prayer name, when the event concerns one prayer
        **context: Additional context
    """
    if prayer is not None:
        context["prayer"] = prayer
    get_service_logger("notifier").info(
        f"Prayer event: {event_type}",
        event_type=event_type,
        **context
    )


def configure_external_loggers() -> None:
    """Quiet discord.py and aiohttp below warnings, keeping gateway state changes."""
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("discord.http").setLevel(logging.WARNING)
    logging.getLogger("discord.gateway").setLevel(logging.INFO)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
