#!/usr/bin/env python3
"""Main entry point for the media session console player."""

from __future__ import annotations

import asyncio
import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from media_session.domain.shared.exceptions import CatalogUnavailableError
from media_session.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from media_session.application.surfaces.producer import CommandProducer
    from media_session.application.surfaces.transport_bar import TransportBarModel
    from media_session.config.container import Container
    from media_session.config.settings import Settings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

HELP_TEXT = (
    "commands: play [index] | pause | next | prev | seek <seconds> | "
    "volume <0-1> | mute | unmute | status | help | quit"
)


def setup_logging(log_level: str = "INFO") -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.warning("Could not load %s, falling back to basic config", _LOGGING_CONFIG_PATH)

    logging.getLogger().setLevel(resolved_level)


def execute_line(
    line: str,
    producer: CommandProducer,
    bar: TransportBarModel,
    out: TextIO | None = None,
) -> bool:
    """Run one console command. Returns False when the user asked to quit."""
    out = out or sys.stdout
    parts = line.strip().split()
    if not parts:
        return True

    name, args = parts[0].lower(), parts[1:]
    try:
        if name in ("quit", "exit", "q"):
            return False
        elif name == "play":
            producer.play(int(args[0]) if args else None)
        elif name == "pause":
            producer.pause()
        elif name == "next":
            producer.next()
        elif name == "prev":
            producer.prev()
        elif name == "seek":
            producer.seek(float(args[0]))
        elif name == "volume":
            producer.set_volume(float(args[0]))
        elif name == "mute":
            producer.set_muted(True)
        elif name == "unmute":
            producer.set_muted(False)
        elif name == "status":
            print(bar.render(), file=out)
        else:
            print(HELP_TEXT, file=out)
    except (IndexError, ValueError):
        print(f"bad arguments for {name!r}; {HELP_TEXT}", file=out)
    return True


async def run(container: Container, *, initial_index: int | None = None) -> int:
    from media_session.application.surfaces.producer import CommandProducer
    from media_session.application.surfaces.transport_bar import TransportBarModel

    logger = logging.getLogger(__name__)

    await container.initialize()
    try:
        try:
            tracks = await container.catalog.list_tracks()
        except CatalogUnavailableError as e:
            logger.error(LogTemplates.APP_FATAL_ERROR, e.message)
            return 1

        if initial_index is None:
            # Resume on the track a preserved session left off at.
            initial_index = await container.snapshot_store.pending_index()

        session = await container.state_machine.start(tracks, initial_index=initial_index)
        producer = CommandProducer(container.channel, initial=session)
        bar = TransportBarModel(container.channel, tracks, initial=session)
        producer.attach()
        bar.attach()

        print(HELP_TEXT)
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            if not execute_line(line, producer, bar):
                break

        bar.close()
        producer.close()
        return 0
    finally:
        await container.shutdown(preserve=True)


def main() -> int:
    from media_session.config.settings import get_settings

    settings: Settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)

    logger = logging.getLogger(__name__)
    logger.info(LogTemplates.APP_STARTING.format(environment=settings.environment))

    from media_session.config.container import create_container

    container = create_container(settings)

    try:
        code = asyncio.run(run(container))
        logger.info(LogTemplates.APP_STOPPED)
        return code
    except KeyboardInterrupt:
        logger.info(LogTemplates.APP_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.APP_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
