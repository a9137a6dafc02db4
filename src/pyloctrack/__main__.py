"""Run the tracking service from the command line.

Starts tracking, prints every sample and stops on SIGINT/SIGTERM.  The
tracking preference is left enabled on exit so the next run resumes.
Use ``--stop`` to disable tracking instead.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from pyloctrack.config import MqttSourceConfig, TrackerConfig
from pyloctrack.exceptions import LocTrackError
from pyloctrack.models.location import location_text
from pyloctrack.service import LocationTrackerService

_LOG = logging.getLogger("pyloctrack")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pyloctrack",
        description="Track device location in the background and log it to a text file.",
    )
    parser.add_argument("--data-dir", type=Path, help="Directory for preferences and the location log.")
    parser.add_argument("--http-url", help="JSON endpoint to poll for the current location.")
    parser.add_argument("--http-token", help="Bearer token for --http-url.")
    parser.add_argument("--mqtt-host", help="MQTT broker publishing location messages.")
    parser.add_argument("--mqtt-port", type=int, default=1883, help="MQTT broker port (default: 1883).")
    parser.add_argument("--mqtt-topic", default="owntracks/+/+", help="Topic to subscribe to.")
    parser.add_argument("--mqtt-username", help="MQTT username.")
    parser.add_argument("--mqtt-password", help="MQTT password.")
    parser.add_argument(
        "--stop",
        action="store_true",
        help="Disable tracking (clears the persisted flag) and exit.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> TrackerConfig:
    overrides: dict[str, Any] = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.http_url:
        overrides["http_url"] = args.http_url
    if args.http_token:
        overrides["http_token"] = args.http_token
    if args.mqtt_host:
        overrides["mqtt"] = MqttSourceConfig(
            host=args.mqtt_host,
            port=args.mqtt_port,
            topic=args.mqtt_topic,
            username=args.mqtt_username,
            password=args.mqtt_password,
        )
    return TrackerConfig.from_env(**overrides)


async def _run(config: TrackerConfig, *, stop_only: bool) -> int:
    async with LocationTrackerService(config) as service:
        if stop_only:
            result = await service.stop()
            print(f"tracking: {result.state} ({result.status})")
            return 0 if result.ok else 1

        result = await service.start()
        if not result.ok:
            print(f"could not start tracking: {result.status} {result.detail or ''}".rstrip(), file=sys.stderr)
            return 1

        # No UI is attached to a command-line run.
        service.detach()
        remove = service.observe(lambda sample: print(location_text(sample), flush=True))

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop_event.set)

        closed = asyncio.create_task(service.wait_closed())
        stopped = asyncio.create_task(stop_event.wait())
        try:
            await asyncio.wait({closed, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            remove()
            for task in (closed, stopped):
                task.cancel()
            for signum in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(signum)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = _build_config(args)
        return asyncio.run(_run(config, stop_only=args.stop))
    except LocTrackError as exc:
        _LOG.error("%s", exc)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
