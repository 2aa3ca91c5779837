"""
main.py
-------
Entry point for the robot arm kinematics client.

Builds the arm, connects to the controller (sending the URDF description,
limits and initial state), and serves the presentation feed that renderers
and debug panels connect to. Blocks until the controller hangs up or
Ctrl-C.

Run with:
    python main.py
    python main.py --controller ws://10.0.0.2:6543 --ws-port 9000
    python main.py --export robot.urdf --revolute-unit degrees
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from config import Settings
from devices import default_chain
from kinematics import KinematicsChain, chain_from_file, export
from server import ControllerLink, WebSocketServer

log = logging.getLogger("main")


def build_chain(settings: Settings) -> KinematicsChain:
    if settings.descriptor:
        return chain_from_file(settings.descriptor)
    return default_chain()


async def serve(settings: Settings, chain: KinematicsChain) -> None:
    link = ControllerLink(
        chain,
        uri=settings.controller_uri,
        export_config=settings.export_config(),
        connect_attempts=settings.connect_attempts,
        retry_interval=settings.retry_interval,
    )
    feed = WebSocketServer(chain, session=link.session, host=settings.host,
                           port=settings.ws_port, update_interval=settings.update_interval)

    feed_task = asyncio.create_task(feed.start())
    try:
        await link.run()
    finally:
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = Settings.from_args(argv)
    logging.basicConfig(level=settings.log_level, format="[%(name)s] %(message)s")

    chain = build_chain(settings)
    log.info("Chain — links: %d | joints: %d | state: %s",
             len(chain.links), len(chain.joints), chain.state)

    if settings.export_path:
        Path(settings.export_path).write_text(export(chain, settings.export_config()))
        log.info("Description written to %s", settings.export_path)
        return 0

    log.info("Controller — %s", settings.controller_uri)
    log.info("Feed       — ws://%s:%s", settings.host, settings.ws_port)
    log.info("Press Ctrl-C to stop.")
    try:
        asyncio.run(serve(settings, chain))
    except ConnectionError as e:
        log.error("%s", e)
        return 1
    except KeyboardInterrupt:
        log.info("Shutting down …")
    return 0


if __name__ == "__main__":
    sys.exit(main())
