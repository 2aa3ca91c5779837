"""
config.py
---------
Runtime settings for the arm client, filled from the command line.
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass, fields
from typing import Optional, Sequence

from kinematics.urdf import REVOLUTE_UNITS, ExportConfig


@dataclass
class Settings:
    """Settings for one client run.

    Attributes:
        controller_uri: WebSocket address of the robot controller.
        host: Bind address of the presentation feed.
        ws_port: Port of the presentation feed.
        update_interval: Seconds between presentation snapshots.
        revolute_unit: Unit of revolute limits in the exported description.
        robot_name: Name written into the exported description.
        descriptor: Optional JSON robot descriptor replacing the default arm.
        export_path: If set, write the description there and exit.
        connect_attempts: Controller connection attempts before giving up.
        retry_interval: Seconds between controller connection attempts.
        log_level: Root logging level.
    """

    controller_uri: str = "ws://localhost:6543"
    host: str = "localhost"
    ws_port: int = 8765
    update_interval: float = 0.05
    revolute_unit: str = "radians"
    robot_name: str = "robot"
    descriptor: Optional[str] = None
    export_path: Optional[str] = None
    connect_attempts: int = 16
    retry_interval: float = 0.5
    log_level: str = "INFO"

    def export_config(self) -> ExportConfig:
        return ExportConfig(robot_name=self.robot_name, revolute_unit=self.revolute_unit)

    @classmethod
    def parser(cls) -> argparse.ArgumentParser:
        d = cls()
        parser = argparse.ArgumentParser(description="Robot arm kinematics client")
        parser.add_argument("--controller",       dest="controller_uri", default=d.controller_uri,
                            help=f"Controller WebSocket URI (default: {d.controller_uri})")
        parser.add_argument("--host",             default=d.host,
                            help=f"Presentation feed bind address (default: {d.host})")
        parser.add_argument("--ws-port",          default=d.ws_port,          type=int,
                            help=f"Presentation feed port (default: {d.ws_port})")
        parser.add_argument("--update-interval",  default=d.update_interval,  type=float,
                            help=f"Snapshot period in seconds (default: {d.update_interval})")
        parser.add_argument("--revolute-unit",    default=d.revolute_unit,    choices=REVOLUTE_UNITS,
                            help=f"Unit of exported revolute limits (default: {d.revolute_unit})")
        parser.add_argument("--robot-name",       default=d.robot_name,
                            help=f"Robot name in the description (default: {d.robot_name})")
        parser.add_argument("--descriptor",       default=d.descriptor,
                            help="JSON robot descriptor (default: built-in arm)")
        parser.add_argument("--export",           dest="export_path", default=d.export_path,
                            help="Write the URDF description to this path and exit")
        parser.add_argument("--connect-attempts", default=d.connect_attempts, type=int,
                            help=f"Controller connection attempts (default: {d.connect_attempts})")
        parser.add_argument("--retry-interval",   default=d.retry_interval,   type=float,
                            help=f"Seconds between attempts (default: {d.retry_interval})")
        parser.add_argument("--log-level",        default=d.log_level,
                            choices=("DEBUG", "INFO", "WARNING", "ERROR"),
                            help=f"Logging level (default: {d.log_level})")
        return parser

    @classmethod
    def from_args(cls, argv: Optional[Sequence[str]] = None) -> Settings:
        args = cls.parser().parse_args(argv)
        return cls(**{f.name: getattr(args, f.name) for f in fields(cls)})
