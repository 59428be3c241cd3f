#!/usr/bin/env python3
"""
Command line entry point for the scanner relay service
"""
import argparse
import json
import logging
import signal
import sys

from scanner_relay.hid.device_registry import DeviceRegistry, format_path
from scanner_relay.scheduler import Scheduler
from scanner_relay.utils.config import get_config_path, load_config, save_config
from scanner_relay.utils.event_loop import spawn_daemon
from scanner_relay.utils.host_identity import get_hostname, get_mac_address
from scanner_relay.utils.logger import clear_logs, setup_logging

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="scanner-relay",
        description="Collect scans from USB barcode scanners and ship them to a collection endpoint",
    )
    parser.add_argument("--config", help="path to config.json")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="run the relay service (default)")
    subparsers.add_parser("devices", help="list attached HID devices")
    subparsers.add_parser("hostname", help="show host identity sent with deliveries")
    config_parser = subparsers.add_parser("config", help="show the effective configuration")
    config_parser.add_argument("--write-defaults", action="store_true",
                               help="write the effective configuration to the config file")
    subparsers.add_parser("clear-logs", help="truncate the log files")
    subparsers.add_parser("help", help="show this message")
    return parser


def cmd_run(config):
    scheduler = Scheduler(config)

    def handle_signal(signum, frame):
        # the loop thread may hold the event queue lock; post from a helper thread
        spawn_daemon(scheduler.request_stop, "Shutdown")

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    scheduler.serve()
    return 0


def cmd_devices(config):
    registry = DeviceRegistry(config["input_device"], decoder_factory=None, post=None)
    devices = registry.list_devices()
    if not devices:
        print("No HID devices found.")
        return 0
    for path, product in devices:
        marker = "*" if config["input_device"] in product else " "
        print(f"{marker} {format_path(path)}\t{product}")
    print(f"\n* = matches {config['input_device']!r}")
    return 0


def cmd_hostname(config):
    print(f"Hostname: {get_hostname()}")
    print(f"MAC address: {get_mac_address() or 'unknown'}")
    return 0


def cmd_config(config, write_defaults=False, path=None):
    print(json.dumps(config, indent=2))
    if write_defaults:
        return 0 if save_config(config, path) else 1
    return 0


def cmd_clear_logs(config):
    cleared = clear_logs(config["log_dir"])
    print(f"Cleared {len(cleared)} log file(s) in {config['log_dir']}")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "run"

    if command == "help":
        parser.print_help()
        return 0

    # console logging until the configured sink is known
    setup_logging("console")
    config = load_config(args.config)
    if config is None:
        logger.error(f"❌ Failed to load configuration from {get_config_path(args.config)}")
        return 1

    if command == "run":
        setup_logging(config["log_type"], config["log_dir"])
        return cmd_run(config)
    if command == "devices":
        return cmd_devices(config)
    if command == "hostname":
        return cmd_hostname(config)
    if command == "config":
        return cmd_config(config, args.write_defaults, args.config)
    if command == "clear-logs":
        return cmd_clear_logs(config)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
