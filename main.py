#!/usr/bin/env python3
"""
App Usage Tracker - records how long each application stays in the foreground.

Every closed session is appended to a CSV log (Package,Start_Time,End_Time,Duration),
with a TrackingSummary row when tracking stops.

Usage:
  python main.py
  python main.py --log-path ~/usage_log.csv --period 5 --verbose
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

import config
from activity_tracker import ActivityMonitor, ForegroundFlag
from storage import UsageLogWriter
from time_tracker import SerialWorker, SessionLedger, TrackingController, TrackingLoop


def build_tracker(
    log_path: Path,
    period: float = config.TRACK_PERIOD_SEC,
    poll_interval: float = config.POLL_INTERVAL,
    idle_close_after=config.IDLE_CLOSE_AFTER_SEC,
):
    """Wire monitor, worker, ledger, loop and controller together."""
    self_foreground = ForegroundFlag()
    monitor = ActivityMonitor(
        poll_interval=poll_interval,
        self_app_id=config.SELF_APP_ID,
        self_foreground=self_foreground,
    )
    worker = SerialWorker()
    ledger = SessionLedger(min_duration=config.MIN_SESSION_SEC)
    loop = TrackingLoop(
        ledger,
        monitor,
        worker,
        self_foreground=self_foreground,
        system_packages=config.SYSTEM_PACKAGES,
        period=period,
        idle_close_after=idle_close_after,
    )
    controller = TrackingController(ledger, loop, UsageLogWriter(log_path), worker)

    def on_focus_change(new_app: str, prev_app):
        if prev_app == config.SELF_APP_ID and new_app != config.SELF_APP_ID:
            controller.pause_tracking(config.SELF_APP_ID)

    monitor.on_focus_change(on_focus_change)
    return monitor, worker, controller


def main():
    p = argparse.ArgumentParser(description="Track foreground app usage to a CSV log")
    p.add_argument("--log-path", type=Path, default=config.USAGE_LOG_PATH, help="CSV file to append to")
    p.add_argument("--period", type=float, default=config.TRACK_PERIOD_SEC, help="Sampling period in seconds")
    p.add_argument("--poll-interval", type=float, default=config.POLL_INTERVAL, help="Frontmost-window probe interval")
    p.add_argument("--idle-close-after", type=float, default=config.IDLE_CLOSE_AFTER_SEC,
                   help="Close all sessions after this many quiet seconds (default: disabled)")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = p.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    monitor, worker, controller = build_tracker(
        args.log_path,
        period=args.period,
        poll_interval=args.poll_interval,
        idle_close_after=args.idle_close_after,
    )

    stopped = threading.Event()

    def stop(_=None, __=None):
        stopped.set()
    signal.signal(signal.SIGINT, stop)
    signal.signal(signal.SIGTERM, stop)

    worker.start()
    monitor.start()
    controller.start_tracking()
    print(f"Tracking app usage every {args.period:g}s -> {args.log_path} (Ctrl+C to stop)")

    stopped.wait()

    monitor.stop(timeout=2)
    done = threading.Event()
    controller.stop_tracking()
    worker.post(done.set)
    done.wait(timeout=5)
    worker.shutdown()
    print("\nStopped.")


if __name__ == "__main__":
    main()
    sys.exit(0)
