#!/usr/bin/env python3
"""
Simulate peer traffic and print a telemetry report.

Spawns one writer thread per fake peer. Each records random ping and
per-byte transmission samples while the main thread reports periodically.

Usage:
    uv run examples/simulate_peers.py
    uv run examples/simulate_peers.py --peers 8 --window 30 --rounds 5
    uv run examples/simulate_peers.py --output telemetry.txt

Environment:
    PEER_TELEMETRY_PEER_ID: Local peer id (default: "local")
"""

import argparse
import logging
import os
import random
import threading
import time
from datetime import timedelta

from peer_telemetry import Stats, TelemetryError, unpack_stats_snapshot


def simulate_peer(stats: Stats, peer: str, stop: threading.Event):
    """Record samples for one peer until stopped."""
    base_ping_ms = random.uniform(5, 120)
    base_rate_us = random.uniform(0.5, 20)
    while not stop.is_set():
        stats.record_ping(peer, timedelta(milliseconds=abs(random.gauss(base_ping_ms, base_ping_ms * 0.1))))
        stats.record_transmission(peer, timedelta(microseconds=abs(random.gauss(base_rate_us, 1.0))))
        time.sleep(random.uniform(0.005, 0.02))


def main():
    parser = argparse.ArgumentParser(description="Simulate peer telemetry")
    parser.add_argument("--peers", type=int, default=4, help="Number of simulated peers (default: 4)")
    parser.add_argument("--window", type=int, default=30, help="Samples kept per peer (default: 30)")
    parser.add_argument("--rounds", type=int, default=3, help="Reports to print (default: 3)")
    parser.add_argument("--interval", type=float, default=1.0, help="Seconds between reports (default: 1)")
    parser.add_argument("--output", help="Save the final report to this file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    stats = Stats(window_size=args.window, peer_id=os.getenv("PEER_TELEMETRY_PEER_ID", "local"))
    # Registered but never measured, shows the no-data lines
    stats.add_peer("unreachable")

    stop = threading.Event()
    threads = [
        threading.Thread(target=simulate_peer, args=(stats, f"peer-{i}", stop), daemon=True)
        for i in range(args.peers)
    ]
    for t in threads:
        t.start()

    try:
        for _ in range(args.rounds):
            time.sleep(args.interval)
            print(stats.to_report())
            print("-" * 50)
    except KeyboardInterrupt:
        print("\nInterrupted")
    finally:
        stop.set()
        for t in threads:
            t.join(timeout=1)

    payload = stats.pack_snapshot()
    snapshot = unpack_stats_snapshot(payload)
    sample_count = sum(len(w) for w in snapshot["sections"]["ping"].values())
    print(f"Snapshot: {len(payload)} bytes, {sample_count} ping samples")

    if args.output:
        try:
            stats.save_to_file(args.output)
        except TelemetryError as e:
            print(f"Error: {e}")
            raise SystemExit(1)
        print(f"Saved report to {args.output}")


if __name__ == "__main__":
    main()
