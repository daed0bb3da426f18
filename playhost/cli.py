"""Command line entry point: catalog status, failure log and headless runs."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from playhost.api.session import Difficulty, SessionSettings
from playhost.diagnostics.json_codec import dumps_text
from playhost.runtime.config import load_env_file, load_runtime_config
from playhost.runtime.logging import setup_logging, shutdown_logging
from playhost.runtime.play_host import PlayHost, build_play_host
from playhost.runtime.time import ManualTimeSource


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="playhost", description="Mini-game runtime host tools.")
    parser.add_argument("--env-file", default=".env.playhost", help="KEY=VALUE file loaded first.")
    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser("status", help="Probe every registered game type.")
    status.add_argument("--json", action="store_true", help="Print the probe results as JSON.")

    failures = sub.add_parser("failures", help="Show or clear the persisted failure log.")
    failures.add_argument("--clear", action="store_true", help="Delete the persisted failure log.")
    failures.add_argument("--limit", type=int, default=10, help="Most recent entries to show.")

    simulate = sub.add_parser("simulate", help="Run one session headless on a virtual clock.")
    simulate.add_argument("game_type")
    simulate.add_argument("--duration", type=float, default=None, help="Session length in seconds.")
    simulate.add_argument("--target", type=int, default=None, help="Target score.")
    simulate.add_argument(
        "--difficulty",
        choices=[item.value for item in Difficulty],
        default=None,
    )
    simulate.add_argument("--rate", type=float, default=2.0, help="Taps per second on the target.")
    simulate.add_argument("--fps", type=float, default=60.0, help="Virtual frames per second.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_env_file(args.env_file, override_existing=False)
    config = load_runtime_config()
    setup_logging(console_format=config.log_format, file_path=config.log_file)
    try:
        if args.command == "status":
            return _run_status(as_json=args.json)
        if args.command == "failures":
            return _run_failures(clear=args.clear, limit=args.limit)
        return _run_simulate(args)
    finally:
        shutdown_logging()


def _run_status(*, as_json: bool) -> int:
    host = build_play_host()
    try:
        registry = host.registry
        results = registry.check_all()
        aggregate = registry.aggregate_status()
        if as_json:
            payload = {
                "total": aggregate.total,
                "implemented": aggregate.implemented,
                "fallback": aggregate.fallback,
                "missing": aggregate.missing,
                "implementation_rate": aggregate.implementation_rate,
                "modules": {
                    game_type: {
                        "implemented": status.implemented,
                        "status": status.status.value,
                        "error": status.error,
                    }
                    for game_type, status in results.items()
                },
            }
            print(dumps_text(payload, pretty=True))
            return 0
        for game_type, status in results.items():
            line = f"{game_type} status={status.status.value} implemented={status.implemented}"
            if status.error:
                line += f" error={status.error}"
            print(line)
        print(
            f"total={aggregate.total} implemented={aggregate.implemented} "
            f"fallback={aggregate.fallback} missing={aggregate.missing} "
            f"rate={aggregate.implementation_rate}"
        )
        return 0
    finally:
        host.shutdown()


def _run_failures(*, clear: bool, limit: int) -> int:
    host = build_play_host()
    try:
        classifier = host.classifier
        if classifier.failure_log is None:
            print("failure log disabled (PLAYHOST_FAILURE_LOG_ENABLED=0)")
            return 1
        if clear:
            classifier.clear()
            print("failures_cleared")
            return 0
        records = classifier.stored_records()
        print(f"stored={len(records)}")
        for record in records[-max(0, limit) :] if limit > 0 else []:
            state = "resolved" if record.resolved else "open"
            print(
                f"{record.id} kind={record.failure_kind.value} "
                f"session={record.session_kind} {state} message={record.message}"
            )
        return 0
    finally:
        host.shutdown()


def _run_simulate(args: argparse.Namespace) -> int:
    if args.fps <= 0.0:
        print("--fps must be > 0")
        return 2
    clock = ManualTimeSource()
    host = build_play_host(time_source=clock)
    try:
        settings = _simulation_settings(host, args)
        outcome: list[tuple[bool, int]] = []
        session = host.play(
            args.game_type,
            settings,
            on_complete=lambda success, score: outcome.append((success, score)),
        )
        if session is None:
            print(f"game_type={args.game_type} started=False")
            return 1
        frame_seconds = 1.0 / args.fps
        tap_interval = 1.0 / args.rate if args.rate > 0.0 else None
        next_tap = 0.0
        limit = session.settings.duration_seconds + 1.0
        while not outcome and clock() <= limit:
            host.run_frame()
            if tap_interval is not None and clock() >= next_tap:
                x, y = _tap_point(host)
                host.handle_pointer(x, y)
                next_tap += tap_interval
            clock.advance(frame_seconds)
        host.run_frame()
        result = host.last_result
        if result is None:
            print(f"game_type={args.game_type} finished=False")
            return 1
        print(
            f"game_type={args.game_type} success={result.success} score={result.score} "
            f"elapsed={result.elapsed_seconds:.2f}"
        )
        return 0 if result.success else 3
    finally:
        host.shutdown()


def _simulation_settings(host: PlayHost, args: argparse.Namespace) -> SessionSettings:
    descriptor = host.registry.descriptor(args.game_type)
    base = descriptor.default_settings if descriptor is not None else None
    duration = args.duration if args.duration is not None else (base.duration_seconds if base else 10.0)
    target = args.target if args.target is not None else (base.target_score if base else 30)
    difficulty = args.difficulty or (base.difficulty if base else Difficulty.NORMAL)
    return SessionSettings(duration_seconds=duration, target_score=target, difficulty=difficulty)


def _tap_point(host: PlayHost) -> tuple[float, float]:
    session = host.session
    inner = getattr(session, "inner", session)
    target = getattr(inner, "target", None)
    if target is not None:
        x, y, _ = target
        return x, y
    width, height = host.view.viewport
    return width / 2.0, height / 2.0


if __name__ == "__main__":
    raise SystemExit(main())
