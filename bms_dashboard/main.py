# bms_dashboard/main.py

from pathlib import Path
import sys
import time

from .cli import build_parser
from .config import AppConfig, Config, ControllerConfig
from .errors import AcquisitionError, UnexpectedFailure
from .logging import ConsoleLog

from .services import acquisition
from .services.fetcher import HttpFetcher
from .services.output_formatter import emit_human, emit_json
from .services.poller import Poller

TICK_SECONDS = 0.05


def load_config(path: str, address: str | None) -> AppConfig:
    # A bare --address is enough to run without a config file.
    if address and not Path(path).exists():
        return AppConfig(controller=ControllerConfig(address=address))
    app_cfg = Config.load(path)
    if address:
        app_cfg.controller.address = address
    return app_cfg


def exit_code(error: AcquisitionError | None) -> int:
    if error is None:
        return 0
    return 2 if isinstance(error, UnexpectedFailure) else 1


def run_snapshot(app_cfg: AppConfig, fetcher, sanitize: bool, emit, log) -> int:
    address = app_cfg.controller.address
    log.info("Polling controller %s (sanitize=%s)", address, sanitize)
    request = acquisition.fetch(
        address,
        sanitize,
        fetcher=fetcher,
        settings=app_cfg.acquisition_settings(),
    )
    try:
        snapshot = request.join()
    except AcquisitionError as exc:
        emit(None, exc)
        return exit_code(exc)
    emit(snapshot, None)
    return 0


def run_watch(app_cfg: AppConfig, fetcher, sanitize: bool, emit, log, count: int | None) -> int:
    settings = app_cfg.acquisition_settings()

    def _fetch(address, sanitize_enabled):
        return acquisition.fetch(address, sanitize_enabled, fetcher=fetcher, settings=settings)

    poller = Poller(
        app_cfg.controller.address,
        sanitize=sanitize,
        poll_rate_ms=app_cfg.controller.poll_rate_ms,
        fetch=_fetch,
    )
    log.info(
        "Watching controller %s every %d ms (sanitize=%s)",
        poller.address,
        poller.poll_rate_ms,
        sanitize,
    )

    cycles = 0
    try:
        while count is None or cycles < count:
            if poller.tick():
                cycles += 1
                if poller.error is not None:
                    emit(None, poller.error)
                else:
                    emit(poller.snapshot, None)
            time.sleep(TICK_SECONDS)
    except KeyboardInterrupt:
        log.info("Interrupted; abandoning outstanding poll cycle.")
    return exit_code(poller.error)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    app_cfg = load_config(args.config, args.address)
    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()

    sanitize = app_cfg.controller.sanitize and not args.raw
    fetcher = HttpFetcher(timeout=app_cfg.controller.timeout)
    emit = emit_json if args.json else emit_human

    if args.command == "snapshot":
        return run_snapshot(app_cfg, fetcher, sanitize, emit, log)
    if args.command == "watch":
        return run_watch(app_cfg, fetcher, sanitize, emit, log, args.count)
    raise ValueError(f"Unsupported command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
