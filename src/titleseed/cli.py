"""
Command-line entry point.

    titleseed upload --title-id ABCD1 --secret-key ...
    titleseed links --title-id ABCD1
    titleseed init-config [PATH]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from titleseed import __version__
from titleseed.admin import AdminClient
from titleseed.errors import CredentialError, SeedDataError
from titleseed.infra.config import ConfigAdapter, copy_default_config, load_config_or_default
from titleseed.infra.logger import setup_logging
from titleseed.infra.paths import DEFAULT_CONFIG_FILENAME
from titleseed.pipeline import (
    PipelineController,
    StageCatalog,
    console_links,
    load_seed_data,
)
from titleseed.schemas import PipelineConfig, ProgressSnapshot

logger = logging.getLogger(__name__)

SECRET_KEY_ENV = "TITLESEED_SECRET_KEY"


class ConsoleReporter:
    """Prints one ``Creating <title>... NN%`` line per stage."""

    def __init__(self) -> None:
        self._last_stage: int | None = None

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        if snapshot.stage_title is None or snapshot.stage_index == self._last_stage:
            return
        self._last_stage = snapshot.stage_index
        print(f"Creating {snapshot.stage_title}... {round(snapshot.fraction * 100)}%")

    def on_error(self, message: str, snapshot: ProgressSnapshot) -> None:
        print(f"[error] {message}", file=sys.stderr)

    def on_complete(self, snapshot: ProgressSnapshot) -> None:
        print("Upload complete.")


def resolve_secret_key(
    explicit: str | None,
    adapter: ConfigAdapter,
    title_id: str,
) -> str:
    """Secret key from the command line, the environment, then the config."""
    for candidate in (explicit, os.environ.get(SECRET_KEY_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    return adapter.get_secret_key(title_id)


def build_pipeline_config(
    adapter: ConfigAdapter,
    title_id: str,
    args: argparse.Namespace,
) -> PipelineConfig:
    cfg = adapter.get_pipeline_config(title_id)
    throttle = cfg.throttle
    if args.interval is not None:
        throttle = replace(throttle, subtask_interval=args.interval)
    if args.settle is not None:
        throttle = replace(throttle, stage_settle_delay=args.settle)
    item_timeout = cfg.item_timeout
    if args.timeout is not None:
        item_timeout = args.timeout if args.timeout > 0 else None
    return replace(cfg, throttle=throttle, item_timeout=item_timeout)


async def run_upload(
    client: AdminClient,
    catalog: StageCatalog,
    cfg: PipelineConfig,
    secret_key: str,
    *,
    retries: int = 0,
    reporter: ConsoleReporter | None = None,
) -> bool:
    """Runs one provisioning pass.

    When the run halts and retries remain, the error is cleared and only the
    failed items of the halted stage are re-dispatched.

    Returns:
        True if every stage completed.
    """
    controller = PipelineController.from_config(
        client, catalog, cfg, reporter=reporter or ConsoleReporter()
    )
    async with controller:
        await controller.start(secret_key)
        while True:
            state = await controller.wait()
            if state.is_complete:
                return True
            if retries <= 0:
                return False
            retries -= 1
            logger.info("Retrying after failure (%d retries left)", retries)
            controller.clear_error()
            controller.retry_failed()


async def _upload_async(args: argparse.Namespace) -> int:
    adapter = ConfigAdapter(load_config_or_default(args.config))
    setup_logging(
        args.log_level or adapter.get_log_level(),
        None if args.no_log_file else adapter.get_log_dir(),
    )

    title_id = args.title_id.strip()
    secret_key = resolve_secret_key(args.secret_key, adapter, title_id)
    if not secret_key:
        raise CredentialError(
            f"No secret key for title {title_id!r}: pass --secret-key, "
            f"set {SECRET_KEY_ENV}, or add titles.{title_id}.secret_key to the config."
        )

    seed_dir = args.seed_dir or adapter.get_seed_dir()
    seed = load_seed_data(seed_dir)
    cfg = build_pipeline_config(adapter, title_id, args)
    catalog = StageCatalog(
        seed,
        catalog_version=cfg.catalog_version,
        publish=cfg.publish,
    )

    async with AdminClient(adapter.get_admin_config(title_id)) as client:
        ok = await run_upload(client, catalog, cfg, secret_key, retries=args.retries)

    if not ok:
        return 1

    print("\nCreated content can be reviewed in the console:")
    for key, url in console_links(title_id).items():
        print(f"  {key:<12} {url}")
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_upload_async(args))
    except (CredentialError, SeedDataError, FileNotFoundError, ValueError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1


def cmd_links(args: argparse.Namespace) -> int:
    for key, url in console_links(args.title_id.strip()).items():
        print(f"{key:<12} {url}")
    return 0


def cmd_init_config(args: argparse.Namespace) -> int:
    target: Path = args.path
    if target.is_dir():
        target = target / DEFAULT_CONFIG_FILENAME
    if target.exists() and not args.overwrite:
        print(f"[skip] {target} already exists (use --overwrite)", file=sys.stderr)
        return 1
    copy_default_config(target)
    print(f"[write] {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="titleseed",
        description="Provision a game title's backend with sample content.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="upload the seed content to a title")
    upload.add_argument("--title-id", required=True)
    upload.add_argument(
        "--secret-key",
        help=f"title secret key (default: ${SECRET_KEY_ENV}, then the config)",
    )
    upload.add_argument("--config", type=Path)
    upload.add_argument("--seed-dir", type=Path)
    upload.add_argument("--interval", type=float, help="seconds between fan-out items")
    upload.add_argument("--settle", type=float, help="seconds between stages")
    upload.add_argument(
        "--timeout", type=float, help="seconds per remote call; 0 waits forever"
    )
    upload.add_argument("--retries", type=int, default=0)
    upload.add_argument("--log-level")
    upload.add_argument("--no-log-file", action="store_true")
    upload.set_defaults(func=cmd_upload)

    links = sub.add_parser("links", help="print console links for a title")
    links.add_argument("--title-id", required=True)
    links.set_defaults(func=cmd_links)

    init = sub.add_parser("init-config", help="write the sample settings file")
    init.add_argument(
        "path", nargs="?", type=Path, default=Path(DEFAULT_CONFIG_FILENAME)
    )
    init.add_argument("--overwrite", action="store_true")
    init.set_defaults(func=cmd_init_config)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
