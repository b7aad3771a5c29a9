"""Application entry point — wires services and dispatches commands.

Usage:
    python main.py list <title>
    python main.py backup <app_id> <title>
    python main.py restore <app_id> <title> <timestamp>
    python main.py pack <title> <timestamp>
    python main.py prune <title> [--limit N]
    python main.py watch <app_id> <title> [<app_id> <title> ...]
    python main.py update-manifest
    python main.py set-custom <app_id> <template>
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading

from loguru import logger

from save_manager.config import get_config
from save_manager.context import AppContext
from save_manager.core.archive import ArchivePacker
from save_manager.core.backup import BackupManager, default_backup_root
from save_manager.core.path_resolver import HostDirs, PathResolver
from save_manager.core.restore import RestoreManager
from save_manager.core.retention import RetentionManager
from save_manager.core.service import SaveService
from save_manager.core.sources import SourceCatalog
from save_manager.core.steam import SteamInstall, locate_steam_root
from save_manager.data.custom_manifest import CustomManifest
from save_manager.data.manifest import ManifestError, ManifestStore
from save_manager.i18n import set_language, t
from save_manager.logger import setup_logger
from save_manager.messages import describe_archive, describe_backup, describe_restore
from save_manager.utils import format_size


def create_context(verbose: bool = False) -> AppContext:
    """Wire all services and return an AppContext."""
    config = get_config()

    # Logger
    setup_logger(config.data_dir / "logs", verbose=verbose)
    set_language(config.language)

    # Path resolution
    host_dirs = HostDirs.detect()
    steam_root = locate_steam_root(config.steam_path)
    steam = SteamInstall(steam_root) if steam_root else None
    if steam is None:
        logger.warning("Steam installation not found; Proton and Steam Cloud locations disabled")
    resolver = PathResolver(host_dirs, steam)

    # Data
    manifest = ManifestStore(config.manifest_path, config.manifest_url)
    custom_manifest = CustomManifest(config.custom_manifest_path)
    catalog = SourceCatalog(manifest, custom_manifest)

    # Core services
    backup_root = config.backup_path or default_backup_root(host_dirs.documents)
    service = SaveService(
        config,
        resolver,
        catalog,
        BackupManager(backup_root, resolver),
        RestoreManager(backup_root, resolver),
        RetentionManager(backup_root),
        ArchivePacker(),
    )

    return AppContext(
        config=config,
        resolver=resolver,
        manifest=manifest,
        custom_manifest=custom_manifest,
        catalog=catalog,
        service=service,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="steam-save-manager", description="Steam save backups")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug output on the console")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="list snapshots of a title")
    p.add_argument("title")

    p = sub.add_parser("backup", help="snapshot a title's saves")
    p.add_argument("app_id", type=int)
    p.add_argument("title")
    p.add_argument("--limit", type=int, default=None, help="snapshots to keep")

    p = sub.add_parser("restore", help="restore a snapshot")
    p.add_argument("app_id", type=int)
    p.add_argument("title")
    p.add_argument("timestamp")

    p = sub.add_parser("pack", help="zip a snapshot")
    p.add_argument("title")
    p.add_argument("timestamp")

    p = sub.add_parser("prune", help="apply the retention limit")
    p.add_argument("title")
    p.add_argument("--limit", type=int, default=None)

    p = sub.add_parser("watch", help="back up automatically on save changes")
    p.add_argument("pairs", nargs="*", help="<app_id> <title> pairs (default: remembered titles)")

    sub.add_parser("update-manifest", help="download the latest save-location manifest")

    p = sub.add_parser("set-custom", help="set a custom save location")
    p.add_argument("app_id", type=int)
    p.add_argument("template")
    return parser


def _watch(ctx: AppContext, pairs: list[str]) -> int:
    service = ctx.service
    if len(pairs) % 2:
        print("watch expects <app_id> <title> pairs", file=sys.stderr)
        return 2

    titles: list[tuple[int, str]] = []
    for raw_id, title in zip(pairs[::2], pairs[1::2]):
        if not raw_id.isdigit():
            print(f"watch expects a numeric app id, got {raw_id!r}", file=sys.stderr)
            return 2
        titles.append((int(raw_id), title))

    started = 0
    for app_id, title in titles:
        ok = service.enable_auto_backup(app_id, title)
        print(f"{title}: {t('watch.enabled') if ok else t('watch.no_paths')}")
        started += int(ok)
    if not pairs:
        started = service.resume_auto_backups()
    if not started:
        return 1

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    stop.wait()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = _build_parser().parse_args(argv)
    ctx = create_context(verbose=args.verbose)
    service = ctx.service

    try:
        if args.command == "list":
            snapshots = service.list_snapshots(args.title)
            if not snapshots:
                print(t("list.empty", title=args.title))
            for snap in snapshots:
                marker = f" [{t('list.archived')}]" if snap.has_archive else ""
                print(f"{snap.name}  {format_size(snap.size)}{marker}")
            return 0

        if args.command == "backup":
            result = service.submit_backup(
                args.app_id, args.title, progress=print, retention_limit=args.limit
            ).result()
            print(describe_backup(result))
            return 0 if result.success else 1

        if args.command == "restore":
            result = service.submit_restore(args.app_id, args.title, args.timestamp).result()
            print(describe_restore(result))
            return 0 if result.success else 1

        if args.command == "pack":
            result = service.submit_pack(args.title, args.timestamp).result()
            print(describe_archive(result))
            return 0 if result.success else 1

        if args.command == "prune":
            deleted = service.prune(args.title, args.limit)
            print(t("retention.deleted", count=deleted))
            return 0

        if args.command == "watch":
            return _watch(ctx, args.pairs)

        if args.command == "update-manifest":
            try:
                count = ctx.manifest.refresh()
            except ManifestError as e:
                print(t("manifest.failed", error=e), file=sys.stderr)
                return 1
            print(t("manifest.updated", count=count))
            return 0

        if args.command == "set-custom":
            ctx.custom_manifest.set(args.app_id, args.template)
            return 0
    finally:
        service.shutdown()

    return 2


if __name__ == "__main__":
    sys.exit(main())
