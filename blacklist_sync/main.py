"""
Application wiring for the blacklist sync service.

Builds storage, providers and services from configuration, runs one sync at
startup and then syncs periodically until stopped. One-shot commands
(connect, disconnect, sync, set, interval, status) run against the same wiring.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .background import BackgroundService
from .clouds import AuthFlowLauncher, CloudId, ConsoleAuthFlow, create_cloud_storages
from .config import ConfigManager, StorageBackend, SyncSettings
from .exceptions import BlacklistSyncException, handle_unexpected_error
from .locking import Mutex
from .models import SyncInterval, to_iso_string
from .sync import BlacklistService, CloudSyncOrchestrator, ConnectionManager, Notifier, SyncEvent
from .scheduling import SyncScheduler
from .storage import LocalStorage, MemoryStorage, SQLiteStorage, TokenStore, make_cipher


def configure_logging(settings: SyncSettings) -> None:
    """Log to stdout and, when writable, to the configured log file."""
    log_handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        try:
            log_path = Path(settings.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_handlers.append(logging.FileHandler(str(log_path)))
        except OSError:
            # File logging not available, use stdout only
            pass

    logging.basicConfig(
        level=settings.log_level.value,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=log_handlers
    )


def create_storage(settings: SyncSettings) -> LocalStorage:
    if settings.storage_backend == StorageBackend.MEMORY:
        return MemoryStorage()
    return SQLiteStorage(settings.db_path)


def create_token_store(settings: SyncSettings, storage: LocalStorage) -> TokenStore:
    """Token store whose key outlives the process whenever storage does."""
    key_file = None
    if settings.storage_backend == StorageBackend.SQLITE:
        key_file = str(Path(settings.db_path).with_suffix(".key"))
    return TokenStore(storage, make_cipher(settings.token_encryption_key, key_file))


class BlacklistSyncApp:
    """Main application class for the blacklist sync service."""

    def __init__(self, launcher: Optional[AuthFlowLauncher] = None):
        self.settings: Optional[SyncSettings] = None
        self.storage: Optional[LocalStorage] = None
        self.notifier = Notifier()
        self.service: Optional[BackgroundService] = None
        self.launcher = launcher or ConsoleAuthFlow()
        self.running = False
        self.logger = logging.getLogger(__name__)

    def initialize(self, settings: Optional[SyncSettings] = None) -> None:
        """Build every component.

        Args:
            settings: Configuration; loaded from the environment when omitted
        """
        try:
            self.settings = settings or ConfigManager().load_config()
            configure_logging(self.settings)
            self.logger.info("Initializing blacklist sync...")

            self.storage = create_storage(self.settings)
            token_store = create_token_store(self.settings, self.storage)
            clouds = create_cloud_storages(self.settings, self.launcher)

            # Sync and connect/disconnect share one critical section
            cloud_mutex = Mutex("cloud")
            connections = ConnectionManager(token_store, clouds, cloud_mutex)
            orchestrator = CloudSyncOrchestrator(token_store, clouds, cloud_mutex)
            blacklist = BlacklistService(self.storage, orchestrator, self.notifier, Mutex("blacklist"))

            self.service = BackgroundService(blacklist, connections, SyncScheduler())
            self.notifier.subscribe(SyncEvent.SYNC_FINISHED, self._log_sync_result)

            self.logger.info("All components initialized successfully")
        except Exception as e:
            error = handle_unexpected_error(e)
            self.logger.error(f"Failed to initialize application: {error.to_log_string()}")
            raise

    def _log_sync_result(self, result) -> None:
        if result.is_success:
            self.logger.info(f"Sync finished at {result.timestamp.isoformat()}")
        else:
            self.logger.warning(f"Sync failed: {result.message}")

    async def start(self) -> None:
        """Start background syncing and block until stop() is called."""
        await self.service.start()
        self.running = True
        self.logger.info("Blacklist sync is running. Press Ctrl+C to stop.")
        while self.running:
            await asyncio.sleep(1)

    async def stop(self) -> None:
        """Stop the application gracefully."""
        self.logger.info("Initiating graceful shutdown...")
        self.running = False
        if self.service:
            await self.service.stop()
        if self.storage:
            await self.storage.close()
        self.logger.info("Blacklist sync stopped cleanly")


async def run_command(app: BlacklistSyncApp, args: argparse.Namespace) -> int:
    """Run a one-shot command against an initialized app.

    Returns:
        Process exit code
    """
    service = app.service
    try:
        if args.command == "connect":
            await service.connect_to_cloud(args.cloud)
            print(f"Connected to {args.cloud}")
        elif args.command == "disconnect":
            await service.disconnect_from_cloud()
            print("Disconnected")
        elif args.command == "sync":
            await service.sync_blacklist()
        elif args.command == "set":
            await service.set_blacklist(Path(args.file).read_text(encoding="utf-8"))
        elif args.command == "interval":
            await service.blacklist.set_sync_interval(SyncInterval(args.minutes))

        # Let syncs spawned by the command finish before reporting
        await service.stop()
        if args.command in ("connect", "sync", "set", "status"):
            await print_status(app)
        return 0
    except BlacklistSyncException as e:
        app.logger.error(e.to_log_string())
        print(e.user_message, file=sys.stderr)
        return 1
    finally:
        await app.stop()


async def print_status(app: BlacklistSyncApp) -> None:
    blacklist = app.service.blacklist
    cloud = await app.service.connections.current()
    document = await blacklist.get()
    result = await blacklist.get_sync_result()

    print(f"Cloud:      {cloud.value if cloud else 'not connected'}")
    print(f"Modified:   {to_iso_string(document.timestamp)}")
    print(f"Entries:    {len([line for line in document.blacklist.splitlines() if line.strip()])}")
    if result is None:
        print("Last sync:  never")
    elif result.is_success:
        print(f"Last sync:  {to_iso_string(result.timestamp)}")
    else:
        print(f"Last sync:  failed ({result.message})")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="blacklist-sync",
        description="Keep a URL blacklist in sync with Google Drive or Dropbox",
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Sync now and then periodically until interrupted (default)")
    connect = subparsers.add_parser("connect", help="Authorize access to a cloud and sync")
    connect.add_argument("cloud", choices=[cloud_id.value for cloud_id in CloudId])
    subparsers.add_parser("disconnect", help="Revoke access and forget the connection")
    subparsers.add_parser("sync", help="Sync once")
    set_parser = subparsers.add_parser("set", help="Replace the blacklist with a file's contents and sync")
    set_parser.add_argument("file", help="Text file with one pattern per line")
    interval = subparsers.add_parser("interval", help="Set minutes between periodic syncs")
    interval.add_argument("minutes", type=int, choices=[i.value for i in SyncInterval])
    subparsers.add_parser("status", help="Show connection and last sync result")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "run"
    return args


async def main(argv: Optional[List[str]] = None) -> int:
    """Run the blacklist sync service or a one-shot command."""
    args = parse_args(argv)
    app = BlacklistSyncApp()
    app.initialize(ConfigManager(args.env_file).load_config())

    if args.command != "run":
        return await run_command(app, args)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: asyncio.create_task(app.stop()))
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms
            pass

    try:
        await app.start()
    finally:
        if app.running:
            await app.stop()
    return 0
