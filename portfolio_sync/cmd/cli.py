import time
import json
import argparse
import sys
from portfolio_sync.config.settings import Settings, load_settings
from portfolio_sync.config.logging import logger, setup_logging
from portfolio_sync.core.models import SyncResult
from portfolio_sync.services.syncer import SyncService
from portfolio_sync.utils.alerter import send_discord_alert


def run_sync(settings: Settings) -> SyncResult:
    """執行一次同步，失敗時送出 Discord 通知"""
    result = SyncService(settings).run()
    if not result.success:
        send_discord_alert(settings.DISCORD_WEBHOOK_URL, f"Portfolio sync failed: {result.error}")
    return result


def run_sync_loop(settings: Settings):
    """持續運行的排程迴圈 (用於 Docker 或 VM)"""
    interval = settings.SYNC_INTERVAL_SECONDS

    logger.info(f"Starting sync loop. Interval: {interval} seconds")

    while True:
        result = run_sync(settings)
        logger.info(f"Sync result: {result.to_dict()}")

        logger.info(f"Sleeping for {interval} seconds...")
        time.sleep(interval)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Coinbase to Notion Portfolio Sync")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Command: sync (只跑一次)
    subparsers.add_parser("sync", help="Run a single sync and print the result")

    # Command: monitor (持續跑)
    subparsers.add_parser("monitor", help="Run the sync every SYNC_INTERVAL_SECONDS")

    # Command: serve (本機 HTTP 入口)
    serve_parser = subparsers.add_parser("serve", help="Serve the sync endpoint over HTTP")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = load_settings()
    setup_logging(settings.LOG_LEVEL)

    if args.command == "sync":
        logger.info("Running single sync...")
        result = run_sync(settings)
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.success else 1

    if args.command == "monitor":
        try:
            run_sync_loop(settings)
        except KeyboardInterrupt:
            logger.info("Sync loop stopped by user.")
        return 0

    from portfolio_sync.web.app import create_app
    create_app(settings).run(host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
