"""
Command-line entry point: crawl listing URLs into the SQLite catalog.
"""
import argparse
import asyncio
import os
from typing import List

from .assets import ImageFetcher
from .config import config
from .core import VehicleCrawler
from .database import db_connect, db_init, upsert_with_price_history
from .export import export_price_history, export_vehicles, save_output_rows, write_frame
from .models import CrawlResult
from .scraper import PageExtractor
from .session import BrowserSession
from .utils import init_logger, now_iso


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Crawl vehicle listing pages into SQLite with price history")
    ap.add_argument("urls", nargs="+", help="Listing page URLs")
    ap.add_argument("--db", type=str, default=config.DB_PATH, help="Path to SQLite DB")
    ap.add_argument("--upload-dir", type=str, default=config.UPLOAD_DIR, help="Directory for downloaded images")
    ap.add_argument("--headed", action="store_true", help="Show the browser window")
    ap.add_argument("--settle-ms", type=int, default=config.SETTLE_MS,
                    help="Wait after network idle before reading the page")
    ap.add_argument("--out", type=str, default="", help="CSV/XLSX to export crawled vehicles to")
    ap.add_argument("--export-prices", action="store_true", help="Export price_history to --out instead")
    ap.add_argument("--export-prices-url", type=str, default="", help="Filter price_history by listing URL")
    ap.add_argument("--export-all", action="store_true", help="Export every stored vehicle to --out instead")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", config.LOG_LEVEL),
                    help="Console log level (default from env LOG_CONSOLE or LOG_LEVEL).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=config.LOG_FILE,
                    help="Path to log file (default from env LOG_FILE_PATH or crawler.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


async def crawl_all(crawler: VehicleCrawler, urls: List[str]) -> List[CrawlResult]:
    """Crawl urls one after another through one browser session."""
    results = []
    async with crawler:
        for url in urls:
            results.append(await crawler.crawl_vehicle(url))
    return results


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(f">>> Run started at {now_iso()} for {len(args.urls)} URL(s)")

    session = BrowserSession(headless=not args.headed)
    crawler = VehicleCrawler(
        session=session,
        extractor=PageExtractor(session, settle_ms=args.settle_ms),
        fetcher=ImageFetcher(upload_dir=args.upload_dir),
    )
    results = asyncio.run(crawl_all(crawler, args.urls))

    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    conn = db_connect(args.db)
    db_init(conn)

    new_items = updated = price_changed_count = failed = 0
    vehicles = []
    for url, result in zip(args.urls, results):
        if not result.success:
            failed += 1
            logger.error(f">>> Failed {url}: {result.error}")
            continue
        vehicles.append(result.vehicle)
        is_new, price_changed = upsert_with_price_history(conn, result.vehicle)
        if is_new:
            new_items += 1
        else:
            updated += 1
        if price_changed:
            price_changed_count += 1
    logger.info(
        f">>> In DB: new: {new_items}, updated: {updated}, "
        f"price changes: {price_changed_count}, failed: {failed}"
    )

    if args.out:
        if args.export_prices:
            dfp = export_price_history(conn, url=args.export_prices_url or None)
            write_frame(dfp, args.out)
            logger.info(f">>> Export price_history: {len(dfp)} rows -> {args.out}")
        elif args.export_all:
            dfa = export_vehicles(conn)
            write_frame(dfa, args.out)
            logger.info(f">>> Export vehicles: {len(dfa)} rows -> {args.out}")
        elif vehicles:
            save_output_rows(vehicles, args.out)

    conn.close()
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
