# datavista/client/main.py
import argparse
import asyncio
import logging
import os
import sys
import time
from datetime import datetime
from typing import List, Optional

from datavista.client.config import settings
from datavista.client.graphql_client import DataVistaClient
from datavista.client.utils import save_failed_records

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Import employees from a CSV file into DataVista')

    parser.add_argument('--file', '-f', type=str, default=settings.CSV_FILE_PATH,
                        help='CSV file with employee records')

    parser.add_argument('--batch-size', '-b', type=int, default=settings.BATCH_SIZE,
                        help='Records per batch')

    parser.add_argument('--workers', '-w', type=int, default=settings.MAX_WORKERS,
                        help='Concurrent request count')

    parser.add_argument('--server', '-s', type=str, default=settings.SERVER_URL,
                        help='GraphQL endpoint URL')

    parser.add_argument('--output', '-o', type=str, default=None,
                        help='Failed records output file')

    return parser


async def run_import(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not os.path.exists(args.file):
        logger.error(f"CSV file not found: {args.file}")
        return 1

    if args.output and os.path.dirname(args.output):
        os.makedirs(os.path.dirname(args.output), exist_ok=True)

    if not args.output:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        args.output = f"failed_records_{timestamp}.csv"

    client = DataVistaClient(
        server_url=args.server,
        batch_size=args.batch_size,
        max_workers=args.workers,
    )

    try:
        await client.initialize()

        start_time = time.time()
        total_records, successful_count, failed_records = await client.process_csv_file(args.file)
        elapsed_time = time.time() - start_time

        throughput = total_records / elapsed_time if elapsed_time > 0 else 0

        logger.info(f"Processing completed in {elapsed_time:.2f} seconds")
        logger.info(f"Total: {total_records}, Success: {successful_count}, Failed: {len(failed_records)}")
        logger.info(f"Throughput: {throughput:.1f} records/second")

        if failed_records:
            save_failed_records(failed_records, args.output)
            return 2

        return 0
    except Exception as e:
        logger.error(f"Error: {str(e)}")
        return 1
    finally:
        await client.close()


def main() -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.CLIENT_LOG_FILE:
        handlers.append(logging.FileHandler(settings.CLIENT_LOG_FILE))

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )

    try:
        sys.exit(asyncio.run(run_import()))
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
