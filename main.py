#!/usr/bin/env python3
"""Entry point for the MEV-Share stream watcher.

Connects to the configured matchmaker network and logs every pending
transaction or bundle hint published on the event stream.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from mev_share_client import (
    ClientConfig,
    LocalSigner,
    MatchmakerClient,
    PendingTxOrBundle,
    StreamingEventType,
)
from mev_share_client.errors import ConfigurationError, TransportError
from mev_share_client.utils.logging_utility import setup_logging

# Get logger for this module
logger = logging.getLogger(__name__)


def log_event(event: PendingTxOrBundle) -> None:
    """Default handler: log each event as it arrives."""
    logger.info(f"New event: {event}")


async def main() -> None:
    """Main entry point for the MEV-Share stream watcher.

    Parses startup arguments, loads configuration from environment,
    and streams events until the connection ends.

    Raises:
        SystemExit: On configuration or runtime errors
    """
    load_dotenv()

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="MEV-Share stream watcher - log pending order flow from the Flashbots matchmaker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  AUTH_PRIVATE_KEY  - Key used to sign relay requests (required)
  CHAIN_ID          - Chain ID of the matchmaker network (default: 1)
  EVENT_TYPE        - transaction or bundle (default: transaction)
  REQUEST_TIMEOUT   - Relay request timeout in seconds (default: 30)
  LOG_LEVEL         - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--chain-id",
        type=int,
        help="Override CHAIN_ID"
    )
    parser.add_argument(
        "--event-type",
        choices=[t.as_str() for t in StreamingEventType],
        help="Override EVENT_TYPE"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)

    if args.chain_id is not None:
        os.environ["CHAIN_ID"] = str(args.chain_id)
    if args.event_type is not None:
        os.environ["EVENT_TYPE"] = args.event_type

    logger.info("=== MEV-Share Stream Watcher Starting ===")

    try:
        config: ClientConfig = ClientConfig.from_env()
        config.log_config()

        signer = LocalSigner(config.auth_private_key)
        async with MatchmakerClient(
            signer, config.network, request_timeout=config.request_timeout
        ) as client:
            await client.on(config.event_type, log_event)

    except ConfigurationError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - AUTH_PRIVATE_KEY: 64 hex character signing key")
        logger.error("  - CHAIN_ID: 1 (mainnet) or 5 (goerli)")
        sys.exit(1)

    except TransportError as e:
        logger.error(f"Event stream failed: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("\nReceived interrupt signal, shutting down gracefully...")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
