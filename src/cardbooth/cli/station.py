"""CLI for running a headless print station."""

import argparse
import asyncio
import logging
import sys

from cardbooth.station import PrintStation


async def _run(args: argparse.Namespace) -> None:
    async with PrintStation(
        server_url=args.server,
        agent_url=args.agent,
        client_id=args.client_id,
        printer_name=args.printer,
        poll_interval=args.poll_interval,
    ) as station:
        if args.once:
            handled = await station.drain()
            print(f"Processed {handled} job(s)")
            return
        await station.run()


def main() -> int:
    """Main entry point for cardbooth-station CLI."""
    parser = argparse.ArgumentParser(
        description="Claim print jobs from a cardbooth server and send them to a local print agent.",
        prog="cardbooth-station",
    )
    parser.add_argument(
        "--server",
        default="http://127.0.0.1:3000",
        help="cardbooth server URL (default: http://127.0.0.1:3000)",
    )
    parser.add_argument(
        "--agent",
        default="http://127.0.0.1:18181",
        help="Local print agent URL (default: http://127.0.0.1:18181)",
    )
    parser.add_argument(
        "--client-id",
        help="Station identity reported when claiming jobs (default: random)",
    )
    parser.add_argument(
        "--printer",
        help="Printer name passed to the agent (default: agent's default printer)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=15.0,
        help="Seconds between fallback polls (default: 15)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Drain the queue once and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
