"""
Basic usage example for logship.

Ships a few messages to CloudWatch Logs. Requires AWS credentials and
LOGSHIP_LOG_GROUP_NAME (or edit the group name below).
"""

import asyncio

from logship import StreamLogger
from logship.clients.cloudwatch import CloudWatchStreamClient
from logship.core.errors import ShipmentError
from logship.core.events import Batch


def report(exc: ShipmentError, batch: Batch) -> None:
    print(f"shipment of {len(batch)} events failed at {exc.stage}: {exc.cause}")


async def main() -> None:
    client = CloudWatchStreamClient(region="us-east-1")
    async with StreamLogger(
        client=client,
        log_group_name="/logship/example",
        debounce_time_ms=1000,
        on_error=report,
    ) as logger:
        logger.log("Application started")
        logger.log({"event": "user_login", "user_id": 12345})
        try:
            1 / 0
        except ZeroDivisionError as exc:
            logger.log(exc)
        # Quiet for longer than the debounce window: the batch ships
        await asyncio.sleep(1.5)
        logger.log("Shutting down")


if __name__ == "__main__":
    asyncio.run(main())
