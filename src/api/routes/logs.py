"""Routes that emit sample log entries to exercise the log pipeline."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter

router = APIRouter(prefix="/log", tags=["logs"])
logger = logging.getLogger(__name__)

SAMPLE_TRANSACTIONS = 3


@router.get("/generate", summary="Emit sample info, warning and error logs")
async def generate_logs() -> dict[str, str]:
    """Write a burst of structured logs at every severity the pipeline indexes."""

    logger.info("Log generation requested")

    for index in range(SAMPLE_TRANSACTIONS):
        transaction_id = str(uuid.uuid4())
        logger.info(
            "Processing transaction %s for user %d",
            transaction_id,
            100 + index,
            extra={"transaction_id": transaction_id, "user_id": 100 + index},
        )
        if index == 1:
            slow_transaction_id = str(uuid.uuid4())
            logger.warning(
                "Transaction %s took longer than expected",
                slow_transaction_id,
                extra={"transaction_id": slow_transaction_id},
            )

    try:
        raise RuntimeError("Simulated payment processing failure")
    except RuntimeError:
        logger.exception("Critical error while processing payment")

    logger.info("Sample logs generated")

    return {
        "message": "Sample logs generated. Check the console output and the log pipeline."
    }
