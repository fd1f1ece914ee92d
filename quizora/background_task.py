import asyncio
from typing import Callable

from sqlalchemy.orm import Session

from quizora.config import settings
from quizora.database.db import get_ctx_db
from quizora.log import get_logger
from quizora.model.verification_codes import VerificationCode
from quizora.router.api.logics.quiz_logic import refresh_quiz_statuses
from quizora.timeutil import utcnow

logger = get_logger(__name__)

OTP_CLEANUP_INTERVAL_SECONDS = 300


def cleanup_verification_codes(db: Session) -> int:
    deleted = db.query(VerificationCode).filter(VerificationCode.expires_at < utcnow()).delete(
        synchronize_session=False
    )
    db.commit()
    if deleted:
        logger.info(f"Purged {deleted} expired verification code(s)")
    return deleted


async def run_task(name: str, func: Callable[[Session], object], interval: int) -> None:
    """
    Run ``func`` with a fresh session every ``interval`` seconds until cancelled.
    A failing run is logged and the loop carries on.
    """
    while True:
        try:
            with get_ctx_db() as db:
                await asyncio.to_thread(func, db)
        except Exception as e:
            logger.error(f"Error in background task {name}: {e}", exc_info=True)
        await asyncio.sleep(interval)


def start_background_tasks() -> set:
    return {
        asyncio.create_task(
            run_task("quiz_status_refresh", refresh_quiz_statuses, settings.QUIZ_STATUS_INTERVAL_SECONDS)
        ),
        asyncio.create_task(
            run_task("verification_code_cleanup", cleanup_verification_codes, OTP_CLEANUP_INTERVAL_SECONDS)
        ),
    }
