import logging

from plaza_rewards.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def get_db():
    """요청 단위 세션. 처리 중 예외가 나면 열린 트랜잭션을 롤백"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            logger.debug("Rolling back request session after error")
            db.rollback()
        raise
    finally:
        db.close()
