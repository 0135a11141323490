import logging

from mindpoints.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def get_db():
    """요청 단위 세션 - 서비스 팩토리에 주입됨 (mindpoints.deps)"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            logger.warning("Rolling back unfinished ledger transaction")
            db.rollback()
        raise
    finally:
        db.close()
