import logging
import threading

from sqlalchemy import update

from models import utcnow
from models.listings import Referral

logger = logging.getLogger(__name__)


def expire_referrals(database, now=None) -> int:
    """Mark every active referral whose deadline has passed as expired.

    A single conditional UPDATE, so re-running it (or running it while
    referrals are being created) never touches a row twice.
    """
    now = now or utcnow()
    with database.session() as session:
        result = session.execute(
            update(Referral)
            .where(Referral.deadline < now, Referral.status == 'active')
            .values(status='expired', updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class ExpirySweeper:
    """Runs ``expire_referrals`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, database, interval=3600):
        self.database = database
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        try:
            count = expire_referrals(self.database)
        except Exception:
            # Keep the schedule alive; the next tick retries.
            logger.exception("Referral expiry sweep failed")
            return 0
        if count:
            logger.info("Expired %d referral post(s)", count)
        return count

    def _loop(self):
        logger.info("Referral expiry sweeper started (every %ss)", self.interval)
        while not self._stop.wait(self.interval):
            self.run_once()
        logger.info("Referral expiry sweeper stopped")

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name='referral-expiry-sweeper', daemon=True)
        self._thread.start()

    def stop(self, timeout=5):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
