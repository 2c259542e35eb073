"""
Item usage bookkeeping and exposure monitoring for Computerized Adaptive Testing.

The CAT core never mutates an item. Each processed response instead carries an
:class:`ItemUsageUpdate` instruction (one administration, one or zero correct)
that the hosting item repository applies. Concurrent sessions may reference
the same item, so the increment must be atomic: :class:`ItemUsageLedger` is a
thread-safe in-memory implementation of that repository side, and also reports
exposure rates so over-used items can be spotted.

Exposure rate is defined as:
    rate_i = (administrations_i) / (total_administrations)

Items exceeding the alert threshold are logged as warnings.

References:
    - Stocking, M.L., & Lewis, C. (1998). Controlling item exposure conditional
      on ability in computerized adaptive testing.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Hashable, List, Optional, Tuple

from aptitude.core.config import settings

logger = logging.getLogger(__name__)

# Number of overexposed items logged individually per alert
_MAX_LOGGED_ITEMS = 10


@dataclass(frozen=True)
class ItemUsageUpdate:
    """Usage-statistics increment for one administered item."""

    item_id: Hashable
    administered: int = 1
    correct: int = 0


@dataclass(frozen=True)
class ItemUsageStats:
    """Accumulated usage statistics for one item."""

    times_administered: int
    times_correct: int

    @property
    def p_value(self) -> Optional[float]:
        """Observed proportion correct, or None before any administration."""
        if self.times_administered == 0:
            return None
        return self.times_correct / self.times_administered


class ItemUsageLedger:
    """
    Thread-safe per-item usage counters with exposure alerts.

    Uses in-memory counters within a single process. A hosting application
    backed by a database applies the same ``ItemUsageUpdate`` with an atomic
    ``UPDATE ... SET times_administered = times_administered + :n``.

    Example usage:
        ledger = ItemUsageLedger(alert_threshold=0.15)

        state = process_response(state, item, answer, time_taken)
        if state.pending_usage_update is not None:
            ledger.apply(state.pending_usage_update)

        # Periodic checks (e.g., after each test session)
        overexposed = ledger.check_and_alert()

    Attributes:
        alert_threshold: Exposure rate above which items are flagged (0.0-1.0).
    """

    def __init__(self, alert_threshold: Optional[float] = None):
        """
        Initialize the ledger.

        Args:
            alert_threshold: Exposure rate threshold for alerts
                (default settings.EXPOSURE_ALERT_THRESHOLD).

        Raises:
            ValueError: If alert_threshold is not in range [0.0, 1.0].
        """
        if alert_threshold is None:
            alert_threshold = settings.EXPOSURE_ALERT_THRESHOLD
        if not (0.0 <= alert_threshold <= 1.0):
            raise ValueError(
                f"alert_threshold must be in [0.0, 1.0], got {alert_threshold}"
            )

        self._lock = threading.Lock()
        self._administered: Dict[Hashable, int] = {}
        self._correct: Dict[Hashable, int] = {}
        self._total_administered = 0
        self.alert_threshold = alert_threshold

    def apply(self, update: ItemUsageUpdate) -> ItemUsageStats:
        """
        Atomically apply a usage increment.

        Args:
            update: Instruction emitted by ``process_response``.

        Returns:
            The item's statistics after the increment.
        """
        with self._lock:
            administered = self._administered.get(update.item_id, 0) + update.administered
            correct = self._correct.get(update.item_id, 0) + update.correct
            self._administered[update.item_id] = administered
            self._correct[update.item_id] = correct
            self._total_administered += update.administered
        return ItemUsageStats(times_administered=administered, times_correct=correct)

    def record(self, item_id: Hashable, is_correct: bool) -> ItemUsageStats:
        """Shorthand for applying a single administration."""
        return self.apply(
            ItemUsageUpdate(item_id=item_id, administered=1, correct=int(is_correct))
        )

    def get_stats(self, item_id: Hashable) -> ItemUsageStats:
        """Usage statistics for an item (zeros if never administered)."""
        with self._lock:
            return ItemUsageStats(
                times_administered=self._administered.get(item_id, 0),
                times_correct=self._correct.get(item_id, 0),
            )

    def get_exposure_rate(self, item_id: Hashable) -> float:
        """Exposure rate for one item, or 0.0 if nothing was administered."""
        with self._lock:
            if self._total_administered == 0:
                return 0.0
            return self._administered.get(item_id, 0) / self._total_administered

    def get_exposure_rates(self) -> Dict[Hashable, float]:
        """Exposure rates for all items administered at least once."""
        with self._lock:
            return self._rates_locked()

    def _rates_locked(self) -> Dict[Hashable, float]:
        if self._total_administered == 0:
            return {}
        return {
            item_id: count / self._total_administered
            for item_id, count in self._administered.items()
        }

    def get_overexposed_items(self) -> List[Tuple[Hashable, float]]:
        """
        Items exceeding the alert threshold.

        Returns:
            List of (item_id, exposure_rate) tuples sorted by rate (descending).
        """
        rates = self.get_exposure_rates()
        overexposed = [
            (item_id, rate)
            for item_id, rate in rates.items()
            if rate > self.alert_threshold
        ]
        overexposed.sort(key=lambda x: x[1], reverse=True)
        return overexposed

    def check_and_alert(self) -> List[Tuple[Hashable, float]]:
        """
        Check for overexposed items and log warnings.

        Snapshots counts under the lock and logs outside it.

        Returns:
            List of (item_id, exposure_rate) tuples for overexposed items.
        """
        with self._lock:
            rates = self._rates_locked()
            overexposed = [
                (item_id, rate)
                for item_id, rate in rates.items()
                if rate > self.alert_threshold
            ]
            overexposed.sort(key=lambda x: x[1], reverse=True)
            log_entries = [
                (item_id, rate, self._administered[item_id], self._total_administered)
                for item_id, rate in overexposed[:_MAX_LOGGED_ITEMS]
            ]
            remaining = len(overexposed) - _MAX_LOGGED_ITEMS

        if overexposed:
            logger.warning(
                f"Exposure alert: {len(overexposed)} items exceed "
                f"{self.alert_threshold:.1%} threshold"
            )
            for item_id, rate, count, total in log_entries:
                logger.warning(
                    f"  Item {item_id}: {rate:.1%} exposure "
                    f"({count}/{total} administrations)",
                    extra={"item_id": item_id},
                )
            if remaining > 0:
                logger.warning(f"  ... and {remaining} more items")

        return overexposed

    @property
    def total_administered(self) -> int:
        """Total administrations recorded across all items."""
        with self._lock:
            return self._total_administered

    def reset(self) -> None:
        """Reset all counters."""
        with self._lock:
            self._administered.clear()
            self._correct.clear()
            self._total_administered = 0
        logger.info("ItemUsageLedger counters reset")
