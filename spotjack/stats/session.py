"""
Session statistics for a blackjack table.

`SessionStats` listens for `ROUND_ENDED` on the event bus and keeps one record
per settled round. The summary is computed with numpy and scipy.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import scipy.stats as stats

from spotjack.events import EngineEventType, EventBus, EventEmitter, EventPriority


@dataclass(frozen=True)
class RoundRecord:
    """
    Outcome of one settled round.

    Attributes:
        round_number: Round counter at the deal
        net: Net profit or loss of the round
        returned: Gross amount paid back to the player
        bankroll: Bankroll after settlement
    """

    round_number: int
    net: float
    returned: float
    bankroll: float


class SessionStats:
    """Collects round outcomes published on the event bus."""

    def __init__(self, starting_bankroll: float, event_bus: Optional[EventEmitter] = None):
        self.starting_bankroll = starting_bankroll
        self.rounds: List[RoundRecord] = []
        self._unsubscribe: Optional[Callable] = None
        self._event_bus = event_bus or EventBus.get_instance()

    def attach(self) -> "SessionStats":
        """Start recording rounds; returns self for chaining."""
        if self._unsubscribe is None:
            self._unsubscribe = self._event_bus.on(
                EngineEventType.ROUND_ENDED, self.record, EventPriority.LOW
            )
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def record(self, data: Dict[str, Any]) -> None:
        self.rounds.append(
            RoundRecord(
                round_number=data["round_number"],
                net=data["last_win"],
                returned=data["last_win_amount"],
                bankroll=data["bankroll"],
            )
        )

    def _confidence_interval(self, values: np.ndarray, confidence: float):
        if len(values) < 2:
            return None
        mean = np.mean(values)
        std_err = stats.sem(values)
        if std_err == 0:
            return (float(mean), float(mean))
        margin = std_err * stats.t.ppf((1 + confidence) / 2, len(values) - 1)
        return (float(mean - margin), float(mean + margin))

    def summary(self, confidence: float = 0.95) -> Dict[str, Any]:
        """
        Summarize the session so far.

        Args:
            confidence: Confidence level for the interval around the mean net result

        Returns:
            Dictionary with round count, total/mean/stdev of net results,
            win/loss/push rates, the confidence interval of the mean net
            result, final bankroll and maximum drawdown
        """
        if not self.rounds:
            return {
                "rounds": 0,
                "total_net": 0.0,
                "mean_net": 0.0,
                "std_net": 0.0,
                "win_rate": 0.0,
                "loss_rate": 0.0,
                "push_rate": 0.0,
                "mean_net_interval": None,
                "final_bankroll": self.starting_bankroll,
                "max_drawdown": 0.0,
            }

        net = np.array([record.net for record in self.rounds], dtype=float)
        bankroll = np.array(
            [self.starting_bankroll] + [record.bankroll for record in self.rounds],
            dtype=float,
        )
        # Drawdown is measured from the running peak of the bankroll curve
        drawdown = np.maximum.accumulate(bankroll) - bankroll

        return {
            "rounds": len(self.rounds),
            "total_net": float(np.sum(net)),
            "mean_net": float(np.mean(net)),
            "std_net": float(np.std(net)),
            "win_rate": float(np.mean(net > 0)),
            "loss_rate": float(np.mean(net < 0)),
            "push_rate": float(np.mean(net == 0)),
            "mean_net_interval": self._confidence_interval(net, confidence),
            "final_bankroll": float(bankroll[-1]),
            "max_drawdown": float(np.max(drawdown)),
        }
