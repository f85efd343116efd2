"""Market monitor: detects significant price swings and turns them into alerts.

A pass compares current yes prices against the snapshot stored by the
previous pass. Moves at or above the swing threshold are handed to an LLM
acting as breaking-news editor, which decides which moves deserve an alert
and writes the headline. If the LLM call fails, only the largest moves are
alerted on, with a templated headline.
"""

from collections.abc import Mapping, Sequence

from pydantic_ai import Agent
from pydantic_ai.output import PromptedOutput

from polytimes.alerts.models import AlertType, Urgency
from polytimes.config import Settings, get_settings
from polytimes.core.logging import get_logger
from polytimes.markets.polymarket import Market
from polytimes.monitoring.llm import create_model
from polytimes.monitoring.models import MonitorEvaluation, MonitorResult, NewAlert, PriceMove

logger = get_logger(__name__)

BASELINE_REASONING = "Baseline snapshot established. No alerts on first run."
STABLE_REASONING = "All markets stable. No alerts generated."
FALLBACK_REASONING = "AI analysis failed. Fallback to algorithmic detection (>15% threshold)."
DEFAULT_HEADLINE = "BREAKING: MARKET MOVES"

MONITOR_SYSTEM_PROMPT = """You are the Breaking News Editor at "The Polymarket Times".

Prediction markets have moved sharply. Decide which movements warrant a BREAKING NEWS alert.

## Criteria

1. **Newsworthiness**: does the move signal a real-world development?
   Politics, conflict and business rank higher. Sports rank lower unless it is a championship.

2. **Magnitude** (sets urgency):
   - more than 20 points: HIGH
   - 15 to 20 points: MEDIUM
   - 10 to 15 points: LOW

3. **Consensus shift**: crossing 50% (underdog to favourite), moving above 80% (near
   certainty) or collapsing toward 50/50 (contested) is breaking news.

4. **Volume**: above $5M suggests informed trading; below $1M is weaker unless the swing is extreme.

## Output

One entry per movement, using its [index]:
- should_alert: true or false
- alert_type: MAJOR_SWING | BREAKING_NEWS | VOLATILITY_SPIKE | CONSENSUS_SHIFT
- urgency: HIGH | MEDIUM | LOW
- headline: dramatic, 6 words max, ALL CAPS
- reasoning: one sentence

Finish with overall_reasoning summarising how many moves were alerted and why."""


def build_snapshot(markets: Sequence[Market]) -> dict[str, float]:
    """Map market id to current yes price."""
    return {m.id: m.yes_price for m in markets}


def detect_moves(
    markets: Sequence[Market],
    prior_snapshot: Mapping[str, float],
    threshold: float,
) -> list[PriceMove]:
    """Find markets whose yes price moved at least ``threshold`` since the snapshot.

    Markets missing from the snapshot are new since the last pass and skipped.
    """
    moves: list[PriceMove] = []
    for market in markets:
        old_price = prior_snapshot.get(market.id)
        if old_price is None:
            continue
        move = PriceMove(market=market, old_price=float(old_price), new_price=market.yes_price)
        # Round to tolerate float noise on threshold-sized moves (e.g. 0.6 - 0.5)
        if round(move.change, 9) >= threshold:
            moves.append(move)
    return moves


def format_moves(moves: Sequence[PriceMove]) -> str:
    """Render detected moves for the editor prompt."""
    blocks = []
    for idx, move in enumerate(moves):
        market = move.market
        blocks.append(
            f'[{idx}] "{market.question}"\n'
            f"OLD PRICE: {round(move.old_price * 100)}%\n"
            f"NEW PRICE: {round(move.new_price * 100)}%\n"
            f"CHANGE: {move.direction} {move.points} percentage points\n"
            f"CATEGORY: {market.category or 'OTHER'}\n"
            f"VOLUME_24H: ${market.volume_24h / 1e6:.2f}M"
        )
    return "\n\n".join(blocks)


def fallback_alerts(moves: Sequence[PriceMove], threshold: float) -> list[NewAlert]:
    """Templated alerts for the largest moves, used when the LLM is unavailable."""
    return [
        NewAlert(
            market_id=move.market.id,
            alert_type=AlertType.MAJOR_SWING,
            urgency=Urgency.HIGH,
            headline=f"BREAKING: {move.market.question[:40].upper()}",
            price_change=move.signed_change,
            old_price=move.old_price,
            new_price=move.new_price,
            reasoning=f"Major {move.points}pp swing detected.",
            market_data=move.market.to_alert_data(),
        )
        for move in moves
        if round(move.change, 9) >= threshold
    ]


def create_monitor_agent(settings: Settings | None = None) -> Agent[None, MonitorEvaluation]:
    """Create the PydanticAI editor agent (smart model, no tools)."""
    model = create_model(smart=True, settings=settings)
    agent: Agent[None, MonitorEvaluation] = Agent(
        model,
        output_type=PromptedOutput(MonitorEvaluation),
        system_prompt=MONITOR_SYSTEM_PROMPT,
    )
    return agent


class MarketMonitor:
    """Compares market prices between passes and produces breaking-news alerts."""

    def __init__(
        self,
        settings: Settings | None = None,
        agent: Agent[None, MonitorEvaluation] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._agent = agent

    @property
    def agent(self) -> Agent[None, MonitorEvaluation]:
        """Get or create the editor agent."""
        if self._agent is None:
            self._agent = create_monitor_agent(self._settings)
        return self._agent

    async def check(
        self,
        markets: Sequence[Market],
        prior_snapshot: Mapping[str, float] | None = None,
    ) -> MonitorResult:
        """Run one monitoring pass.

        Args:
            markets: Current markets
            prior_snapshot: Prices recorded by the previous pass, if any

        Returns:
            Alerts to store, the snapshot to persist for the next pass, and
            the editor's reasoning
        """
        snapshot = build_snapshot(markets)

        if not prior_snapshot:
            logger.info("First monitoring pass, establishing baseline", markets=len(markets))
            return MonitorResult(snapshot=snapshot, reasoning=BASELINE_REASONING)

        moves = detect_moves(markets, prior_snapshot, self._settings.monitor_swing_threshold)
        if not moves:
            logger.info("No significant price movements detected", markets=len(markets))
            return MonitorResult(snapshot=snapshot, reasoning=STABLE_REASONING)

        logger.info("Significant movements detected, evaluating", moves=len(moves))

        try:
            result = await self.agent.run(format_moves(moves))
            evaluation = result.output
        except Exception as e:
            logger.error("Market monitor evaluation failed", error=str(e))
            alerts = fallback_alerts(moves, self._settings.monitor_fallback_threshold)
            return MonitorResult(alerts=alerts, snapshot=snapshot, reasoning=FALLBACK_REASONING)

        alerts = self._alerts_from_evaluation(moves, evaluation)
        logger.info("Breaking news alerts generated", alerts=len(alerts), moves=len(moves))
        return MonitorResult(
            alerts=alerts,
            snapshot=snapshot,
            reasoning=evaluation.overall_reasoning,
        )

    def _alerts_from_evaluation(
        self,
        moves: Sequence[PriceMove],
        evaluation: MonitorEvaluation,
    ) -> list[NewAlert]:
        alerts: list[NewAlert] = []
        seen: set[int] = set()
        for decision in evaluation.alerts:
            if not decision.should_alert:
                continue
            if not 0 <= decision.index < len(moves) or decision.index in seen:
                logger.warning("Ignoring alert decision", index=decision.index)
                continue
            seen.add(decision.index)
            move = moves[decision.index]
            alerts.append(
                NewAlert(
                    market_id=move.market.id,
                    alert_type=(decision.alert_type or "").strip().upper() or AlertType.MAJOR_SWING,
                    urgency=decision.urgency or Urgency.MEDIUM,
                    headline=decision.headline or DEFAULT_HEADLINE,
                    price_change=move.signed_change,
                    old_price=move.old_price,
                    new_price=move.new_price,
                    reasoning=decision.reasoning or None,
                    market_data=move.market.to_alert_data(),
                )
            )
        return alerts
