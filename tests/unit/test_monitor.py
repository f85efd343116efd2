"""Tests for the market monitor."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from polytimes.alerts.models import AlertType, Urgency
from polytimes.monitoring.models import AlertDecision, MonitorEvaluation, PriceMove
from polytimes.monitoring.monitor import (
    BASELINE_REASONING,
    DEFAULT_HEADLINE,
    FALLBACK_REASONING,
    MONITOR_SYSTEM_PROMPT,
    STABLE_REASONING,
    MarketMonitor,
    build_snapshot,
    detect_moves,
    fallback_alerts,
    format_moves,
)


def _agent_returning(evaluation: MonitorEvaluation) -> MagicMock:
    result = MagicMock()
    result.output = evaluation
    agent = MagicMock()
    agent.run = AsyncMock(return_value=result)
    return agent


class TestPriceMove:
    def test_change_and_direction(self, market_factory) -> None:
        move = PriceMove(market=market_factory(), old_price=0.7, new_price=0.45)
        assert move.change == pytest.approx(0.25)
        assert move.signed_change == pytest.approx(-0.25)
        assert move.direction == "DOWN"
        assert move.points == 25


class TestDetectMoves:
    def test_threshold_is_inclusive(self, market_factory) -> None:
        markets = [market_factory(id="m1", yes_price=0.6)]
        moves = detect_moves(markets, {"m1": 0.5}, threshold=0.10)
        assert len(moves) == 1
        assert moves[0].old_price == 0.5

    def test_small_moves_ignored(self, market_factory) -> None:
        markets = [market_factory(id="m1", yes_price=0.58)]
        assert detect_moves(markets, {"m1": 0.5}, threshold=0.10) == []

    def test_new_markets_skipped(self, market_factory) -> None:
        markets = [market_factory(id="new", yes_price=0.9)]
        assert detect_moves(markets, {"m1": 0.1}, threshold=0.10) == []

    def test_downward_moves_count(self, market_factory) -> None:
        markets = [market_factory(id="m1", yes_price=0.2)]
        moves = detect_moves(markets, {"m1": 0.5}, threshold=0.10)
        assert moves[0].direction == "DOWN"


class TestFormatting:
    def test_build_snapshot(self, market_factory) -> None:
        markets = [market_factory(id="a", yes_price=0.1), market_factory(id="b", yes_price=0.9)]
        assert build_snapshot(markets) == {"a": 0.1, "b": 0.9}

    def test_format_moves(self, market_factory) -> None:
        move = PriceMove(
            market=market_factory(question="Will X win?", volume_24h=5_250_000.0),
            old_price=0.35,
            new_price=0.55,
        )
        text = format_moves([move])
        assert text.startswith('[0] "Will X win?"')
        assert "OLD PRICE: 35%" in text
        assert "NEW PRICE: 55%" in text
        assert "CHANGE: UP 20 percentage points" in text
        assert "VOLUME_24H: $5.25M" in text

    def test_system_prompt_lists_urgencies(self) -> None:
        for level in ("HIGH", "MEDIUM", "LOW"):
            assert level in MONITOR_SYSTEM_PROMPT
        assert "CONSENSUS_SHIFT" in MONITOR_SYSTEM_PROMPT


class TestFallbackAlerts:
    def test_only_large_moves(self, market_factory) -> None:
        big = PriceMove(
            market=market_factory(id="big", question="Will the ceasefire hold through March 2027?"),
            old_price=0.3,
            new_price=0.5,
        )
        small = PriceMove(market=market_factory(id="small"), old_price=0.3, new_price=0.42)

        alerts = fallback_alerts([big, small], threshold=0.15)

        assert [a.market_id for a in alerts] == ["big"]
        alert = alerts[0]
        assert alert.alert_type == AlertType.MAJOR_SWING
        assert alert.urgency == Urgency.HIGH
        assert alert.headline == "BREAKING: WILL THE CEASEFIRE HOLD THROUGH MARCH 20"
        assert alert.reasoning == "Major 20pp swing detected."
        assert alert.price_change == pytest.approx(0.2)


class TestMarketMonitor:
    async def test_first_run_is_baseline(self, settings, market_factory) -> None:
        agent = _agent_returning(MonitorEvaluation())
        monitor = MarketMonitor(settings, agent=agent)

        result = await monitor.check([market_factory(id="m1", yes_price=0.3)], None)

        assert result.alerts == []
        assert result.snapshot == {"m1": 0.3}
        assert result.reasoning == BASELINE_REASONING
        agent.run.assert_not_awaited()

    async def test_empty_snapshot_is_baseline(self, settings, market_factory) -> None:
        monitor = MarketMonitor(settings, agent=_agent_returning(MonitorEvaluation()))
        result = await monitor.check([market_factory()], {})
        assert result.reasoning == BASELINE_REASONING

    async def test_stable_markets(self, settings, market_factory) -> None:
        agent = _agent_returning(MonitorEvaluation())
        monitor = MarketMonitor(settings, agent=agent)

        result = await monitor.check([market_factory(id="m1", yes_price=0.52)], {"m1": 0.5})

        assert result.alerts == []
        assert result.reasoning == STABLE_REASONING
        agent.run.assert_not_awaited()

    async def test_llm_decisions_become_alerts(self, settings, market_factory) -> None:
        markets = [
            market_factory(id="m1", question="Fed cut?", yes_price=0.75),
            market_factory(id="m2", question="Lakers win?", yes_price=0.2),
        ]
        evaluation = MonitorEvaluation(
            alerts=[
                AlertDecision(
                    index=0,
                    should_alert=True,
                    alert_type=AlertType.CONSENSUS_SHIFT,
                    urgency=Urgency.HIGH,
                    headline="FED CUT NOW LIKELY",
                    reasoning="Crossed 50%.",
                ),
                AlertDecision(index=1, should_alert=False, reasoning="Sports."),
            ],
            overall_reasoning="1 of 2 moves alerted.",
        )
        agent = _agent_returning(evaluation)
        monitor = MarketMonitor(settings, agent=agent)

        result = await monitor.check(markets, {"m1": 0.45, "m2": 0.45})

        assert result.reasoning == "1 of 2 moves alerted."
        assert len(result.alerts) == 1
        alert = result.alerts[0]
        assert alert.market_id == "m1"
        assert alert.alert_type == AlertType.CONSENSUS_SHIFT
        assert alert.headline == "FED CUT NOW LIKELY"
        assert alert.old_price == 0.45
        assert alert.new_price == 0.75
        assert alert.price_change == pytest.approx(0.30)
        assert alert.market_data["yesPrice"] == 0.75
        assert alert.market_data["slug"] == "fed-dec"
        prompt = agent.run.await_args.args[0]
        assert "[0]" in prompt and "[1]" in prompt

    async def test_missing_fields_use_defaults(self, settings, market_factory) -> None:
        evaluation = MonitorEvaluation(
            alerts=[AlertDecision(index=0, should_alert=True)],
            overall_reasoning="ok",
        )
        monitor = MarketMonitor(settings, agent=_agent_returning(evaluation))

        result = await monitor.check([market_factory(id="m1", yes_price=0.1)], {"m1": 0.3})

        alert = result.alerts[0]
        assert alert.alert_type == AlertType.MAJOR_SWING
        assert alert.urgency == Urgency.MEDIUM
        assert alert.headline == DEFAULT_HEADLINE
        assert alert.reasoning is None

    async def test_unlisted_alert_type_is_kept(self, settings, market_factory) -> None:
        evaluation = MonitorEvaluation.model_validate(
            {
                "alerts": [
                    {"index": 0, "should_alert": True, "alert_type": " election_shock "},
                    {"index": 1, "should_alert": True, "alert_type": ""},
                ],
                "overall_reasoning": "ok",
            }
        )
        monitor = MarketMonitor(settings, agent=_agent_returning(evaluation))
        markets = [
            market_factory(id="m1", yes_price=0.9),
            market_factory(id="m2", yes_price=0.1),
        ]

        result = await monitor.check(markets, {"m1": 0.5, "m2": 0.5})

        assert [a.alert_type for a in result.alerts] == ["ELECTION_SHOCK", AlertType.MAJOR_SWING]

    async def test_out_of_range_and_duplicate_indexes_ignored(
        self, settings, market_factory
    ) -> None:
        evaluation = MonitorEvaluation(
            alerts=[
                AlertDecision(index=5, should_alert=True, headline="GHOST"),
                AlertDecision(index=-1, should_alert=True, headline="GHOST"),
                AlertDecision(index=0, should_alert=True, headline="FIRST"),
                AlertDecision(index=0, should_alert=True, headline="AGAIN"),
            ]
        )
        monitor = MarketMonitor(settings, agent=_agent_returning(evaluation))

        result = await monitor.check([market_factory(id="m1", yes_price=0.9)], {"m1": 0.5})

        assert [a.headline for a in result.alerts] == ["FIRST"]

    async def test_llm_failure_falls_back(self, settings, market_factory) -> None:
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=Exception("LLM Error"))
        monitor = MarketMonitor(settings, agent=agent)
        markets = [
            market_factory(id="big", yes_price=0.8),
            market_factory(id="medium", yes_price=0.62),
        ]

        result = await monitor.check(markets, {"big": 0.5, "medium": 0.5})

        assert result.reasoning == FALLBACK_REASONING
        assert [a.market_id for a in result.alerts] == ["big"]
        assert result.snapshot == {"big": 0.8, "medium": 0.62}

    async def test_thresholds_follow_settings(self, settings_factory, market_factory) -> None:
        settings = settings_factory(monitor_swing_threshold=0.05)
        evaluation = MonitorEvaluation(alerts=[AlertDecision(index=0, should_alert=True)])
        agent = _agent_returning(evaluation)
        monitor = MarketMonitor(settings, agent=agent)

        result = await monitor.check([market_factory(id="m1", yes_price=0.56)], {"m1": 0.5})

        assert len(result.alerts) == 1

    def test_agent_created_lazily(self, settings) -> None:
        monitor = MarketMonitor(settings)
        assert monitor._agent is None

        mock_agent = MagicMock()
        with patch(
            "polytimes.monitoring.monitor.create_monitor_agent", return_value=mock_agent
        ) as create:
            assert monitor.agent is mock_agent
            assert monitor.agent is mock_agent

        create.assert_called_once_with(settings)
