"""
Analysis pipeline tests.

Covers:
1. End-to-end analysis from raw reports to ranked insights
2. Degraded inputs produce errors in the result, never exceptions
3. Fetch-then-analyze through the orchestrator, with partial fetch failures
4. Scenarios and JSON serialization of the result
"""

from datetime import date

from ledgerlens.insights import InsightsService
from ledgerlens.insights.schemas import ScenarioModifiers
from ledgerlens.integrations.reports import ReportDataOrchestrator

from report_factory import FakeReportFetcher, balance_sheet_report, monthly_pnl

AS_OF = date(2024, 6, 30)


def _pnl(months=6):
    return monthly_pnl(
        [10000 + 1000 * i for i in range(months)],
        expense_lines={"Rent": [3000] * months, "Payroll": [5000] * months},
    )


class TestAnalyze:
    def test_full_analysis(self):
        analysis = InsightsService.analyze(
            profit_and_loss=_pnl(),
            balance_sheet=balance_sheet_report(),
            open_invoices=[{"balance": 900, "due_date": "2024-04-01"}],
            open_bills=[{"balance": 400, "due_date": "2024-06-20"}],
            prior_balance_sheet=balance_sheet_report(cash=4000, as_of=date(2024, 5, 31)),
            today=AS_OF,
        )

        assert analysis.errors == []
        assert [p.label for p in analysis.periods][-1] == "Jun 2024"
        assert analysis.metrics.current_income == 15000
        assert analysis.metrics.cash_balance == 5000
        assert analysis.metrics.cash_change_percentage == 25
        assert analysis.aging.ar.days_61_90 == 900
        assert analysis.aging.ap.current == 400
        assert analysis.runway == -1
        assert len(analysis.forecast) == 12
        assert analysis.forecast[0].label == "Jul 2024"
        assert [c.name for c in analysis.top_expense_categories] == ["Payroll", "Rent"]

        titles = [insight.title for insight in analysis.insights]
        assert "Cash Flow Positive" in titles
        priorities = [insight.priority for insight in analysis.insights]
        assert priorities == sorted(priorities, reverse=True)

    def test_empty_reports_degrade(self):
        analysis = InsightsService.analyze({}, {})

        assert analysis.periods == []
        assert analysis.forecast == []
        assert analysis.metrics.current_income == 0
        assert analysis.errors == ["No P&L periods could be parsed"]

    def test_short_history_cannot_forecast(self):
        analysis = InsightsService.analyze(_pnl(months=2), balance_sheet_report(), today=AS_OF)

        assert len(analysis.periods) == 2
        assert analysis.forecast == []
        assert analysis.errors == ["Not enough complete periods to forecast cash flow"]

    def test_unbalanced_balance_sheet_is_reported(self, caplog):
        analysis = InsightsService.analyze(_pnl(), balance_sheet_report(equity=1), today=AS_OF)

        assert analysis.balance_sheet.equity.total == 1
        assert any("does not balance" in error for error in analysis.errors)
        assert caplog.text.count("might be unbalanced") == 1

    def test_upstream_errors_are_carried(self):
        analysis = InsightsService.analyze(_pnl(), balance_sheet_report(), today=AS_OF, errors=["Open bills: down"])
        assert analysis.errors == ["Open bills: down"]

    def test_scenario_reaches_forecast(self):
        analysis = InsightsService.analyze(
            _pnl(),
            balance_sheet_report(),
            today=AS_OF,
            scenario=ScenarioModifiers(revenue_multiplier=0),
            forecast_months=3,
        )

        assert [p.projected_income for p in analysis.forecast] == [0, 0, 0]
        assert "Forecast Shows Declining Cash Balance" not in [i.title for i in analysis.insights]

    def test_serializes_to_json(self):
        analysis = InsightsService.analyze(
            _pnl(),
            balance_sheet_report(),
            open_invoices=[{"balance": 100, "due_date": "2024-06-25"}],
            today=AS_OF,
        )

        payload = analysis.model_dump(mode="json", by_alias=True)

        assert payload["aging"]["ar"]["0-30"] == 100
        assert payload["balance_sheet"]["report_date"] == "2024-06-30"
        assert all(isinstance(insight["type"], str) for insight in payload["insights"])


class TestRun:
    async def test_fetch_then_analyze(self, fake_fetcher):
        analysis = await InsightsService.run(ReportDataOrchestrator(fake_fetcher), as_of=AS_OF)

        assert analysis.errors == []
        assert len(analysis.periods) == 6
        # Invoice due 2024-06-01 is 29 days old on the as-of date
        assert analysis.aging.ar.current == 1200
        assert analysis.aging.ap.current == 400
        assert [(c.name, c.revenue) for c in analysis.top_customers] == [
            ("Globex", 4000.0),
            ("Acme Corp", 3000.0),
        ]

    async def test_partial_fetch_failure(self):
        fetcher = FakeReportFetcher(failing=("open_invoices",))

        analysis = await InsightsService.run(ReportDataOrchestrator(fetcher), as_of=AS_OF, industry="Software (SaaS)")

        assert analysis.errors == ["Open invoices: open_invoices unavailable"]
        assert analysis.aging.ar.total == 0
        assert len(analysis.forecast) == 12
