from __future__ import annotations
from dataclasses import replace
from typing import Optional

from cashplan.config import DEFAULT_HORIZON, DEFAULT_SCENARIO_NAME, HORIZON_CHOICES
from cashplan.logging_setup import get_logger
from cashplan.logic import current_month, parse_month, project, summarize_projection
from cashplan.models import MonthData
from cashplan.store import TransactionStore, new_id


logger = get_logger("cashplan.scenarios")


class Scenario:
    """One branch of a plan: starting parameters plus its own transactions."""

    def __init__(
            self,
            name: str,
            starting_balance: float = 0.0,
            starting_month: Optional[str] = None,
            horizon_months: int = DEFAULT_HORIZON,
            store: Optional[TransactionStore] = None,
            id: Optional[str] = None,
    ):
        self.id = id or new_id()
        self.name = name
        self.starting_balance = starting_balance
        self.starting_month = starting_month or current_month()
        self.horizon_months = horizon_months
        self.store = store if store is not None else TransactionStore()
        self._cache_key = None
        self._cache_value: list[MonthData] = []

    @property
    def starting_month(self) -> str:
        return self._starting_month

    @starting_month.setter
    def starting_month(self, value: str):
        parse_month(value)
        self._starting_month = value

    @property
    def horizon_months(self) -> int:
        return self._horizon_months

    @horizon_months.setter
    def horizon_months(self, value: int):
        if value not in HORIZON_CHOICES:
            raise ValueError(f"Horizon must be one of {', '.join(map(str, HORIZON_CHOICES))} months")
        self._horizon_months = value

    def projection(self) -> list[MonthData]:
        transactions = tuple(self.store.transactions)
        key = (self.starting_balance, self.starting_month, self.horizon_months, transactions)
        if key != self._cache_key:
            self._cache_value = project(self.starting_balance, self.starting_month, transactions, self.horizon_months)
            self._cache_key = key
        # rows are mutable; callers get their own copies
        return [
            replace(row, category_totals=dict(row.category_totals), transactions=list(row.transactions))
            for row in self._cache_value
        ]

    def summary(self) -> Optional[dict]:
        return summarize_projection(self.projection())

    def __repr__(self):
        return f"Scenario(id={self.id!r}, name={self.name!r}, transactions={len(self.store)})"


class Planification:
    """Named container of scenarios with one of them selected as current."""

    def __init__(self, name: str, scenarios: Optional[list[Scenario]] = None):
        self.name = name
        self._scenarios: dict[str, Scenario] = {}
        for scenario in scenarios or [Scenario(DEFAULT_SCENARIO_NAME)]:
            self._scenarios[scenario.id] = scenario
        self.current_scenario_id = next(iter(self._scenarios))

    @property
    def scenarios(self) -> list[Scenario]:
        return list(self._scenarios.values())

    @property
    def current(self) -> Scenario:
        return self._scenarios[self.current_scenario_id]

    def get(self, scenario_id: str) -> Optional[Scenario]:
        return self._scenarios.get(scenario_id)

    def add_scenario(self, name: str, copy_from: Optional[str] = None) -> Scenario:
        """Create a scenario, optionally branching off an existing one.

        A branch copies the source's starting parameters and transactions
        (ids included) but starts with empty undo/redo history.
        """
        source = self._scenarios.get(copy_from) if copy_from else None
        if copy_from and source is None:
            raise ValueError(f"Unknown scenario: {copy_from}")

        if source is None:
            scenario = Scenario(name)
        else:
            scenario = Scenario(
                name,
                starting_balance=source.starting_balance,
                starting_month=source.starting_month,
                horizon_months=source.horizon_months,
                store=TransactionStore(source.store.transactions, history_limit=source.store.history_limit),
            )

        self._scenarios[scenario.id] = scenario
        logger.info("Added scenario %r (%s)%s", name, scenario.id,
                    f" from {source.name!r}" if source else "")
        return scenario

    def delete_scenario(self, scenario_id: str) -> bool:
        if scenario_id not in self._scenarios or len(self._scenarios) == 1:
            return False

        del self._scenarios[scenario_id]
        if self.current_scenario_id == scenario_id:
            self.current_scenario_id = next(iter(self._scenarios))
        logger.info("Deleted scenario %s", scenario_id)
        return True

    def set_current(self, scenario_id: str) -> bool:
        if scenario_id not in self._scenarios:
            return False
        self.current_scenario_id = scenario_id
        return True
