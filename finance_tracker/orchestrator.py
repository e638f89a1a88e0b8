"""
Main Orchestrator for Finance Tracker

This module ties the components together and defines the flows the UI
drives:
1. Account (restore, sign up, sign in, reset, profile) via AuthService
2. Dashboard (load the actor's records, compute every figure)

DESIGN DECISION: The UI never reaches into storage directly. It asks the
auth service for the actor and hands that actor to the per-user stores,
so a signed-out UI cannot read or write anyone's finance data.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

import structlog

from finance_tracker.audit import AuditLogger, configure_logging
from finance_tracker.config import get_settings
from finance_tracker.models.auth import PublicUser
from finance_tracker.models.common import Clock, utc_now
from finance_tracker.models.report import Dashboard
from finance_tracker.reports import statistics
from finance_tracker.services.auth import AuthService, ResetCodeDelivery
from finance_tracker.services.finance import BudgetService, ExpenseStore, IncomeStore
from finance_tracker.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStoreInterface,
)

logger = structlog.get_logger()


class DashboardFlow:
    """
    Builds the dashboard for the signed-in user.

    Flow:
    1. Load the actor's expenses and incomes
    2. Load budget and savings figures
    3. Compute overview, budget status, savings progress and breakdowns
    """

    def __init__(
        self,
        expenses: ExpenseStore,
        incomes: IncomeStore,
        budget: BudgetService,
        trend_months: Optional[int] = None,
    ):
        self._expenses = expenses
        self._incomes = incomes
        self._budget = budget
        self._trend_months = trend_months or get_settings().app.trend_months

    async def build_dashboard(
        self,
        actor: PublicUser,
        today: Optional[date] = None,
    ) -> Dashboard:
        expenses = await self._expenses.list_records(actor)
        incomes = await self._incomes.list_records(actor)
        monthly_budget = await self._budget.get_monthly_budget(actor)
        savings = await self._budget.get_savings(actor)

        return Dashboard(
            overview=statistics.financial_overview(expenses, incomes, today=today),
            budget=statistics.budget_status(monthly_budget, expenses, today=today),
            savings=statistics.savings_progress(savings.current, savings.goal),
            expense_categories=statistics.category_breakdown(expenses),
            income_categories=statistics.category_breakdown(incomes),
            monthly_expenses=statistics.monthly_totals(
                expenses, months=self._trend_months, today=today
            ),
            expense_trend=statistics.recent_trend(expenses),
        )


@dataclass
class AppComponents:
    """Everything the UI needs. Audit events live in their own store."""

    store: KeyValueStoreInterface
    audit_store: KeyValueStoreInterface
    audit_logger: AuditLogger
    auth: AuthService
    expenses: ExpenseStore
    incomes: IncomeStore
    budget: BudgetService
    dashboard: DashboardFlow


def create_app_components(
    store: Optional[KeyValueStoreInterface] = None,
    use_file_storage: bool = True,
    clock: Clock = utc_now,
    delivery: Optional[ResetCodeDelivery] = None,
    persist_audit: bool = True,
    audit_store: Optional[KeyValueStoreInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Store for user and finance data. Built from settings when omitted.
        use_file_storage: With no store given, use the JSON file stores
                          (True) or throwaway in-memory ones (False).
        clock: Time source for sessions and reset codes.
        delivery: Where reset codes are sent. Logged by default.
        persist_audit: Also write audit events to the audit store.
        audit_store: Store for the audit trail. Never the data store; an
                     in-memory one is used when a data store is given
                     without it.
    """
    settings = get_settings()
    configure_logging(settings.app.debug_mode)

    file_backed = store is None and use_file_storage
    if store is None:
        store = (
            JsonFileKeyValueStore(settings.storage.data_path)
            if file_backed else InMemoryKeyValueStore()
        )
    if audit_store is None:
        audit_store = (
            JsonFileKeyValueStore(settings.storage.audit_path)
            if file_backed else InMemoryKeyValueStore()
        )
    if audit_store is store:
        raise ValueError("The audit trail needs a store of its own")

    audit_logger = AuditLogger(KeyValueAuditStorage(audit_store) if persist_audit else None)

    auth = AuthService(
        store,
        settings=settings.auth,
        delivery=delivery,
        audit_logger=audit_logger,
        clock=clock,
    )
    expenses = ExpenseStore(store, audit_logger=audit_logger)
    incomes = IncomeStore(store, audit_logger=audit_logger)
    budget = BudgetService(store, settings=settings.app, audit_logger=audit_logger)

    logger.info(
        "app_components_created",
        environment=settings.app.app_environment,
        store=type(store).__name__,
        audit_store=type(audit_store).__name__,
        persist_audit=persist_audit,
    )

    return AppComponents(
        store=store,
        audit_store=audit_store,
        audit_logger=audit_logger,
        auth=auth,
        expenses=expenses,
        incomes=incomes,
        budget=budget,
        dashboard=DashboardFlow(
            expenses, incomes, budget, trend_months=settings.app.trend_months
        ),
    )
