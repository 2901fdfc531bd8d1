"""Domain layer for bookkeeper application."""

# Services are imported lazily: the database layer imports domain.entities,
# and the services import the database layer.
_SERVICES = {
    "AccountService": "bookkeeper.domain.account",
    "ClosingService": "bookkeeper.domain.closing",
    "ClosingWorkflow": "bookkeeper.domain.closing",
    "DocumentService": "bookkeeper.domain.documents",
    "PeriodService": "bookkeeper.domain.period",
    "ReportService": "bookkeeper.domain.reports",
    "SettingsService": "bookkeeper.domain.settings",
    "StatusService": "bookkeeper.domain.status",
    "TransactionService": "bookkeeper.domain.transaction",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
