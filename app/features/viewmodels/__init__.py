"""Render-ready list state over repositories and live queries."""

from app.features.viewmodels.hooks import (
    ListState,
    LiveListHook,
    OneShotListHook,
    use_communications,
    use_contacts,
    use_expenses,
    use_quotes,
    use_tasks,
)

__all__ = [
    "ListState",
    "LiveListHook",
    "OneShotListHook",
    "use_communications",
    "use_contacts",
    "use_expenses",
    "use_quotes",
    "use_tasks",
]
