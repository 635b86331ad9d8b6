"""Live query subscriptions over Supabase Realtime."""

from app.features.realtime.live_query import LiveQuery
from app.features.realtime.subscriptions import SubscriptionFactory

__all__ = ["LiveQuery", "SubscriptionFactory"]
