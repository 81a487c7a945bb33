"""
relay — channel subscriptions and broadcast fan-out for a Telegram bot.

Sub-packages:
    core           — config, logging, errors, database, health, auth
    subscriptions  — Subscription Registry (recipient ↔ channel mapping)
    broadcast      — Broadcast Dispatcher and delivery channels
    telegram       — Bot API client and the /subscribe command loop
    api            — FastAPI routes
"""

__version__ = "1.0.0"
