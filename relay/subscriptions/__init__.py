"""
subscriptions — durable (recipient, channel) mapping.

Sub-modules:
    models      — ORM table, Subscription value type, result enums
    validation  — channel-name and message-length rules
    registry    — SubscriptionRegistry: subscribe / unsubscribe / queries
"""
