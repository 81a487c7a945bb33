"""
telegram — Bot API integration.

Sub-modules:
    client    — async sendMessage client used by broadcast delivery
    commands  — /subscribe and /unsubscribe replies
    bot       — python-telegram-bot Application running the commands
"""
