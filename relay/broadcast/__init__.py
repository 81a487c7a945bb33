"""
broadcast — fan a message out to many recipients.

Sub-modules:
    channels/   — delivery capabilities (Telegram, simulation)
    dispatcher  — concurrent fan-out with a sent/error tally
    service     — registry lookup + dispatch for "send to channel" and
                  "broadcast to all"
    models      — delivery report types
"""
