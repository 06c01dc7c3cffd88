"""Reminder module (API, repository, dispatcher, scheduler).

Reminders are created and toggled through the HTTP API. A periodic scheduler
running inside the web process scans for due reminders, pushes them to the
owner's live websocket channel and pushes their next due time forward.
"""
