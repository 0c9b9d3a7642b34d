"""Inbound GitHub webhooks.

Each delivery is signature-verified, classified, and turned into a deferred
job when its action has a registered handler.
"""
