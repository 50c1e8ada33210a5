"""Inbound email gateway: sender policy, attachment inspection, auto-reply and forwarding."""
