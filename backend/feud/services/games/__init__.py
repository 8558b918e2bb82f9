"""Game domain services: answer judging, answer checks and room upkeep.

This package contains the asynchronous pieces that socket handlers and HTTP
routes hand work to, keeping transport concerns separated from the room
state machine in :mod:`feud.models`.
"""
