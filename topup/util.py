"""Small helpers: order identifiers and fire-and-forget POST requests."""

from __future__ import annotations

import time
import uuid

import requests


def generate_order_id() -> int:
    """Current time in microseconds plus a random 32-bit value."""
    now_us = time.time_ns() // 1000
    unique = int.from_bytes(uuid.uuid4().bytes[:4], "big")
    return now_us + unique


def send_post_request(url: str, payload: bytes | str) -> None:
    """POST a JSON payload and ignore the outcome."""
    try:
        requests.post(url, data=payload, headers={"Content-Type": "application/json"})
    except requests.RequestException:
        pass