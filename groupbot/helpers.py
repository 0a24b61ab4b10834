"""Small helpers: jittered sleeping and simple HTTP requests."""

from __future__ import annotations

import random
import time

import requests


def sleep_about_1s_to_2s() -> float:
    """Sleep for one second plus a random whole number of milliseconds below 1000.

    Returns the number of seconds slept.
    """
    seconds = 1 + random.randrange(1000) / 1000
    time.sleep(seconds)
    return seconds


def req_with(url: str, method: str, referer: str, ua: str) -> bytes:
    """Send a request with the given Referer and User-Agent and return the body."""
    headers = {"Referer": referer, "User-Agent": ua}
    with requests.request(method, url, headers=headers) as response:
        return response.content