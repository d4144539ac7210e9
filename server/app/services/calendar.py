# server/app/services/calendar.py
from __future__ import annotations

import logging
import re

import requests

from server.app import USER_AGENT

log = logging.getLogger(__name__)


class CalendarError(RuntimeError):
    pass


def fetch_calendar(
    base_url: str,
    pass_param: str,
    value: str,
    *,
    timeout: float = 15.0,
) -> str:
    """GET base_url?<pass_param>=<value> and return the body text."""
    try:
        resp = requests.get(
            base_url,
            params={pass_param: value},
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        raise CalendarError(f"Failed to get base calendar: {e}") from e
    return resp.text


def filter_calendar(text: str, pattern: re.Pattern[str]) -> str:
    """Drop every match of ``pattern``; an empty pattern leaves text unchanged."""
    if not pattern.pattern:
        return text
    return pattern.sub("", text)
