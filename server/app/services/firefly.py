# server/app/services/firefly.py
"""Firefly III transaction shortcuts.

Shortcuts are predefined withdrawals (name, source, destination, optional
amount/budget/category) loaded once at startup. Adding a transaction resolves
the budget name to its Firefly id, then posts a single-split withdrawal.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from server.app import USER_AGENT
from server.app.errors import ConfigError
from server.app.models import Shortcut

log = logging.getLogger(__name__)


class ShortcutError(ValueError):
    """Request can't be turned into a transaction (caller's fault)."""


class FireflyError(RuntimeError):
    """Firefly API unreachable, erroring, or returned unusable data."""


def load_shortcuts(path: str | Path) -> List[Shortcut]:
    """Read shortcuts from a JSON list; ids are list positions."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        shortcuts = [Shortcut.model_validate(item) for item in raw]
    except (OSError, ValueError, TypeError, ValidationError) as e:
        raise ConfigError(f"Failed to load firefly shortcuts from {path}: {e}") from e
    for i, shortcut in enumerate(shortcuts):
        shortcut.shortcut_id = i
    return shortcuts


def read_pat(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8").rstrip()
    except OSError as e:
        raise ConfigError(f"read firefly PAT from file: {path}: {e}") from e


def find_shortcut(shortcuts: List[Shortcut], shortcut_id: int) -> Shortcut:
    for shortcut in shortcuts:
        if shortcut.shortcut_id == shortcut_id:
            return shortcut
    raise ShortcutError(f"Invalid shortcut ID {shortcut_id}")


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def make_store_transaction_request(
    shortcut: Shortcut,
    amount_override: Optional[float],
    budget_id: Optional[str],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    amount = amount_override if amount_override is not None else shortcut.amount
    if amount is None:
        raise ShortcutError(
            "Must have at least one of shortcut.amount or amount_override"
        )

    # 2018-09-17T12:46:47+01:00
    date = (now or datetime.now()).astimezone().isoformat(timespec="seconds")

    return {
        "error_if_duplicate_hash": True,
        "apply_rules": True,
        "fire_webhooks": True,
        "transactions": [
            {
                "type": "withdrawal",
                "date": date,
                "amount": _format_amount(amount),
                "description": shortcut.name,
                "budget_id": budget_id,
                "category_name": shortcut.category,
                "source_name": shortcut.source,
                "destination_name": shortcut.destination,
            }
        ],
    }


class FireflyClient:
    def __init__(self, base_url: str, pat: str, timeout: float = 15.0) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {pat}",
            "accept": "application/vnd.api+json",
            "User-Agent": USER_AGENT,
        }

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}api{endpoint}"

    def resolve_budget(self, budget_name: Optional[str]) -> Optional[str]:
        if budget_name is None:
            return None
        try:
            resp = requests.get(
                self._url("/v1/budgets"), headers=self._headers, timeout=self.timeout
            )
            resp.raise_for_status()
            budgets = resp.json().get("data", [])
        except (requests.RequestException, ValueError) as e:
            raise FireflyError(f"fetching budgets: {e}") from e

        for budget in budgets:
            if budget.get("attributes", {}).get("name") == budget_name:
                return str(budget["id"])
        raise FireflyError(f"Could not find budget with name {budget_name}")

    def store_transaction(self, body: Dict[str, Any]) -> str:
        try:
            resp = requests.post(
                self._url("/v1/transactions"),
                json=body,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise FireflyError(f"Failed to send store transaction request: {e}") from e

        if resp.status_code >= 400:
            log.error("Got API error %s, response: %s", resp.status_code, resp.text)
            raise FireflyError(f"Firefly returned {resp.status_code}")
        return resp.text

    def add_transaction(
        self, shortcut: Shortcut, amount_override: Optional[float] = None
    ) -> str:
        # validate amounts before any network round-trip
        make_store_transaction_request(shortcut, amount_override, None)
        budget_id = self.resolve_budget(shortcut.budget)
        body = make_store_transaction_request(shortcut, amount_override, budget_id)
        return self.store_transaction(body)
