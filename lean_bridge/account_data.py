"""
Connector-side account values keyed ``"<CURRENCY>:<TAG>"``.

Two feeds write here: the periodic account summary (``set_summary_value``) and
streaming account updates applied as process-local overrides
(``set_account_value``). Readers only ever get a copy via
``get_account_summary_snapshot``; overrides are layered on top of the summary,
so the latest override for a key wins.
"""

from __future__ import annotations

from typing import Dict


def account_key(currency: str, tag: str) -> str:
    return f"{currency}:{tag}"


class AccountData:
    def __init__(self) -> None:
        self.account_properties: Dict[str, str] = {}
        self.account_overrides: Dict[str, str] = {}

    def set_summary_value(self, currency: str, tag: str, value: str) -> None:
        self.account_properties[account_key(currency, tag)] = value

    def set_account_value(self, currency: str, tag: str, value: str) -> None:
        self.account_overrides[account_key(currency, tag)] = value

    def clear(self) -> None:
        self.account_properties.clear()
        self.account_overrides.clear()

    def get_account_summary_snapshot(self) -> Dict[str, str]:
        """Return a merged copy; mutating it never touches the stored values."""
        snapshot = dict(self.account_properties)
        snapshot.update(self.account_overrides)
        return snapshot


__all__ = ["AccountData", "account_key"]
