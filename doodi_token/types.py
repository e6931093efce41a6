"""
Data types shared by the token workflows
TokenRecord is the persisted state, ActionReceipt the audit record, the rest are transient
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from .amounts import to_ui_amount
from .errors import ValidationError


class TokenStatus(Enum):
    """Lifecycle status of the token"""
    ACTIVE = "active"
    COMPLETED = "completed"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# Keys handled explicitly by TokenRecord; anything else is carried in `extra`
_RECORD_KEYS = {
    "name", "symbol", "decimals", "mintAddress", "tokenAccount", "network",
    "mintAuthority", "freezeAuthority", "status", "createdAt", "revokedAt",
    "mintAuthorityRevokedAt", "revokeTransaction",
}


@dataclass
class TokenRecord:
    """Public state of the current token, as stored in doodi-token-info.json"""
    name: str
    symbol: str
    mint_address: str
    network: str
    decimals: int = 6
    token_account: Optional[str] = None
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None
    status: TokenStatus = TokenStatus.ACTIVE
    created_at: str = field(default_factory=utc_now_iso)
    revoked_at: Optional[str] = None
    revoke_transaction: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if (self.mint_authority is None) != (self.status is TokenStatus.COMPLETED):
            raise ValidationError(
                f"Inconsistent token record: mintAuthority={self.mint_authority!r} "
                f"but status={self.status.value!r}"
            )

    @property
    def is_finalized(self) -> bool:
        return self.mint_authority is None

    def mark_revoked(self, signature: Optional[str] = None) -> None:
        """Drop the mint authority and close the lifecycle"""
        self.mint_authority = None
        self.status = TokenStatus.COMPLETED
        self.revoked_at = utc_now_iso()
        if signature:
            self.revoke_transaction = signature

    def snapshot(self) -> Dict[str, Any]:
        """Short identity block embedded in receipts"""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "mintAddress": self.mint_address,
            "network": self.network,
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "mintAddress": self.mint_address,
            "tokenAccount": self.token_account,
            "network": self.network,
            "mintAuthority": self.mint_authority,
            "freezeAuthority": self.freeze_authority,
            "status": self.status.value,
            "createdAt": self.created_at,
        })
        if self.revoked_at:
            data["revokedAt"] = self.revoked_at
        if self.revoke_transaction:
            data["revokeTransaction"] = self.revoke_transaction
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenRecord":
        missing = [key for key in ("name", "symbol", "mintAddress", "network") if not data.get(key)]
        if missing:
            raise ValidationError(f"Token info is missing required fields: {', '.join(missing)}")

        mint_authority = data.get("mintAuthority") or None
        raw_status = data.get("status")
        if raw_status is None:
            status = TokenStatus.COMPLETED if mint_authority is None else TokenStatus.ACTIVE
        else:
            try:
                status = TokenStatus(raw_status)
            except ValueError:
                raise ValidationError(f"Unknown token status: {raw_status!r}")

        return cls(
            name=data["name"],
            symbol=data["symbol"],
            mint_address=data["mintAddress"],
            network=data["network"],
            decimals=int(data.get("decimals", 6)),
            token_account=data.get("tokenAccount"),
            mint_authority=mint_authority,
            freeze_authority=data.get("freezeAuthority"),
            status=status,
            created_at=data.get("createdAt") or utc_now_iso(),
            revoked_at=data.get("revokedAt") or data.get("mintAuthorityRevokedAt"),
            revoke_transaction=data.get("revokeTransaction"),
            extra={k: v for k, v in data.items() if k not in _RECORD_KEYS},
        )


@dataclass
class MintSnapshot:
    """On-chain mint state, amounts in base units"""
    address: str
    supply: int
    decimals: int
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None

    @property
    def supply_ui(self) -> Union[int, float]:
        return to_ui_amount(self.supply, self.decimals)


@dataclass
class TokenAccountSnapshot:
    """Associated token account of one owner for one mint"""
    address: str
    owner: str
    amount: int


@dataclass
class PendingAction:
    """An irreversible action waiting for operator confirmation"""
    description: str
    network: str
    amount: Optional[float] = None
    target_address: Optional[str] = None
    is_dry_run: bool = False


@dataclass(frozen=True)
class ActionReceipt:
    """
    Write-once audit record of a completed irreversible action

    Serialised as {timestamp, action, tokenInfo, <action>Details}; the ledger
    signature and the before/after values live inside the details block under
    `signature`, `<label>Before` and `<label>After`.
    """
    action: str
    token_snapshot: Dict[str, Any]
    action_details: Dict[str, Any]
    ledger_signature: str
    before_value: Any
    after_value: Any
    value_label: str = "supply"
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        details = dict(self.action_details)
        details["signature"] = self.ledger_signature
        details[f"{self.value_label}Before"] = self.before_value
        details[f"{self.value_label}After"] = self.after_value
        return {
            "timestamp": self.timestamp,
            "action": self.action,
            "tokenInfo": dict(self.token_snapshot),
            f"{self.action}Details": details,
        }
