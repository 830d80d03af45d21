from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class RedemptionMethod(Enum):
    """How the recipient redeems value"""
    VENDOR_MOBILE_MONEY = "vendor_mobile_money"
    VENDOR_ID = "vendor_id"


class CardType(Enum):
    """Gift card products"""
    DASHGO = "dashgo"
    DASHPRO = "dashpro"
    DASHX = "dashx"
    DASHPASS = "dashpass"

    @property
    def label(self) -> str:
        """Product name as the redemption API expects it"""
        return CARD_TYPE_LABELS[self]

    @property
    def requires_card(self) -> bool:
        """DashX and DashPass redeem a concrete card, the others an amount"""
        return self in (CardType.DASHX, CardType.DASHPASS)

    @classmethod
    def parse(cls, value: Any) -> Optional["CardType"]:
        """Case-insensitive lookup, None for unknown values"""
        if isinstance(value, CardType):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
        for card_type in cls:
            if card_type.value == normalized:
                return card_type
        return None


CARD_TYPE_LABELS = {
    CardType.DASHGO: "DashGo",
    CardType.DASHPRO: "DashPro",
    CardType.DASHX: "DashX",
    CardType.DASHPASS: "DashPass",
}


class SessionStep(Enum):
    """Redemption session steps"""
    METHOD = "method"
    DETAILS = "details"
    SUCCESS = "success"
    RATING = "rating"


class AmountStatus(Enum):
    """Amount entry feedback"""
    EMPTY = "empty"
    INVALID = "invalid"
    INSUFFICIENT = "insufficient"
    VALID = "valid"


@dataclass(frozen=True)
class Branch:
    """Vendor branch"""
    branch_id: int
    branch_name: str = ""
    branch_location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Branch":
        return cls(
            branch_id=data["branch_id"],
            branch_name=data.get("branch_name") or "",
            branch_location=data.get("branch_location")
        )


@dataclass(frozen=True)
class VendorCard:
    """Normalized card record

    card_type is always lower-cased so it compares against CardType values.
    """
    card_id: int
    card_name: str = ""
    card_type: str = ""
    card_price: float = 0.0
    currency: str = "GHS"
    status: str = ""
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    branch_location: Optional[str] = None
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    recipient_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VendorCard":
        return cls(**{key: data.get(key) for key in cls.__dataclass_fields__ if key in data})


@dataclass(frozen=True)
class Vendor:
    """Vendor selected for redemption

    raw keeps the vendor payload as returned by the platform so branches and
    cards can be derived again after the session is reloaded.
    """
    vendor_id: int
    vendor_name: str = ""
    country: Optional[str] = None
    gvid: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vendor":
        return cls(
            vendor_id=data["vendor_id"],
            vendor_name=data.get("vendor_name") or "",
            country=data.get("country"),
            gvid=data.get("gvid"),
            raw=data.get("raw") or {}
        )


@dataclass(frozen=True)
class BalanceState:
    """Resolved balance for the current selection

    0 is a real balance, None means unknown.
    """
    balance: Optional[float] = None
    dash_go_balance: Optional[float] = None
    loading: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BalanceState":
        return cls(**data) if data else cls()


@dataclass(frozen=True)
class RedemptionPayload:
    """Body of the cards redemption call"""
    card_type: str
    phone_number: str
    amount: float
    branch_id: int
    card_id: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PendingInput:
    """Debounced input waiting for its idle window to pass"""
    value: str
    at: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PendingInput"]:
        return cls(value=data["value"], at=data["at"]) if data else None


@dataclass(frozen=True)
class SourceEntry:
    """Last response of one balance source for one parameter set"""
    key: str
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    loading: bool = False

    @property
    def loaded(self) -> bool:
        return not self.loading and self.error is None and self.data is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceEntry":
        return cls(**data)
