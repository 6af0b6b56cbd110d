"""
Raffle Data Model
Submissions, win records, bans, validated players and the page configuration
"""

import copy
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import ROLLING_WINDOW_DAYS

FIELD_TYPES = ("text", "email", "number")
BAN_TYPES = ("email", "accountId")
BACKGROUND_TYPES = ("solid", "gradient", "image")


def parse_timestamp(value) -> datetime:
    """Accept datetimes or ISO strings (SQLite returns TIMESTAMP columns as text)"""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def format_timestamp(value: datetime) -> str:
    return value.isoformat(sep=" ")


@dataclass
class FormField:
    """One admin-configured form field"""
    id: str
    label: str
    placeholder: str = ""
    type: str = "text"
    required: bool = True
    enabled: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("field id cannot be empty")
        if self.type not in FIELD_TYPES:
            raise ValueError(f"field type must be one of {', '.join(FIELD_TYPES)}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "placeholder": self.placeholder,
            "type": self.type,
            "required": self.required,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormField":
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("each field needs an id")
        return cls(
            id=data["id"],
            label=data.get("label", data["id"]),
            placeholder=data.get("placeholder", ""),
            type=data.get("type", "text"),
            required=bool(data.get("required", True)),
            enabled=bool(data.get("enabled", True)),
        )


def default_fields() -> List[FormField]:
    return [
        FormField("fullName", "Nome Completo", "Digite seu nome completo", "text"),
        FormField("email", "Email", "Digite seu email", "email"),
        FormField("accountId", "ID da Conta", "Digite o ID da sua conta", "text"),
    ]


# Python attribute name -> key in the stored JSON blob
_CONFIG_KEYS = {
    "hero_title": "heroTitle",
    "hero_subtitle": "heroSubtitle",
    "form_title": "formTitle",
    "cta_button_text": "ctaButtonText",
    "cta_button_link": "ctaButtonLink",
    "background_type": "backgroundType",
    "background_color": "backgroundColor",
    "gradient_from": "gradientFrom",
    "gradient_to": "gradientTo",
    "gradient_direction": "gradientDirection",
    "background_image": "backgroundImage",
    "fields": "fields",
    "max_daily_wins": "maxDailyWins",
    "max_weekly_wins": "maxWeeklyWins",
    "max_monthly_wins": "maxMonthlyWins",
    "rules_enabled": "rulesEnabled",
    "rules_text": "rulesText",
    "tip_values_enabled": "tipValuesEnabled",
    "tip_values": "tipValues",
    "weekly_tip_budget": "weeklyTipBudget",
    "email_notification_enabled": "emailNotificationEnabled",
    "email_from_name": "emailFromName",
    "email_subject": "emailSubject",
    "email_body": "emailBody",
    "postback_validation_enabled": "postbackValidationEnabled",
    "access_password_enabled": "accessPasswordEnabled",
    "access_password": "accessPassword",
    "tips_disabled": "tipsDisabled",
    "tips_disabled_message": "tipsDisabledMessage",
    "tips_disabled_cta_text": "tipsDisabledCtaText",
    "tips_disabled_cta_link": "tipsDisabledCtaLink",
    "account_id_field": "accountIdField",
    "email_field": "emailField",
    "rolling_window_enabled": "rollingWindowEnabled",
    "rolling_window_days": "rollingWindowDays",
}

# Never sent to unauthenticated visitors
PRIVATE_CONFIG_KEYS = ("accessPassword", "emailFromName", "emailSubject", "emailBody", "weeklyTipBudget")


def _as_number(kind, key, value):
    try:
        return kind(value)
    except TypeError:
        raise ValueError(f"{key} must be a number") from None


@dataclass
class PageConfig:
    """
    The single settings object of a deployment

    Cosmetic texts, form fields, win caps, rules, tip values, and feature
    toggles. Passed explicitly into every eligibility and draw call.
    """
    hero_title: str = "💰 Gorjetas"
    hero_subtitle: str = "Cadastre-se e concorra a gorjetas incríveis!"
    form_title: str = "Preencha seus dados"
    cta_button_text: str = "🎰 Cadastre-se na Casa de Apostas"
    cta_button_link: str = "https://example.com"
    background_type: str = "gradient"
    background_color: str = "#0f172a"
    gradient_from: str = "#0f172a"
    gradient_to: str = "#064e3b"
    gradient_direction: str = "135"
    background_image: str = ""
    fields: List[FormField] = field(default_factory=default_fields)

    max_daily_wins: int = 5
    max_weekly_wins: int = 20
    max_monthly_wins: int = 50

    rules_enabled: bool = False
    rules_text: str = ""

    tip_values_enabled: bool = False
    tip_values: List[str] = field(default_factory=list)
    weekly_tip_budget: float = 0.0

    email_notification_enabled: bool = False
    email_from_name: str = "Gorjetas"
    email_subject: str = "🎉 Parabéns! Você foi sorteado!"
    email_body: str = (
        "Olá {{fullName}},\n\n"
        "Você foi sorteado em {{date}}!\n"
        "Valor da gorjeta: {{tipValue}}\n\n"
        "Boa sorte!"
    )

    postback_validation_enabled: bool = False

    access_password_enabled: bool = False
    access_password: str = ""

    tips_disabled: bool = False
    tips_disabled_message: str = "As gorjetas estão encerradas no momento."
    tips_disabled_cta_text: str = "Cadastre-se na Casa de Apostas"
    tips_disabled_cta_link: str = ""

    account_id_field: str = "accountId"
    email_field: str = "email"

    rolling_window_enabled: bool = True
    rolling_window_days: int = ROLLING_WINDOW_DAYS

    def __post_init__(self):
        if self.background_type not in BACKGROUND_TYPES:
            raise ValueError(f"background_type must be one of {', '.join(BACKGROUND_TYPES)}")
        for name in ("max_daily_wins", "max_weekly_wins", "max_monthly_wins"):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.weekly_tip_budget < 0:
            raise ValueError("weekly_tip_budget cannot be negative")
        if self.rolling_window_days <= 0:
            raise ValueError("rolling_window_days must be positive")
        ids = [f.id for f in self.fields]
        if len(ids) != len(set(ids)):
            raise ValueError("field ids must be unique")

    @property
    def enabled_fields(self) -> List[FormField]:
        return [f for f in self.fields if f.enabled]

    @property
    def field_ids(self) -> List[str]:
        return [f.id for f in self.fields]

    def copy(self) -> "PageConfig":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        blob = {}
        for attr, key in _CONFIG_KEYS.items():
            value = getattr(self, attr)
            if attr == "fields":
                value = [f.to_dict() for f in value]
            elif isinstance(value, list):
                value = list(value)
            blob[key] = value
        return blob

    def to_public_dict(self) -> Dict[str, Any]:
        blob = self.to_dict()
        for key in PRIVATE_CONFIG_KEYS:
            blob.pop(key, None)
        return blob

    @classmethod
    def from_dict(cls, blob: Optional[Dict[str, Any]]) -> "PageConfig":
        """Build a config from a stored blob, defaults filling any missing key"""
        return cls().merged(blob or {})

    def merged(self, updates: Dict[str, Any]) -> "PageConfig":
        """
        Return a new config with `updates` applied

        Accepts both blob keys (maxDailyWins) and attribute names
        (max_daily_wins); unknown keys are ignored.
        """
        by_key = {key: attr for attr, key in _CONFIG_KEYS.items()}
        known = {f.name for f in dataclass_fields(self)}
        values = {f.name: copy.deepcopy(getattr(self, f.name)) for f in dataclass_fields(self)}

        for key, value in updates.items():
            attr = by_key.get(key, key)
            if attr not in known:
                continue
            if attr in ("fields", "tip_values") and not isinstance(value, list):
                raise ValueError(f"{_CONFIG_KEYS[attr]} must be a list")
            if attr == "fields":
                value = [v if isinstance(v, FormField) else FormField.from_dict(v) for v in value]
            elif attr in ("max_daily_wins", "max_weekly_wins", "max_monthly_wins", "rolling_window_days"):
                value = _as_number(int, key, value)
            elif attr == "weekly_tip_budget":
                value = _as_number(float, key, value or 0)
            elif attr == "tip_values":
                value = [str(v) for v in value]
            values[attr] = value

        return PageConfig(**values)


@dataclass
class Submission:
    """A participant's registration"""
    id: str
    data: Dict[str, str]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "data": dict(self.data),
            "created_at": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Submission":
        return cls(
            id=data["id"],
            data=dict(data.get("data") or {}),
            created_at=parse_timestamp(data["created_at"]),
        )

    @property
    def timestamp(self) -> datetime:
        return self.created_at


@dataclass
class WinRecord:
    """
    One draw outcome

    `submission_data` is a snapshot taken at draw time and never changes;
    `tip_value` is attached once, after the draw.
    """
    id: str
    submission_id: str
    submission_data: Dict[str, str]
    drawn_at: datetime
    tip_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "submission_id": self.submission_id,
            "submission_data": dict(self.submission_data),
            "drawn_at": format_timestamp(self.drawn_at),
            "tip_value": self.tip_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WinRecord":
        return cls(
            id=data["id"],
            submission_id=data["submission_id"],
            submission_data=dict(data.get("submission_data") or {}),
            drawn_at=parse_timestamp(data["drawn_at"]),
            tip_value=data.get("tip_value"),
        )

    @property
    def timestamp(self) -> datetime:
        return self.drawn_at


@dataclass
class BannedEntry:
    id: str
    type: str
    value: str
    reason: str
    created_at: datetime

    def __post_init__(self):
        if self.type not in BAN_TYPES:
            raise ValueError(f"ban type must be one of {', '.join(BAN_TYPES)}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "value": self.value,
            "reason": self.reason,
            "created_at": format_timestamp(self.created_at),
        }

    @property
    def timestamp(self) -> datetime:
        return self.created_at


@dataclass
class ValidatedPlayer:
    """An account id confirmed by the platform's registration postback"""
    player_id: str
    currency: Optional[str] = None
    registration_date: Optional[str] = None
    type: Optional[str] = None
    validated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "currency": self.currency,
            "registration_date": self.registration_date,
            "type": self.type,
            "validated_at": format_timestamp(self.validated_at) if self.validated_at else None,
        }


@dataclass
class DrawResult:
    """Outcome of a random draw: winners and their win records, in draw order"""
    winners: List[Submission] = field(default_factory=list)
    wins: List[WinRecord] = field(default_factory=list)
    notifications: List[Any] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.wins)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winners": [s.to_dict() for s in self.winners],
            "wins": [w.to_dict() for w in self.wins],
            "count": self.count,
        }
