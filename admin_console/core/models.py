"""Modèles Pydantic pour l'API et le moteur de navigation."""
from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from admin_console.core.icons import FALLBACK_ICON, normalize_icon_ref

_ROLE_NAMES: dict[str, tuple[str, ...]] = {
    "admin": ("ADMIN", "ROLE_ADMIN"),
    "user": ("ROLE_USER", "USER"),
}

# Noms de champs acceptés en entrée (wire, cache historique) vers le nom Python.
NAVIGATION_FIELD_ALIASES: dict[str, str] = {
    "iconRef": "icon_ref",
    "iconName": "icon_ref",
    "isVisible": "is_visible",
    "requiredRoles": "required_roles",
    "roles": "required_roles",
}


def role_names(role: str) -> tuple[str, ...]:
    """Traduit le rôle stocké en base vers les noms de rôles exposés au client."""

    return _ROLE_NAMES.get(role, (role.upper(),))


def _normalize_roles(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    roles: list[str] = []
    for role in value:
        normalized = str(role).strip()
        if normalized and normalized not in roles:
            roles.append(normalized)
    return roles


def _collect_ids(items: Iterable["NavigationItem"]) -> set[str]:
    ids: set[str] = set()
    for item in items:
        ids.add(item.id)
        ids.update(_collect_ids(item.children))
    return ids


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    sub: str
    exp: int
    type: str | None = None


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    role: str = Field(..., pattern=r"^(admin|user)$")


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class User(UserBase):
    id: int
    is_active: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def roles(self) -> list[str]:
        return list(role_names(self.role))


class LoginRequest(BaseModel):
    username: str
    password: str
    remember_me: bool = False


class RefreshRequest(BaseModel):
    refresh_token: str


class NavigationItem(BaseModel):
    """Entrée de navigation faisant autorité en mémoire.

    ``icon_ref`` est toujours un nom symbolique résolu via la table d'icônes ;
    un nom inconnu est remplacé par l'icône de repli. ``required_roles`` est
    un filtre de capacité, ``is_visible`` une préférence utilisateur.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1, max_length=64)
    name: str = ""
    path: str = ""
    icon_ref: str = Field(
        FALLBACK_ICON,
        alias="iconRef",
        validation_alias=AliasChoices("iconRef", "iconName", "icon_ref"),
    )
    badge: str = ""
    required_roles: list[str] = Field(
        default_factory=list,
        alias="requiredRoles",
        validation_alias=AliasChoices("requiredRoles", "roles", "required_roles"),
    )
    is_visible: bool = Field(
        True,
        alias="isVisible",
        validation_alias=AliasChoices("isVisible", "is_visible"),
    )
    order: int = 0
    children: list[NavigationItem] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _strip_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name", "path", "badge", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("icon_ref", mode="before")
    @classmethod
    def _normalize_icon(cls, value: Any) -> str:
        return normalize_icon_ref(value)

    @field_validator("required_roles", mode="before")
    @classmethod
    def _coerce_roles(cls, value: Any) -> list[str]:
        return _normalize_roles(value)

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("children", mode="before")
    @classmethod
    def _coerce_children(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("children")
    @classmethod
    def _sort_children(cls, value: list[NavigationItem]) -> list[NavigationItem]:
        seen: set[str] = set()
        for child in value:
            if child.id in seen:
                raise ValueError(f"Identifiant d'entrée enfant dupliqué: {child.id}")
            seen.add(child.id)
        return sorted(value, key=lambda child: child.order)

    @model_validator(mode="after")
    def _reject_cycles(self) -> NavigationItem:
        if self.id in _collect_ids(self.children):
            raise ValueError(f"L'entrée {self.id} ne peut pas être sa propre descendante")
        return self

    def to_storage(self) -> dict[str, Any]:
        """Forme sérialisée stockée dans le cache local."""

        return self.model_dump(by_alias=True)


class PreferenceRecord(BaseModel):
    """Projection partielle d'une entrée échangée avec le stockage distant."""

    model_config = ConfigDict(populate_by_name=True)

    menu_id: str = Field(
        ...,
        alias="menuId",
        validation_alias=AliasChoices("menuId", "id", "menu_id"),
        min_length=1,
        max_length=64,
    )
    visible: bool = Field(True, validation_alias=AliasChoices("visible", "isVisible"))
    order: int = 0
    name: Optional[str] = None
    path: Optional[str] = None
    icon_ref: Optional[str] = Field(
        None,
        alias="iconRef",
        validation_alias=AliasChoices("iconRef", "iconName", "icon_ref"),
    )
    badge: Optional[str] = None

    @field_validator("menu_id", mode="before")
    @classmethod
    def _strip_menu_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, value: Any) -> Any:
        return 0 if value is None else value

    @classmethod
    def from_item(cls, item: NavigationItem) -> PreferenceRecord:
        return cls(
            menu_id=item.id,
            visible=item.is_visible,
            order=item.order,
            name=item.name,
            path=item.path,
            icon_ref=item.icon_ref,
            badge=item.badge,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MenuPreferenceRequest(BaseModel):
    preferences: list[PreferenceRecord] = Field(default_factory=list)


class MenuPreferenceResponse(BaseModel):
    preferences: list[PreferenceRecord] = Field(default_factory=list)
