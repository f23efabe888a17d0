"""
Input schemas

One pydantic model per operation. Routes hand the raw request body to
`parse_input`, which turns pydantic's error into a domain ValidationError
so the failure can be shown as a flash notice instead of a 422.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, Set, Type, TypeVar, Union

from pydantic import AfterValidator, AliasChoices, BaseModel, BeforeValidator, EmailStr, Field, RootModel
from pydantic import ValidationError as PydanticValidationError

from app.settings import PASSWORD_MIN_LENGTH
from domain.errors import ValidationError
from domain.models import Difficulty, Language

M = TypeVar("M", bound=BaseModel)


def parse_input(model_cls: Type[M], data: Any) -> M:
    """Validate `data` against `model_cls`, raising ValidationError with a readable message."""
    try:
        return model_cls.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        parts = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        raise ValidationError("; ".join(parts) or "Invalid input") from e


# ==================== Field types ====================

def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _none_to_empty(v):
    return "" if v is None else v


def _lower(v: str) -> str:
    return v.lower()


def _or_default(default):
    """Blank form values (and null) fall back to `default`."""
    def _validate(v):
        v = _blank_to_none(v)
        return default if v is None else v
    return BeforeValidator(_validate)


def _split_tags(v) -> List[str]:
    """Accept a list or a comma separated string; trim, drop empties, dedupe keeping order."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    seen = []
    for tag in v:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


Stripped = Annotated[str, BeforeValidator(_strip)]
# Whitespace-only counts as missing.
NonBlank = Annotated[str, BeforeValidator(_blank_to_none)]
Text = Annotated[str, BeforeValidator(_none_to_empty)]
Tags = Annotated[List[str], BeforeValidator(_split_tags)]
DifficultyOrDefault = Annotated[Difficulty, _or_default(Difficulty.MEDIUM)]
LanguageOrDefault = Annotated[Language, _or_default(Language.CPP)]
OptionalDifficulty = Annotated[Optional[Difficulty], BeforeValidator(_blank_to_none)]
OptionalLanguage = Annotated[Optional[Language], BeforeValidator(_blank_to_none)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(_lower)]


# ==================== Questions ====================

class QuestionCreate(BaseModel):
    chapter: Stripped = Field(..., min_length=1, max_length=200)
    title: Stripped = Field(..., min_length=1, max_length=255)
    code: NonBlank = Field(..., min_length=1)
    output: Text = ""
    difficulty: DifficultyOrDefault = Difficulty.MEDIUM
    language: LanguageOrDefault = Language.CPP
    explanation: Text = ""
    tags: Tags = Field(default_factory=list)
    file_name: OptionalText = None


class QuestionUpdate(BaseModel):
    """Partial update: only fields present (and not null) in the body are written."""
    chapter: Optional[Stripped] = Field(None, min_length=1, max_length=200)
    title: Optional[Stripped] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1)
    output: Optional[str] = None
    difficulty: OptionalDifficulty = None
    language: OptionalLanguage = None
    explanation: Optional[str] = None
    tags: Optional[Tags] = None
    file_name: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ImportItem(BaseModel):
    title: Stripped = Field(..., min_length=1, validation_alias=AliasChoices("title", "name"))
    code: NonBlank = Field(..., min_length=1)
    output: Text = ""
    difficulty: DifficultyOrDefault = Difficulty.MEDIUM
    language: LanguageOrDefault = Language.CPP
    explanation: Text = ""
    tags: Tags = Field(default_factory=list)


class ImportPayload(RootModel[Dict[str, List[ImportItem]]]):
    """Chapter name -> questions of that chapter."""


class DeleteSelectedForm(BaseModel):
    ids: Union[List[Union[int, str]], int, str, None] = None

    def id_set(self) -> Set[int]:
        raw = self.ids
        if raw is None:
            return set()
        if not isinstance(raw, list):
            raw = [raw]
        out: Set[int] = set()
        for item in raw:
            parts = item.split(",") if isinstance(item, str) else [item]
            for part in parts:
                parsed = parse_id(part)
                if parsed is not None:
                    out.add(parsed)
        return out


class DeleteAllForm(BaseModel):
    confirm: Optional[str] = None


def parse_id(raw: Any) -> Optional[int]:
    """Question ids are positive integers; anything else can never match a record."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if isinstance(raw, str) and raw.strip().isdigit():
        value = int(raw.strip())
        return value if value > 0 else None
    return None


# ==================== Admins ====================

class AdminCreate(BaseModel):
    full_name: Stripped = Field(..., min_length=1, max_length=150)
    email: Email
    username: Stripped = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class SignupForm(AdminCreate):
    secret_key: Optional[str] = None


class LoginForm(BaseModel):
    # Username or email.
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ForgotPasswordForm(BaseModel):
    email: Email


class ResetPasswordForm(BaseModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    confirm: str

    def passwords_match(self) -> bool:
        return self.password == self.confirm
