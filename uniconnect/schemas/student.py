from datetime import datetime
from typing import Annotated, Optional

from pydantic import Field, StringConstraints, computed_field, field_validator

from uniconnect.core import avatars
from uniconnect.models.student import StudentStatus, Track
from uniconnect.schemas.base import CamelModel, NormalizedEmail


NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=120)]
BioStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
LinkStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
ShortStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]

MAX_SKILLS = 30

SkillList = Annotated[
    list[Annotated[str, StringConstraints(max_length=60)]],
    Field(max_length=MAX_SKILLS),
]


def clean_skills(skills: list[str]) -> list[str]:
    """Trim, drop blanks and drop case-insensitive duplicates, keeping the first spelling."""
    seen: set[str] = set()
    out: list[str] = []
    for raw in skills:
        s = (raw or "").strip()
        if not s or s.lower() in seen:
            continue
        seen.add(s.lower())
        out.append(s)
    return out


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# ─────────────────────────────────────────────────────────────
# REQUEST BODIES
# ─────────────────────────────────────────────────────────────
class _ProfileFields(CamelModel):
    """Fields a student owns. Every field is optional so this doubles as a patch body."""
    full_name: Optional[NameStr] = None
    track: Optional[Track] = None
    skills: Optional[SkillList] = None
    bio: Optional[BioStr] = None

    linked_in: Optional[LinkStr] = None
    github: Optional[LinkStr] = None
    portfolio: Optional[LinkStr] = None
    telegram: Optional[ShortStr] = None

    avatar: Optional[ShortStr] = None
    preferences: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]] = None

    @field_validator("linked_in", "github", "portfolio", "telegram", "avatar", "preferences", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("avatar")
    @classmethod
    def _known_avatar(cls, v):
        if v is not None and v not in avatars.AVATAR_SEEDS:
            raise ValueError("avatar must be one of the offered avatar seeds")
        return v

    @field_validator("skills")
    @classmethod
    def _skills(cls, v):
        return clean_skills(v) if v is not None else v


class StudentCreate(_ProfileFields):
    email: NormalizedEmail
    full_name: NameStr
    track: Track
    skills: SkillList = Field(default_factory=list)
    bio: BioStr

    model_config = {
        "json_schema_extra": {
            "example": {
                "fullName": "Sara Ahmed",
                "email": "sara@example.com",
                "track": "AI & Data",
                "skills": ["Python", "PyTorch"],
                "bio": "Looking for a team working on medical imaging.",
                "linkedIn": "https://linkedin.com/in/sara",
                "telegram": "@sara",
                "avatar": "young-female-1",
            }
        }
    }


class StudentSelfUpdate(_ProfileFields):
    """
    Allow-list for OTP self-service edits.
    status, createdAt, featured, special and email are not fields here,
    so they are dropped if a client sends them.
    """


class StudentAdminUpdate(_ProfileFields):
    """Allow-list for admin edits: profile fields plus moderation fields."""
    email: Optional[NormalizedEmail] = None
    status: Optional[StudentStatus] = None
    featured: Optional[bool] = None
    special: Optional[bool] = None


class StudentSelfEditRequest(StudentSelfUpdate):
    email: Optional[str] = None
    code: Optional[str] = None

    def updates(self) -> StudentSelfUpdate:
        data = self.model_dump(exclude_unset=True, exclude={"email", "code"})
        return StudentSelfUpdate.model_validate(data)


# ─────────────────────────────────────────────────────────────
# RESPONSE BODIES
# ─────────────────────────────────────────────────────────────
class StudentPublicOut(CamelModel):
    """Public card. Email is never part of this shape."""
    id: int
    full_name: str
    track: str
    skills: list[str]
    bio: str

    linked_in: Optional[str] = None
    github: Optional[str] = None
    portfolio: Optional[str] = None
    telegram: Optional[str] = None
    avatar: Optional[str] = None

    featured: bool = False
    special: bool = False
    status: str
    created_at: datetime

    @computed_field(alias="avatarUrl")
    @property
    def avatar_url(self) -> Optional[str]:
        return avatars.avatar_url(self.avatar)


class StudentOut(StudentPublicOut):
    """Full record, used by admin routes and single-student lookups."""
    email: str
    preferences: Optional[str] = None
    updated_at: datetime


class StudentCreated(CamelModel):
    id: int


class StudentDeleted(CamelModel):
    success: bool = True


class StudentEditResult(CamelModel):
    success: bool = True
    message: str = "Your profile has been updated successfully"
    student: StudentOut


class StatusCounts(CamelModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    hidden: int = 0


class TrackCounts(StatusCounts):
    track: str


class StudentStats(CamelModel):
    overall: StatusCounts
    tracks: list[TrackCounts]
