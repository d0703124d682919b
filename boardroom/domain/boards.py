"""Boards: sub-groups of an organization that own polls."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from .errors import ValidationError
from .users import utcnow


class BoardErrors:
    NOT_FOUND = "board.errors.notFound"
    CANNOT_ARCHIVE_GENERAL = "board.errors.cannotArchiveGeneral"
    USER_NOT_ORG_MEMBER = "board.errors.userNotOrgMember"
    ALREADY_MEMBER = "board.errors.alreadyMember"
    BOARD_ARCHIVED = "board.errors.boardArchived"
    NOT_MEMBER = "board.errors.notMember"
    NAME_EMPTY = "domain.board.boardNameEmpty"
    NAME_TOO_LONG = "domain.board.boardNameTooLong"
    ALREADY_ARCHIVED = "domain.board.boardAlreadyArchived"


BOARD_NAME_MAX_LENGTH = 255


@dataclass
class Board:
    id: UUID
    name: str
    organization_id: UUID
    is_general: bool = False
    created_at: datetime = field(default_factory=utcnow)
    archived_at: datetime | None = None

    @classmethod
    def create(cls, name: str, organization_id: UUID, is_general: bool = False) -> "Board":
        if not name or not name.strip():
            raise ValidationError(
                "Board name is required",
                BoardErrors.NAME_EMPTY,
                field_errors={"name": "Name is required"},
            )
        if len(name.strip()) > BOARD_NAME_MAX_LENGTH:
            raise ValidationError(
                "Board name is too long",
                BoardErrors.NAME_TOO_LONG,
                field_errors={"name": "Name is too long"},
            )
        return cls(
            id=uuid4(),
            name=name.strip(),
            organization_id=organization_id,
            is_general=is_general,
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def archive(self) -> None:
        if self.is_general:
            raise ValidationError(
                "The general board cannot be archived", BoardErrors.CANNOT_ARCHIVE_GENERAL
            )
        if self.is_archived:
            raise ValidationError("Board is already archived", BoardErrors.ALREADY_ARCHIVED)
        self.archived_at = utcnow()
