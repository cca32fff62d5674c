"""Member manager for registration and location resolution."""

import logging
from typing import Optional, Union

from ..db.schemas import Member, MemberCreate, OperationResult
from ..errors import ConflictError, TransientStoreError, ValidationError
from ..store import LibraryStore, get_store, normalize_name

logger = logging.getLogger(__name__)


def last_name_initial(last_name: str) -> str:
    """Derive the display initial, e.g. "Short" -> "S."."""
    return last_name[:1].upper() + "."


class MemberManager:
    """Manages member registration and lookups."""

    def __init__(self, store: Optional[LibraryStore] = None):
        """Initialize member manager.

        Args:
            store: Backing store
        """
        self.store = store or get_store()

    def list_members(self) -> list[Member]:
        """List all registered members."""
        return self.store.list_members()

    def find_by_name(self, first_name: str) -> Optional[Member]:
        """Find a member by first name, ignoring case."""
        target = normalize_name(first_name)
        if not target:
            return None
        for member in self.store.list_members():
            if normalize_name(member.first_name) == target:
                return member
        return None

    def find_card_number(self, first_name: str) -> Optional[int]:
        """Resolve a location name to a library card number."""
        member = self.find_by_name(first_name)
        return member.library_card_number if member else None

    def location_choices(self) -> list[str]:
        """Valid location names for pickers.

        Uses the inventory's location constraint, falling back to the
        members' first names when no constraint is configured.
        """
        choices = self.store.location_choices()
        if choices:
            return choices
        return [member.first_name for member in self.store.list_members()]

    def register(self, data: Union[MemberCreate, dict]) -> OperationResult:
        """Register a new member.

        Args:
            data: First and last name (required), city and neighborhood

        Returns:
            Result whose value is the created Member

        Raises:
            ValidationError: If first or last name is blank
            ConflictError: If the first name is already registered
            ConfigurationError: If the inventory table is missing
        """
        if isinstance(data, dict):
            data = MemberCreate.model_validate(data)

        if not data.first_name:
            raise ValidationError("First name is required")
        if not data.last_name:
            raise ValidationError("Last name is required")

        # Names are checked across every row, even ones without a valid card
        taken = {normalize_name(name) for name in self.store.member_names()}
        if normalize_name(data.first_name) in taken:
            raise ConflictError(f'"{data.first_name}" is already registered')

        existing = self.store.list_members()

        next_card = max((m.library_card_number for m in existing), default=0) + 1

        member = Member(
            first_name=data.first_name,
            last_name=data.last_name,
            last_name_initial=last_name_initial(data.last_name),
            city=data.city,
            neighborhood=data.neighborhood,
            library_card_number=next_card,
        )
        self.store.insert_member(member)
        logger.info(
            "Registered member %s %s (card #%s)",
            member.first_name,
            member.last_name_initial,
            member.library_card_number,
        )

        result = OperationResult(value=member)

        # A missing inventory table raises ConfigurationError and is fatal
        try:
            self.store.refresh_location_choices()
        except TransientStoreError as e:
            logger.error("Error updating location validation: %s", e)
            result.warn(f"Location list not updated: {e}")

        try:
            self.store.ensure_journal(member.library_card_number)
        except TransientStoreError as e:
            logger.error("Error creating reading journal for card %s: %s", next_card, e)
            result.warn(f"Reading journal not created: {e}")

        return result
