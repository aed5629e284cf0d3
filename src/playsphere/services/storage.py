"""Persistence gateway over the relational store.

All reads and writes for users, messages, groups, games and ideas go through
:class:`Storage`, which wraps one SQLAlchemy session. HTTP endpoints and the
realtime relay share it so the two surfaces apply the same rules.
"""

from __future__ import annotations

import logging
import math
from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy import and_, delete, desc, exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from playsphere.core.security import hash_password, verify_password
from playsphere.db.time import utcnow
from playsphere.models import Game, Group, GroupMember, Idea, IdeaVote, Message, User
from playsphere.models.message import detect_content_type
from playsphere.services.errors import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
)

__all__ = ["IdeaView", "Storage"]

logger = logging.getLogger(__name__)

DELETED_GAME_NAME = "Deleted Game"
DELETED_USER_NAME = "Deleted User"

# Activity windows reported on the admin dashboard.
ACTIVE_WINDOWS: dict[str, timedelta] = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "quarterly": timedelta(days=90),
}

# Profile columns a user may change about themselves.
_UPDATABLE_PROFILE_FIELDS = frozenset(
    {"profile_picture", "language", "region", "current_game", "current_game_id"}
)


@dataclass(frozen=True)
class IdeaView:
    """An idea joined with its game, creator and the viewer's vote."""

    idea: Idea
    game_name: str
    game_contact: str | None
    creator_username: str
    has_voted: bool


class Storage:
    """Thin gateway around a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        """Bind the gateway to a session owned by the caller."""
        self.db = db

    def rollback(self) -> None:
        """Discard any pending changes after a failed operation."""
        self.db.rollback()

    # ------------------------------------------------------------------ users

    def get_user(self, user_id: int) -> User | None:
        """Return a user by id."""
        return self.db.get(User, user_id)

    def require_user(self, user_id: int) -> User:
        """Return a user by id or raise :class:`NotFoundError`."""
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_user_by_username(self, username: str) -> User | None:
        """Return a user by exact username."""
        return self.db.scalars(select(User).where(User.username == username)).first()

    def list_active_users(self) -> list[User]:
        """Return every user, most recently active first."""
        return list(self.db.scalars(select(User).order_by(desc(User.last_active), User.id)))

    def create_user(
        self,
        *,
        username: str,
        password: str,
        language: str,
        region: str,
        current_game: str,
        current_game_id: str,
        games_played: Iterable[str] = (),
        profile_picture: str | None = None,
        is_admin: bool = False,
    ) -> User:
        """Create a user with a bcrypt-hashed password.

        Raises:
            ConflictError: if the username is taken.
        """
        if self.get_user_by_username(username) is not None:
            raise ConflictError("Username already exists")

        user = User(
            username=username,
            password_hash=hash_password(password),
            language=language,
            region=region,
            current_game=current_game,
            current_game_id=current_game_id,
            games_played=_unique(games_played),
            profile_picture=profile_picture,
            is_admin=is_admin,
            last_active=utcnow(),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Username already exists") from exc
        self.db.refresh(user)
        logger.info("Created user %s (%s)", user.id, user.username)
        return user

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the user when the credentials match, otherwise None."""
        user = self.get_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        user.touch()
        self.db.commit()
        return user

    def update_user(self, user_id: int, updates: Mapping[str, Any]) -> User:
        """Apply a partial profile update.

        ``games_played`` is merged with the stored list (duplicates dropped);
        username and password are never changed here. The last-active
        timestamp is refreshed.
        """
        user = self.require_user(user_id)
        for field, value in updates.items():
            if field == "games_played":
                if value:
                    user.games_played = _unique([*user.games_played, *value])
            elif field in _UPDATABLE_PROFILE_FIELDS:
                setattr(user, field, value)
        user.touch()
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """Replace a password after checking the current one.

        Raises:
            PermissionDeniedError: if ``old_password`` does not match.
        """
        user = self.require_user(user_id)
        if not verify_password(old_password, user.password_hash):
            raise PermissionDeniedError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        self.db.commit()

    def touch_user(self, user_id: int) -> None:
        """Refresh a user's last-active timestamp if the user exists."""
        user = self.get_user(user_id)
        if user is None:
            return
        user.touch()
        self.db.commit()

    def set_admin(self, username: str, is_admin: bool = True) -> User:
        """Grant or revoke the admin flag by username."""
        user = self.get_user_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        user.is_admin = is_admin
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int) -> None:
        """Delete a user together with everything that references them.

        Order: the user's direct messages (sent or received), then every group
        they own with its messages and memberships, then their remaining
        memberships, their votes and ideas, and finally the user row.
        """
        self.require_user(user_id)
        try:
            self.db.execute(
                delete(Message).where(
                    or_(Message.from_user_id == user_id, Message.to_user_id == user_id)
                )
            )

            owned_group_ids = list(
                self.db.scalars(select(Group.id).where(Group.owner_id == user_id))
            )
            if owned_group_ids:
                self.db.execute(delete(Message).where(Message.group_id.in_(owned_group_ids)))
                self.db.execute(
                    delete(GroupMember).where(GroupMember.group_id.in_(owned_group_ids))
                )
                self.db.execute(delete(Group).where(Group.id.in_(owned_group_ids)))

            self.db.execute(delete(GroupMember).where(GroupMember.user_id == user_id))

            voted_idea_ids = list(
                self.db.scalars(select(IdeaVote.idea_id).where(IdeaVote.user_id == user_id))
            )
            if voted_idea_ids:
                self.db.execute(
                    update(Idea)
                    .where(Idea.id.in_(voted_idea_ids))
                    .values(votes=Idea.votes - 1)
                )
                self.db.execute(delete(IdeaVote).where(IdeaVote.user_id == user_id))

            owned_idea_ids = select(Idea.id).where(Idea.user_id == user_id)
            self.db.execute(delete(IdeaVote).where(IdeaVote.idea_id.in_(owned_idea_ids)))
            self.db.execute(delete(Idea).where(Idea.user_id == user_id))

            self.db.execute(delete(User).where(User.id == user_id))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete user %s", user_id)
            raise
        self.db.expire_all()
        logger.info("User %s and all related data deleted", user_id)

    # --------------------------------------------------------------- messages

    def create_direct_message(self, from_user_id: int, to_user_id: int, content: str) -> Message:
        """Persist a direct message; the content tag is derived from the body.

        Raises:
            NotFoundError: if the recipient does not exist.
        """
        if self.get_user(to_user_id) is None:
            raise NotFoundError("Recipient not found")
        return self._create_message(
            from_user_id=from_user_id, to_user_id=to_user_id, group_id=None, content=content
        )

    def create_group_message(self, from_user_id: int, group_id: int, content: str) -> Message:
        """Persist a group message; membership is checked by the caller."""
        return self._create_message(
            from_user_id=from_user_id, to_user_id=None, group_id=group_id, content=content
        )

    def _create_message(
        self,
        *,
        from_user_id: int,
        to_user_id: int | None,
        group_id: int | None,
        content: str,
    ) -> Message:
        if (to_user_id is None) == (group_id is None):
            raise ValueError("Exactly one of to_user_id and group_id must be set")
        message = Message(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            group_id=group_id,
            content=content,
            timestamp=utcnow(),
            is_read=False,
            read_at=None,
            type=detect_content_type(content),
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def get_message(self, message_id: int) -> Message | None:
        """Return a message by id."""
        return self.db.get(Message, message_id)

    def get_conversation(self, user_a: int, user_b: int) -> list[Message]:
        """Return the direct messages between two users in both directions, oldest first."""
        stmt = (
            select(Message)
            .where(
                or_(
                    and_(Message.from_user_id == user_a, Message.to_user_id == user_b),
                    and_(Message.from_user_id == user_b, Message.to_user_id == user_a),
                )
            )
            .order_by(Message.timestamp, Message.id)
        )
        return list(self.db.scalars(stmt))

    def get_group_messages(self, group_id: int) -> list[Message]:
        """Return a group's messages, oldest first."""
        stmt = (
            select(Message)
            .where(Message.group_id == group_id)
            .order_by(Message.timestamp, Message.id)
        )
        return list(self.db.scalars(stmt))

    def mark_message_read(self, message_id: int, reader_id: int) -> Message:
        """Set the read flag on a direct message addressed to ``reader_id``.

        Marking an already read message keeps its original ``read_at``.
        """
        message = self.get_message(message_id)
        if message is None or message.to_user_id != reader_id:
            raise NotFoundError("Message not found")
        if not message.is_read:
            message.is_read = True
            message.read_at = utcnow()
            self.db.commit()
            self.db.refresh(message)
        return message

    def delete_message(self, message_id: int, requester_id: int) -> None:
        """Delete a message; only its sender may do so."""
        message = self.get_message(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message.from_user_id != requester_id:
            raise PermissionDeniedError("Only the sender can delete this message")
        self.db.delete(message)
        self.db.commit()

    # ----------------------------------------------------------------- groups

    def create_group(self, name: str, owner_id: int) -> Group:
        """Create a group and add its owner as the first member."""
        self.require_user(owner_id)
        group = Group(name=name, owner_id=owner_id, created_at=utcnow(), admin_ids=[])
        self.db.add(group)
        self.db.flush()
        self.db.add(GroupMember(group_id=group.id, user_id=owner_id, joined_at=utcnow()))
        self.db.commit()
        self.db.refresh(group)
        logger.info("User %s created group %s", owner_id, group.id)
        return group

    def get_group(self, group_id: int) -> Group | None:
        """Return a group by id."""
        return self.db.get(Group, group_id)

    def require_group(self, group_id: int) -> Group:
        """Return a group by id or raise :class:`NotFoundError`."""
        group = self.get_group(group_id)
        if group is None:
            raise NotFoundError("Group not found")
        return group

    def get_user_groups(self, user_id: int) -> list[Group]:
        """Return every group the user belongs to."""
        stmt = (
            select(Group)
            .join(GroupMember, GroupMember.group_id == Group.id)
            .where(GroupMember.user_id == user_id)
            .order_by(Group.id)
        )
        return list(self.db.scalars(stmt))

    def is_group_member(self, group_id: int, user_id: int) -> bool:
        """Return True when ``user_id`` has a membership row in ``group_id``."""
        stmt = select(
            exists().where(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        )
        return bool(self.db.scalar(stmt))

    def is_group_owner(self, group_id: int, user_id: int) -> bool:
        """Return True when ``user_id`` currently owns ``group_id``."""
        stmt = select(exists().where(Group.id == group_id, Group.owner_id == user_id))
        return bool(self.db.scalar(stmt))

    def get_group_members(self, group_id: int) -> list[User]:
        """Return the current members of a group in join order.

        Always a fresh read; callers rely on membership changes taking effect
        on the very next call.
        """
        stmt = (
            select(User)
            .join(GroupMember, GroupMember.user_id == User.id)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, GroupMember.id)
        )
        return list(self.db.scalars(stmt))

    def get_group_member_ids(self, group_id: int) -> list[int]:
        """Return member user ids in join order."""
        stmt = (
            select(GroupMember.user_id)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, GroupMember.id)
        )
        return list(self.db.scalars(stmt))

    def add_group_member(self, group_id: int, user_id: int, acting_user_id: int) -> None:
        """Add a member; only the owner may do so. Adding an existing member is a no-op."""
        self.require_group(group_id)
        if not self.is_group_owner(group_id, acting_user_id):
            raise PermissionDeniedError("Only the group owner can add members")
        self.require_user(user_id)
        if self.is_group_member(group_id, user_id):
            return
        self.db.add(GroupMember(group_id=group_id, user_id=user_id, joined_at=utcnow()))
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent add won the race; membership exists either way.
            self.db.rollback()

    def remove_group_member(self, group_id: int, member_id: int, acting_user_id: int) -> None:
        """Remove a member, or let a member leave.

        The owner may remove anyone but themselves; any member may remove
        themselves. The owner must transfer ownership before leaving.
        """
        self.require_group(group_id)
        is_owner = self.is_group_owner(group_id, acting_user_id)
        if not is_owner and member_id != acting_user_id:
            raise PermissionDeniedError("You don't have permission to remove this member")
        if not self.is_group_member(group_id, member_id):
            raise NotFoundError("User is not a member of this group")
        if self.is_group_owner(group_id, member_id):
            raise InvalidOperationError(
                "The group owner cannot be removed; transfer ownership first"
            )
        self.db.execute(
            delete(GroupMember).where(
                GroupMember.group_id == group_id, GroupMember.user_id == member_id
            )
        )
        self.db.commit()

    def transfer_group_ownership(
        self, group_id: int, current_owner_id: int, new_owner_id: int
    ) -> Group:
        """Hand a group to another existing member."""
        group = self.require_group(group_id)
        if group.owner_id != current_owner_id:
            raise PermissionDeniedError("Only the group owner can transfer ownership")
        if not self.is_group_member(group_id, new_owner_id):
            raise InvalidOperationError("The new owner must already be a member of the group")
        group.owner_id = new_owner_id
        self.db.commit()
        self.db.refresh(group)
        logger.info("Group %s ownership moved from %s to %s", group_id, current_owner_id, new_owner_id)
        return group

    def delete_group(self, group_id: int, acting_user_id: int) -> None:
        """Delete a group with its memberships and messages; owner only."""
        self.require_group(group_id)
        if not self.is_group_owner(group_id, acting_user_id):
            raise PermissionDeniedError("You don't have permission to delete this group")
        try:
            self.db.execute(delete(GroupMember).where(GroupMember.group_id == group_id))
            self.db.execute(delete(Message).where(Message.group_id == group_id))
            self.db.execute(delete(Group).where(Group.id == group_id))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.expire_all()

    # ------------------------------------------------------------------ games

    def list_games(self) -> list[Game]:
        """Return the whole catalog ordered by name."""
        return list(self.db.scalars(select(Game).order_by(Game.name)))

    def get_game(self, game_id: int) -> Game | None:
        """Return a game by id."""
        return self.db.get(Game, game_id)

    def get_games_by_category(self, categories: Iterable[str]) -> list[Game]:
        """Return games tagged with at least one of ``categories``.

        JSON containment differs per database, so matching happens in Python.
        """
        wanted = {category.strip() for category in categories if category.strip()}
        return [
            game for game in self.list_games() if wanted.intersection(game.categories or [])
        ]

    def create_game(
        self,
        *,
        name: str,
        categories: Iterable[str] = (),
        platforms: Iterable[str] = (),
        contact: str | None = None,
        downloads: int | None = None,
    ) -> Game:
        """Add a game to the catalog.

        Raises:
            ConflictError: if a game with the same name exists.
        """
        if self.db.scalars(select(Game).where(Game.name == name)).first() is not None:
            raise ConflictError("Game already exists")
        game = Game(
            name=name,
            categories=list(categories),
            platforms=list(platforms),
            contact=contact,
            downloads=downloads,
        )
        self.db.add(game)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Game already exists") from exc
        self.db.refresh(game)
        return game

    def delete_game(self, game_id: int) -> None:
        """Delete a game and the ideas filed against it."""
        if self.get_game(game_id) is None:
            raise NotFoundError("Game not found")
        idea_ids = select(Idea.id).where(Idea.game_id == game_id)
        self.db.execute(delete(IdeaVote).where(IdeaVote.idea_id.in_(idea_ids)))
        self.db.execute(delete(Idea).where(Idea.game_id == game_id))
        self.db.execute(delete(Game).where(Game.id == game_id))
        self.db.commit()
        self.db.expire_all()

    def replace_games(self, entries: Iterable[Mapping[str, Any]], batch_size: int = 100) -> int:
        """Replace the catalog with ``entries`` (dicts of Game columns).

        Returns the number of games inserted.
        """
        rows = list(entries)
        self.db.execute(delete(Game))
        for start in range(0, len(rows), batch_size):
            self.db.add_all(Game(**row) for row in rows[start : start + batch_size])
            self.db.flush()
            logger.info(
                "Imported games %d to %d", start + 1, min(start + batch_size, len(rows))
            )
        self.db.commit()
        return len(rows)

    # ------------------------------------------------------------------ ideas

    def _idea_views(self, stmt: Any, viewer_id: int) -> list[IdeaView]:
        has_voted = (
            select(IdeaVote.id)
            .where(IdeaVote.idea_id == Idea.id, IdeaVote.user_id == viewer_id)
            .exists()
        )
        full = (
            stmt.add_columns(Game.name, Game.contact, User.username, has_voted)
            .outerjoin(Game, Game.id == Idea.game_id)
            .outerjoin(User, User.id == Idea.user_id)
        )
        return [
            IdeaView(
                idea=idea,
                game_name=game_name or DELETED_GAME_NAME,
                game_contact=game_contact,
                creator_username=username or DELETED_USER_NAME,
                has_voted=bool(voted),
            )
            for idea, game_name, game_contact, username, voted in self.db.execute(full)
        ]

    def list_ideas(self, viewer_id: int, page: int, limit: int) -> tuple[list[IdeaView], int]:
        """Return one page of ideas (most votes, then newest) and the total count."""
        offset = (page - 1) * limit
        stmt = (
            select(Idea)
            .order_by(desc(Idea.votes), desc(Idea.created_at), desc(Idea.id))
            .limit(limit)
            .offset(offset)
        )
        total = self.db.scalar(select(func.count()).select_from(Idea)) or 0
        return self._idea_views(stmt, viewer_id), int(total)

    def get_idea_view(self, idea_id: int, viewer_id: int) -> IdeaView:
        """Return a single idea as seen by ``viewer_id``."""
        views = self._idea_views(select(Idea).where(Idea.id == idea_id), viewer_id)
        if not views:
            raise NotFoundError("Idea not found")
        return views[0]

    def create_idea(self, *, game_id: int, user_id: int, title: str, description: str) -> IdeaView:
        """Submit an idea for an existing game."""
        if self.get_game(game_id) is None:
            raise NotFoundError("Game not found")
        idea = Idea(
            game_id=game_id,
            user_id=user_id,
            title=title,
            description=description,
            votes=0,
            created_at=utcnow(),
        )
        self.db.add(idea)
        self.db.commit()
        return self.get_idea_view(idea.id, user_id)

    def toggle_idea_vote(self, idea_id: int, user_id: int) -> IdeaView:
        """Add the user's vote, or remove it if present, in one transaction."""
        if self.db.get(Idea, idea_id) is None:
            raise NotFoundError("Idea not found")
        try:
            existing = self.db.scalars(
                select(IdeaVote).where(IdeaVote.idea_id == idea_id, IdeaVote.user_id == user_id)
            ).first()
            if existing is not None:
                self.db.delete(existing)
                delta = -1
            else:
                self.db.add(IdeaVote(idea_id=idea_id, user_id=user_id, created_at=utcnow()))
                delta = 1
            self.db.execute(
                update(Idea).where(Idea.id == idea_id).values(votes=Idea.votes + delta)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Vote toggle failed for idea %s by user %s", idea_id, user_id)
            raise
        self.db.expire_all()
        logger.debug("User %s %s idea %s", user_id, "voted" if delta > 0 else "unvoted", idea_id)
        return self.get_idea_view(idea_id, user_id)

    def delete_idea(self, idea_id: int) -> None:
        """Delete an idea and its votes."""
        if self.db.get(Idea, idea_id) is None:
            raise NotFoundError("Idea not found")
        self.db.execute(delete(IdeaVote).where(IdeaVote.idea_id == idea_id))
        self.db.execute(delete(Idea).where(Idea.id == idea_id))
        self.db.commit()
        self.db.expire_all()

    # ------------------------------------------------------------- statistics

    def user_stats_by_region_and_language(self) -> dict[str, Any]:
        """Count users per region and per language."""
        rows = self.db.execute(select(User.region, User.language)).all()
        by_region: Counter[str] = Counter(region for region, _ in rows if region)
        by_language: Counter[str] = Counter(language for _, language in rows if language)
        return {
            "total": len(rows),
            "byRegion": dict(by_region),
            "byLanguage": dict(by_language),
        }

    def active_user_counts(self) -> dict[str, int]:
        """Count users active within each dashboard window."""
        now = utcnow()
        counts: dict[str, int] = {}
        for label, window in ACTIVE_WINDOWS.items():
            stmt = select(func.count()).select_from(User).where(User.last_active >= now - window)
            counts[label] = int(self.db.scalar(stmt) or 0)
        return counts

    def games_played_by_region(self) -> dict[str, dict[str, int]]:
        """Map each region to how many of its users list each game."""
        by_region: dict[str, dict[str, int]] = defaultdict(dict)
        for region, games in self.db.execute(select(User.region, User.games_played)):
            if not region:
                continue
            counts = by_region[region]
            for game in games or []:
                if isinstance(game, str):
                    counts[game] = counts.get(game, 0) + 1
        return dict(by_region)


def _unique(values: Iterable[str]) -> list[str]:
    """Return ``values`` without duplicates, preserving first occurrence order."""
    return list(dict.fromkeys(values))


def total_pages(total: int, limit: int) -> int:
    """Return how many pages of ``limit`` items hold ``total`` items."""
    return math.ceil(total / limit) if limit else 0
