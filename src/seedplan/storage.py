"""SQLite storage layer for seedplan.

Holds the tournament record that a structural plan is merged into. The
configuration column is shared with other subsystems, so every write of the
structure goes through the codec's merge.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from seedplan import codec
from seedplan.models import FormatKind, StructuralPlan

logger = logging.getLogger(__name__)

Base = declarative_base()

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"


class StorageError(Exception):
    """Base class for storage failures."""

    pass


class TournamentNotFoundError(StorageError):
    """No tournament with the requested id."""

    pass


class StaleVersionError(StorageError):
    """The record changed since the caller read it."""

    pass


class TournamentLockedError(StorageError):
    """The tournament is published; its structure can no longer change."""

    pass


# ============================================================================
# ORM Models
# ============================================================================


class TournamentORM(Base):
    """Tournament table.

    ``format`` is the coarse database format (fast is stored as
    groups_playoffs); the exact kind lives in the configuration record.
    """

    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    format = Column(String(30), nullable=True)
    max_teams = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_DRAFT)  # draft, published
    rules_text = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def config(self) -> dict:
        """Parsed configuration record ({} when empty or malformed)."""
        return codec.parse_config(self.rules_text)

    @property
    def is_published(self) -> bool:
        return self.status == STATUS_PUBLISHED


def storage_format(kind: FormatKind) -> str:
    """Database format value for a format kind."""
    if kind is FormatKind.FAST:
        return FormatKind.GROUPS_PLAYOFFS.value
    return kind.value


class DatabaseManager:
    """Manages SQLite database connection and session."""

    def __init__(self, db_path: Union[str, Path] = ".seedplan/seedplan.sqlite"):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # NullPool keeps SQLite connections from being shared across threads
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(bind=self.engine)

    def create_tables(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self):
        """Drop all tables (use with caution!)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()


# ============================================================================
# Repository
# ============================================================================


class TournamentRepository:
    """Repository for tournament records and their configuration."""

    def __init__(self, session):
        self.session = session

    def create(self, name: str, rules_text: Optional[str] = None) -> TournamentORM:
        """Create a new draft tournament."""
        tournament = TournamentORM(
            name=name,
            status=STATUS_DRAFT,
            rules_text=rules_text,
            version=1,
        )
        self.session.add(tournament)
        self.session.commit()
        logger.info("Created tournament %s (%s)", tournament.id, name)
        return tournament

    def get_all(self) -> list[TournamentORM]:
        """Get all tournaments, newest first."""
        return self.session.query(TournamentORM).order_by(
            TournamentORM.created_at.desc(), TournamentORM.id.desc()
        ).all()

    def get_by_id(self, tournament_id: int) -> Optional[TournamentORM]:
        """Get tournament by ID."""
        return self.session.query(TournamentORM).filter(
            TournamentORM.id == tournament_id
        ).first()

    def require(self, tournament_id: int) -> TournamentORM:
        tournament = self.get_by_id(tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    def get_config(self, tournament_id: int) -> dict:
        """Parsed configuration record of a tournament."""
        return self.require(tournament_id).config

    def get_plan(self, tournament_id: int, rules=None) -> Optional[StructuralPlan]:
        """Structural plan stored for a tournament, if it validates."""
        return codec.extract_plan(self.require(tournament_id).rules_text, rules)

    def _write(self, tournament: TournamentORM, values: dict[str, Any], expected_version: Optional[int]) -> TournamentORM:
        """Compare-and-swap update on the version column."""
        version = tournament.version if expected_version is None else expected_version
        values = dict(values, version=version + 1, updated_at=datetime.utcnow())

        updated = self.session.query(TournamentORM).filter(
            TournamentORM.id == tournament.id,
            TournamentORM.version == version,
        ).update(values, synchronize_session=False)

        if updated == 0:
            self.session.rollback()
            logger.warning(
                "Stale write to tournament %s (expected version %s)", tournament.id, version
            )
            raise StaleVersionError(
                f"Tournament {tournament.id} was modified (expected version {version})"
            )

        self.session.commit()
        self.session.refresh(tournament)
        return tournament

    def save_structure(
        self,
        tournament_id: int,
        plan: StructuralPlan,
        expected_version: Optional[int] = None,
    ) -> TournamentORM:
        """Merge a validated plan into the tournament's configuration.

        Args:
            tournament_id: Tournament to update
            plan: Plan produced by validation.validate
            expected_version: Version the caller read; None skips the check

        Raises:
            TournamentNotFoundError: Unknown id
            TournamentLockedError: Tournament already published
            StaleVersionError: Someone else saved in between
        """
        tournament = self.require(tournament_id)
        if tournament.is_published:
            raise TournamentLockedError(
                f"Tournament {tournament_id} is published; its structure is locked"
            )

        merged = codec.merge(tournament.rules_text, plan)
        tournament = self._write(
            tournament,
            {
                "rules_text": codec.dumps(merged),
                "format": storage_format(plan.format_kind),
                "max_teams": plan.team_count,
            },
            expected_version,
        )
        logger.info(
            "Saved %s structure for tournament %s (version %s)",
            plan.format_kind.value, tournament_id, tournament.version,
        )
        return tournament

    def update_section(
        self,
        tournament_id: int,
        key: str,
        value: Any,
        expected_version: Optional[int] = None,
    ) -> TournamentORM:
        """Replace one configuration section not owned by the structure engine."""
        if key in codec.OWNED_KEYS:
            raise StorageError(f"Section '{key}' is managed by the structure engine")

        tournament = self.require(tournament_id)
        config = tournament.config
        config[key] = value
        return self._write(tournament, {"rules_text": codec.dumps(config)}, expected_version)

    def publish(self, tournament_id: int, rules=None) -> TournamentORM:
        """Publish a tournament. One-way; requires a valid stored structure."""
        tournament = self.require(tournament_id)
        if tournament.is_published:
            return tournament

        if codec.extract_plan(tournament.rules_text, rules) is None:
            raise StorageError(
                f"Tournament {tournament_id} has no valid structure to publish"
            )

        tournament = self._write(tournament, {"status": STATUS_PUBLISHED}, None)
        logger.info("Published tournament %s", tournament_id)
        return tournament

    def delete(self, tournament_id: int) -> bool:
        """Delete a tournament."""
        tournament = self.get_by_id(tournament_id)
        if tournament:
            self.session.delete(tournament)
            self.session.commit()
            return True
        return False
