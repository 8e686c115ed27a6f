"""Tests for the tournament storage layer."""

import pytest

from seedplan import codec
from seedplan.storage import (
    DatabaseManager,
    StaleVersionError,
    StorageError,
    TournamentLockedError,
    TournamentNotFoundError,
    TournamentRepository,
    storage_format,
)
from seedplan.models import FormatKind
from seedplan.validation import validate


@pytest.fixture
def repo(tmp_path):
    """Repository over a fresh SQLite file."""
    db = DatabaseManager(tmp_path / "test.sqlite")
    db.create_tables()
    session = db.get_session()
    yield TournamentRepository(session)
    session.close()


def plan_for(**data):
    result = validate(data)
    assert result.ok, result.errors
    return result.plan


def groups_plan(team_count=16):
    return plan_for(
        format_kind="groups_playoffs",
        team_count=team_count,
        max_group_size=4,
        base_advance=2,
        match_modes={"groups": "single", "playoffs": "bo3"},
    )


def test_create(repo):
    tournament = repo.create("Spring Cup")
    assert tournament.id is not None
    assert tournament.status == "draft"
    assert tournament.version == 1
    assert tournament.config == {}
    assert repo.get_all()[0].id == tournament.id


def test_save_structure(repo):
    tournament = repo.create("Spring Cup")
    plan = groups_plan()
    saved = repo.save_structure(tournament.id, plan, expected_version=1)
    assert saved.version == 2
    assert saved.format == "groups_playoffs"
    assert saved.max_teams == 16
    assert repo.get_plan(tournament.id) == plan


def test_fast_is_stored_as_groups_playoffs(repo):
    tournament = repo.create("Friday Night")
    plan = plan_for(format_kind="fast", team_count=20, group_size=4, base_advance=2)
    saved = repo.save_structure(tournament.id, plan)
    assert saved.format == "groups_playoffs"
    assert saved.config["ux_format"] == "fast"
    assert storage_format(FormatKind.KNOCKOUT) == "knockout"


def test_foreign_sections_survive_saves(repo):
    tournament = repo.create("Spring Cup", rules_text='{"billing": {"plan": "pro"}}')
    repo.update_section(tournament.id, "fees", {"registration": 50})
    repo.save_structure(tournament.id, groups_plan())
    repo.save_structure(tournament.id, groups_plan(team_count=20))

    config = repo.get_config(tournament.id)
    assert config["billing"] == {"plan": "pro"}
    assert config["fees"] == {"registration": 50}
    assert config["max_teams"] == 20


def test_stale_version_is_rejected(repo):
    tournament = repo.create("Spring Cup")
    repo.save_structure(tournament.id, groups_plan(), expected_version=1)

    with pytest.raises(StaleVersionError):
        repo.save_structure(tournament.id, groups_plan(team_count=20), expected_version=1)

    stored = repo.require(tournament.id)
    assert stored.version == 2
    assert stored.max_teams == 16


def test_update_section_refuses_owned_keys(repo):
    tournament = repo.create("Spring Cup")
    for key in codec.OWNED_KEYS:
        with pytest.raises(StorageError, match="managed by the structure engine"):
            repo.update_section(tournament.id, key, {})


def test_publish_requires_valid_structure(repo):
    tournament = repo.create("Spring Cup")
    with pytest.raises(StorageError, match="no valid structure"):
        repo.publish(tournament.id)
    assert repo.require(tournament.id).status == "draft"


def test_publish_locks_structure(repo):
    tournament = repo.create("Spring Cup")
    repo.save_structure(tournament.id, groups_plan())
    published = repo.publish(tournament.id)
    assert published.is_published

    # Publishing again is a no-op
    assert repo.publish(tournament.id).version == published.version

    with pytest.raises(TournamentLockedError):
        repo.save_structure(tournament.id, groups_plan(team_count=20))

    # Other subsystems can still write their sections
    updated = repo.update_section(tournament.id, "info", {"venue": "North Field"})
    assert updated.config["info"] == {"venue": "North Field"}


def test_unknown_tournament(repo):
    with pytest.raises(TournamentNotFoundError):
        repo.require(999)
    with pytest.raises(TournamentNotFoundError):
        repo.save_structure(999, groups_plan())
    assert repo.get_by_id(999) is None


def test_delete(repo):
    tournament = repo.create("Spring Cup")
    assert repo.delete(tournament.id)
    assert repo.get_by_id(tournament.id) is None
    assert not repo.delete(tournament.id)
