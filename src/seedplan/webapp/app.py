"""FastAPI web application for the tournament structure planner.

The tournament-creation wizard and the settings editor both call the same
preview endpoint while the operator types, and the same structure endpoint
when saving.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from seedplan import codec
from seedplan.config_loader import default_config
from seedplan.formats import FORMAT_RULES, build_format_rules
from seedplan.i18n import get_language_from_env, get_string
from seedplan.models import StructuralPlan
from seedplan.paths import get_default_db_path
from seedplan.storage import (
    DatabaseManager,
    StaleVersionError,
    StorageError,
    TournamentLockedError,
    TournamentNotFoundError,
    TournamentORM,
    TournamentRepository,
)
from seedplan.summary import describe_issue, describe_plan
from seedplan.validation import DraftConfig, ValidationResult, validate

logger = logging.getLogger(__name__)

app = FastAPI(title="Tournament Structure Planner")

# Operator settings (see configure); the DB manager is created on first use
_settings: Dict[str, Any] = default_config()
_rules = FORMAT_RULES
_default_lang: Optional[str] = None
_db_manager: Optional[DatabaseManager] = None


def configure(settings: Optional[Dict[str, Any]] = None, lang: Optional[str] = None) -> None:
    """Apply validated settings (see config_loader) before serving.

    Args:
        settings: Settings dict; None restores the defaults
        lang: Default response language; None reads SEEDPLAN_LANG per request
    """
    global _settings, _rules, _default_lang, _db_manager
    _settings = settings if settings is not None else default_config()
    _rules = build_format_rules(_settings["league_team_counts"])
    _default_lang = lang
    _db_manager = None
    logger.info("Web app configured (db_path=%s)", _settings["db_path"] or "default")


def get_rules():
    """Rule table for the configured league sizes."""
    return _rules


def _lang(requested: Optional[str]) -> str:
    return requested or _default_lang or get_language_from_env()


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(_settings["db_path"] or get_default_db_path())
        _db_manager.create_tables()
    return _db_manager


def get_db_session():
    """Yield a database session for one request."""
    session = get_db_manager().get_session()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# Request models
# ============================================================================


class DraftRequest(BaseModel):
    """Structure fields of the tournament form, as typed by the operator."""

    format_kind: Any = None
    team_count: Any = None
    max_group_size: Any = None
    desired_group_size: Any = None
    group_size: Any = None
    base_advance: Any = None
    match_modes: Dict[str, Any] = Field(default_factory=dict)
    seeding: Any = None
    round_duration_minutes: Any = None

    def to_draft(self) -> DraftConfig:
        return DraftConfig.from_dict(self.model_dump())


class SaveStructureRequest(DraftRequest):
    expected_version: Optional[int] = None


class CreateTournamentRequest(BaseModel):
    name: str = Field(min_length=3, max_length=200)


class SectionRequest(BaseModel):
    value: Any = None
    expected_version: Optional[int] = None


# ============================================================================
# Helpers
# ============================================================================


def _result_payload(result: ValidationResult, lang: str) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "valid": result.ok,
        "plan": None,
        "summary": None,
        "errors": [
            dict(issue.to_dict(), display=describe_issue(issue, lang)) for issue in result.errors
        ],
    }
    if result.ok:
        payload["plan"] = result.plan.to_dict()
        payload["summary"] = describe_plan(result.plan, lang)
    return payload


def _tournament_payload(tournament: TournamentORM, lang: str, rules) -> Dict[str, Any]:
    draft = codec.read_draft(tournament.rules_text)
    result = validate(draft, rules)
    return {
        "id": tournament.id,
        "name": tournament.name,
        "status": tournament.status,
        "format": tournament.format,
        "max_teams": tournament.max_teams,
        "version": tournament.version,
        "draft": draft.to_dict(),
        "config": tournament.config,
        "structure": _result_payload(result, lang) if draft.format_kind is not None else None,
    }


def _storage_http_error(error: StorageError) -> HTTPException:
    if isinstance(error, TournamentNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (StaleVersionError, TournamentLockedError)):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


# ============================================================================
# Routes
# ============================================================================


@app.get("/api/formats")
def list_formats(lang: Optional[str] = Query(default=None), rules=Depends(get_rules)):
    """Rule table, for clients that build their forms from it."""
    lang = _lang(lang)
    return {
        kind.value: dict(rule.describe(), label=get_string(f"formats.{kind.value}", lang))
        for kind, rule in rules.items()
    }


@app.post("/api/structure/preview")
def preview_structure(
    request: DraftRequest,
    lang: Optional[str] = Query(default=None),
    rules=Depends(get_rules),
):
    """Validate a draft without saving it. Always 200; errors are in the body."""
    lang = _lang(lang)
    return _result_payload(validate(request.to_draft(), rules), lang)


@app.post("/api/tournaments", status_code=201)
def create_tournament(request: CreateTournamentRequest, session=Depends(get_db_session)):
    tournament = TournamentRepository(session).create(request.name)
    return {"id": tournament.id, "name": tournament.name, "status": tournament.status, "version": tournament.version}


@app.get("/api/tournaments/{tournament_id}/structure")
def get_structure(
    tournament_id: int,
    lang: Optional[str] = Query(default=None),
    session=Depends(get_db_session),
    rules=Depends(get_rules),
):
    lang = _lang(lang)
    try:
        tournament = TournamentRepository(session).require(tournament_id)
    except StorageError as e:
        raise _storage_http_error(e)
    return _tournament_payload(tournament, lang, rules)


@app.put("/api/tournaments/{tournament_id}/structure")
def save_structure(
    tournament_id: int,
    request: SaveStructureRequest,
    lang: Optional[str] = Query(default=None),
    session=Depends(get_db_session),
    rules=Depends(get_rules),
):
    """Validate and merge a structure into the tournament configuration.

    422 with every field error when the draft is invalid (nothing is
    written), 409 when the record changed or is published.
    """
    lang = _lang(lang)
    result = validate(request.to_draft(), rules)
    if not result.ok:
        raise HTTPException(status_code=422, detail=_result_payload(result, lang))

    plan: StructuralPlan = result.plan
    try:
        tournament = TournamentRepository(session).save_structure(
            tournament_id, plan, expected_version=request.expected_version
        )
    except StorageError as e:
        raise _storage_http_error(e)
    return _tournament_payload(tournament, lang, rules)


@app.put("/api/tournaments/{tournament_id}/sections/{key}")
def update_section(
    tournament_id: int,
    key: str,
    request: SectionRequest,
    lang: Optional[str] = Query(default=None),
    session=Depends(get_db_session),
    rules=Depends(get_rules),
):
    """Replace a configuration section owned by another subsystem (billing, draft, ...)."""
    lang = _lang(lang)
    try:
        tournament = TournamentRepository(session).update_section(
            tournament_id, key, request.value, expected_version=request.expected_version
        )
    except StorageError as e:
        raise _storage_http_error(e)
    return _tournament_payload(tournament, lang, rules)


@app.post("/api/tournaments/{tournament_id}/publish")
def publish_tournament(
    tournament_id: int,
    lang: Optional[str] = Query(default=None),
    session=Depends(get_db_session),
    rules=Depends(get_rules),
):
    lang = _lang(lang)
    try:
        tournament = TournamentRepository(session).publish(tournament_id, rules)
    except StorageError as e:
        raise _storage_http_error(e)
    logger.info("Tournament %s published via API", tournament_id)
    return _tournament_payload(tournament, lang, rules)
