"""Command-line interface for seedplan."""

import json
import logging
from contextlib import contextmanager

import click

from seedplan import __version__
from seedplan.i18n import SUPPORTED_LANGUAGES, get_language_from_env, get_string


def _emit_result(result, lang: str, as_json: bool) -> None:
    from seedplan.summary import describe_issue, describe_plan

    if as_json:
        payload = {
            "valid": result.ok,
            "plan": result.plan.to_dict() if result.ok else None,
            "errors": [issue.to_dict() for issue in result.errors],
        }
        click.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if result.ok:
        click.echo(f"[OK] {get_string('cli.valid', lang)}")
        click.echo(f"     {describe_plan(result.plan, lang)}")
        return

    click.echo(f"[ERROR] {get_string('cli.invalid', lang, count=len(result.errors))}", err=True)
    for issue in result.errors:
        click.echo(f"   - {issue.field}: {describe_issue(issue, lang)}", err=True)


@contextmanager
def _open_repo(ctx):
    from seedplan.paths import get_default_db_path
    from seedplan.storage import DatabaseManager, TournamentRepository

    db_path = ctx.obj["settings"]["db_path"] or get_default_db_path()
    db = DatabaseManager(db_path)
    db.create_tables()
    session = db.get_session()
    try:
        yield TournamentRepository(session)
    finally:
        session.close()


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", required=False, help="Path to settings YAML file")
@click.option("--lang", type=click.Choice(SUPPORTED_LANGUAGES), required=False, help="Output language")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path: str, lang: str, verbose: bool):
    """Tournament structure planner - validate formats, groups and brackets."""
    from seedplan.config_loader import ConfigError, default_config, load_and_validate_config
    from seedplan.formats import build_format_rules

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_and_validate_config(config_path) if config_path else default_config()
    except ConfigError as e:
        click.echo(f"[ERROR] Config error: {e}", err=True)
        raise click.Abort()

    ctx.obj = {
        "settings": settings,
        "lang": lang or (settings["lang"] if config_path else get_language_from_env()),
        "rules": build_format_rules(settings["league_team_counts"]),
    }


@cli.command()
@click.pass_context
def formats(ctx):
    """List supported formats and what each one accepts."""
    lang = ctx.obj["lang"]
    for kind, rule in ctx.obj["rules"].items():
        info = rule.describe()
        teams = (
            ", ".join(str(n) for n in info["team_counts"])
            if info["team_counts"] is not None
            else f"{info['min_teams']}..{info['max_teams']}"
        )
        click.echo(f"{kind.value}  ({get_string(f'formats.{kind.value}', lang)})")
        click.echo(f"   teams: {teams}{' (even)' if rule.even_teams else ''}")
        for stage in info["stages"]:
            click.echo(f"   {stage['stage']}: {', '.join(stage['modes'])}")
        for sizing in info["sizing"]:
            allowed = sizing["choices"] or f"{sizing['minimum']}..{sizing['maximum']}"
            click.echo(f"   {sizing['field']} ({sizing['mode']}): {allowed}")


@cli.command()
@click.option("--format", "format_kind", required=True, help="league, knockout, groups_playoffs or fast")
@click.option("--teams", "team_count", required=True, help="Number of teams")
@click.option("--max-group-size", required=False, help="Largest group (groups_playoffs)")
@click.option("--desired-group-size", required=False, help="Target group size (groups_playoffs, legacy)")
@click.option("--group-size", required=False, help="Group size (fast: 4, 6 or 8)")
@click.option("--base-advance", required=False, help="Teams advancing per group (1 or 2)")
@click.option("--mode", "modes", multiple=True, help="Stage match mode, e.g. --mode playoffs=bo3")
@click.option("--seeding", required=False, help="random or manual")
@click.option("--round-duration", required=False, help="Fast round duration in minutes")
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON")
@click.pass_context
def preview(ctx, format_kind, team_count, max_group_size, desired_group_size, group_size,
            base_advance, modes, seeding, round_duration, as_json):
    """Validate a structure given on the command line.

    Example:
        seedplan preview --format groups_playoffs --teams 16 --max-group-size 4 \\
            --base-advance 2 --mode groups=single --mode playoffs=bo3
    """
    from seedplan.validation import DraftConfig, validate

    match_modes = {}
    for item in modes:
        stage, sep, mode = item.partition("=")
        if not sep:
            click.echo(f"[ERROR] --mode expects STAGE=MODE, got '{item}'", err=True)
            raise click.Abort()
        match_modes[stage.strip()] = mode.strip()

    draft = DraftConfig(
        format_kind=format_kind,
        team_count=team_count,
        max_group_size=max_group_size,
        desired_group_size=desired_group_size,
        group_size=group_size,
        base_advance=base_advance,
        match_modes=match_modes,
        seeding=seeding,
        round_duration_minutes=round_duration,
    )
    result = validate(draft, ctx.obj["rules"])
    _emit_result(result, ctx.obj["lang"], as_json)
    if not result.ok:
        ctx.exit(1)


@cli.command(name="validate")
@click.option("--draft", "draft_path", required=True, help="Path to draft YAML file")
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON")
@click.pass_context
def validate_cmd(ctx, draft_path: str, as_json: bool):
    """Validate a draft structure stored in a YAML file."""
    from seedplan.config_loader import ConfigError, load_draft
    from seedplan.validation import validate

    try:
        draft = load_draft(draft_path)
    except ConfigError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    result = validate(draft, ctx.obj["rules"])
    _emit_result(result, ctx.obj["lang"], as_json)
    if not result.ok:
        ctx.exit(1)


@cli.command()
@click.option("--teams", type=int, required=True, help="Number of teams")
@click.option("--max-size", type=int, required=False, help="Largest allowed group")
@click.option("--desired-size", type=int, required=False, help="Target group size")
@click.option("--advance", type=int, default=2, show_default=True, help="Teams advancing per group")
@click.option("--seed", "show_seeds", is_flag=True, help="List which seeds land in each group (snake order)")
def partition(teams: int, max_size: int, desired_size: int, advance: int, show_seeds: bool):
    """Show how teams split into groups and feed the playoffs bracket."""
    from seedplan.bracket import round_label_for_size, size_bracket
    from seedplan.group_builder import (
        InfeasiblePartitionError,
        distribute_snake,
        partition_by_max_size,
        partition_by_target_size,
    )

    if (max_size is None) == (desired_size is None):
        click.echo("[ERROR] Give exactly one of --max-size or --desired-size", err=True)
        raise click.Abort()

    try:
        if max_size is not None:
            plan = partition_by_max_size(teams, max_size)
        else:
            plan = partition_by_target_size(teams, desired_size)
    except InfeasiblePartitionError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    bracket = size_bracket(plan.group_count, advance)
    click.echo(f"Groups: {plan.group_count} (min {plan.min_group_size}, max {plan.max_group_size})")
    click.echo(f"Sizes: {', '.join(str(s) for s in plan.group_sizes)}")
    click.echo(
        f"Bracket: {bracket.bracket_size} ({bracket.base_qualified} qualified + "
        f"{bracket.wildcards} wildcards, opens at {round_label_for_size(bracket.bracket_size)})"
    )

    if show_seeds:
        seeds = list(range(1, plan.team_count + 1))
        for number, group in enumerate(distribute_snake(seeds, plan), start=1):
            click.echo(f"   Group {number}: {', '.join(str(seed) for seed in group)}")


@cli.command(name="init-db")
@click.pass_context
def init_db(ctx):
    """Create the database tables."""
    with _open_repo(ctx):
        pass
    click.echo("[SUCCESS] Database ready")


@cli.command()
@click.argument("name")
@click.pass_context
def create(ctx, name: str):
    """Create a draft tournament."""
    with _open_repo(ctx) as repo:
        tournament = repo.create(name)
        click.echo(f"[SUCCESS] {get_string('cli.created', ctx.obj['lang'], id=tournament.id, name=name)}")


@cli.command()
@click.argument("tournament_id", type=int)
@click.option("--draft", "draft_path", required=True, help="Path to draft YAML file")
@click.option("--expected-version", type=int, required=False, help="Fail if the record changed since this version")
@click.pass_context
def save(ctx, tournament_id: int, draft_path: str, expected_version: int):
    """Validate a draft and merge it into a tournament's configuration."""
    from seedplan.config_loader import ConfigError, load_draft
    from seedplan.storage import StorageError
    from seedplan.validation import validate

    lang = ctx.obj["lang"]
    try:
        draft = load_draft(draft_path)
    except ConfigError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    result = validate(draft, ctx.obj["rules"])
    if not result.ok:
        _emit_result(result, lang, as_json=False)
        ctx.exit(1)

    with _open_repo(ctx) as repo:
        try:
            tournament = repo.save_structure(tournament_id, result.plan, expected_version=expected_version)
        except StorageError as e:
            click.echo(f"[ERROR] {e}", err=True)
            raise click.Abort()
        version = tournament.version

    click.echo(f"[SUCCESS] {get_string('cli.saved', lang, id=tournament_id, version=version)}")


@cli.command()
@click.argument("tournament_id", type=int)
@click.pass_context
def show(ctx, tournament_id: int):
    """Show a tournament's stored structure."""
    from seedplan import codec
    from seedplan.storage import StorageError
    from seedplan.validation import validate

    with _open_repo(ctx) as repo:
        try:
            tournament = repo.require(tournament_id)
        except StorageError as e:
            click.echo(f"[ERROR] {e}", err=True)
            raise click.Abort()
        header = f"#{tournament.id} {tournament.name} [{tournament.status}] version {tournament.version}"
        rules_text = tournament.rules_text

    click.echo(header)
    if not codec.owned_sections(rules_text):
        click.echo("   (no structure saved yet)")
        return
    _emit_result(validate(codec.read_draft(rules_text), ctx.obj["rules"]), ctx.obj["lang"], as_json=False)


@cli.command()
@click.argument("tournament_id", type=int)
@click.pass_context
def publish(ctx, tournament_id: int):
    """Publish a tournament (cannot be undone)."""
    from seedplan.storage import StorageError

    with _open_repo(ctx) as repo:
        try:
            repo.publish(tournament_id, ctx.obj["rules"])
        except StorageError as e:
            click.echo(f"[ERROR] {e}", err=True)
            raise click.Abort()
    click.echo(f"[SUCCESS] {get_string('cli.published', ctx.obj['lang'], id=tournament_id)}")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
@click.pass_context
def serve(ctx, host: str, port: int):
    """Run the HTTP API with the loaded settings."""
    import uvicorn

    from seedplan.webapp.app import app, configure

    configure(ctx.obj["settings"], lang=ctx.obj["lang"])
    click.echo(f"[INFO] Serving on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
