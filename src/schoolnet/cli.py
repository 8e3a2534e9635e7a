"""CLI entry point for schoolnet package."""
from __future__ import annotations

import code
import json
from typing import Any, Optional

import click

from .client import SchoolnetClient
from .config import SchoolnetConfig
from .errors import ConfigurationError, SchoolnetError
from .log import logger, set_log_level


def _echo(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _load_config(path: Optional[str]) -> SchoolnetConfig:
    if path:
        return SchoolnetConfig.from_file(path)
    return SchoolnetConfig.from_env()


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), help="JSON config file.")
@click.option("--log-level", default="INFO", show_default=True, help="Logging level.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: str) -> None:
    """Schoolnet API command-line tool."""
    set_log_level(log_level)
    try:
        ctx.obj = _load_config(config_path)
    except SchoolnetError as e:
        raise click.ClickException(str(e))


def _client(ctx: click.Context) -> SchoolnetClient:
    try:
        return SchoolnetClient(ctx.obj)
    except SchoolnetError as e:
        raise click.ClickException(str(e))


@main.command("districts")
@click.pass_context
def districts_cmd(ctx: click.Context) -> None:
    """List districts."""
    _echo(_client(ctx).get_districts())


@main.command("schools")
@click.argument("district_id")
@click.pass_context
def schools_cmd(ctx: click.Context, district_id: str) -> None:
    """List schools in DISTRICT_ID."""
    _echo(_client(ctx).get_schools(district_id))


@main.command("sections")
@click.argument("school_id")
@click.pass_context
def sections_cmd(ctx: click.Context, school_id: str) -> None:
    """List sections taught at SCHOOL_ID."""
    _echo(_client(ctx).get_sections(school_id))


@main.command("students")
@click.argument("section_id")
@click.pass_context
def students_cmd(ctx: click.Context, section_id: str) -> None:
    """List students enrolled in SECTION_ID."""
    _echo(_client(ctx).get_students(section_id))


@main.command("staff")
@click.argument("staff_id")
@click.option("--sections", is_flag=True, help="Show section assignments instead of the staff record.")
@click.pass_context
def staff_cmd(ctx: click.Context, staff_id: str, sections: bool) -> None:
    """Show staff member STAFF_ID."""
    api = _client(ctx)
    _echo(api.get_staff_sections(staff_id) if sections else api.get_staff(staff_id))


@main.command("assessments")
@click.option("--modified-since", help="Only assessments modified since this ISO date.")
@click.option("--limit", type=int, help="Return a single page of this size.")
@click.option("--offset", type=int, help="Offset of the single page to return.")
@click.pass_context
def assessments_cmd(ctx: click.Context, modified_since: Optional[str], limit: Optional[int], offset: Optional[int]) -> None:
    """List assessments."""
    _echo(_client(ctx).get_assessments(modified_since=modified_since, limit=limit, offset=offset))


@main.command("assessment")
@click.argument("assessment_id")
@click.pass_context
def assessment_cmd(ctx: click.Context, assessment_id: str) -> None:
    """Show ASSESSMENT_ID with questions and schedule."""
    _echo(_client(ctx).get_assessment(assessment_id))


@main.command("tenants")
@click.pass_context
def tenants_cmd(ctx: click.Context) -> None:
    """List tenants."""
    _echo(_client(ctx).get_tenants())


@main.command("shell")
@click.pass_context
def shell_cmd(ctx: click.Context) -> None:
    """Interactive Python shell with a ready client."""
    config: SchoolnetConfig = ctx.obj
    banner = "\n".join([
        "Schoolnet interactive shell\n",
        "Current config:\n" + json.dumps(config.model_dump(exclude={"client_secret"}), indent=2) + "\n",
        "The following variables are in your context:",
        "  api - SchoolnetClient instance (None without a complete config)",
        "  config",
        "  log - schoolnet logger",
        "  SchoolnetClient\n",
    ])
    try:
        api = SchoolnetClient(config)
    except ConfigurationError as e:
        logger.warning("No client available: %s", e)
        api = None
    context = {
        "api": api,
        "config": config,
        "log": logger,
        "SchoolnetClient": SchoolnetClient,
    }
    code.interact(banner=banner, local=context)


if __name__ == "__main__":
    main()
