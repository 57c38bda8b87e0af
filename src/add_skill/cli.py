"""CLI for discovering skills in a repository and installing them onto coding agents."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click

from add_skill.agents import AGENTS, detect_installed_agents
from add_skill.favourites import Favourite, add_favourite, get_favourites, remove_favourite
from add_skill.git import GitCloneError, cleanup_temp_dir, clone_repo
from add_skill.installer import InstallResult, get_install_path, install_skill_for_agent, is_skill_installed
from add_skill.search import SearchError, format_date, format_stars, search_skills
from add_skill.skills import Skill, discover_skills, get_skill_display_name
from add_skill.source import SourceResolutionError, parse_source

logger = logging.getLogger(__name__)


@dataclass
class InstallOptions:
    global_: bool | None = None
    agents: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    list_only: bool = False
    yes: bool = False


# ── Prompt helpers ──


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _show_choices(choices: Sequence[tuple[str, Any, str]]) -> None:
    for i, (label, _value, hint) in enumerate(choices, 1):
        line = f"  {i}) {label}"
        if hint:
            line += "  " + click.style(hint, dim=True)
        click.echo(line)


def _parse_selection(answer: str, count: int) -> list[int]:
    """Turn "1, 3" or "all" into zero-based indices."""
    answer = answer.strip().lower()
    if answer == "all":
        return list(range(count))
    indices: list[int] = []
    for token in answer.replace(",", " ").split():
        if not token.isdigit() or not 1 <= int(token) <= count:
            raise ValueError(f"Invalid choice: {token}")
        index = int(token) - 1
        if index not in indices:
            indices.append(index)
    if not indices:
        raise ValueError("Select at least one option")
    return indices


def _select(message: str, choices: Sequence[tuple[str, Any, str]]) -> Any:
    click.echo(message)
    _show_choices(choices)
    number = click.prompt("Choice", type=click.IntRange(1, len(choices)))
    return choices[number - 1][1]


def _multiselect(message: str, choices: Sequence[tuple[str, Any, str]], default_all: bool = False) -> list[Any]:
    click.echo(message)
    _show_choices(choices)
    while True:
        answer = click.prompt("Numbers separated by commas, or 'all'", default="all" if default_all else None)
        try:
            return [choices[i][1] for i in _parse_selection(answer, len(choices))]
        except ValueError as e:
            click.echo(str(e), err=True)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


# ── Install flow ──


def _select_skills(skills: list[Skill], opts: InstallOptions) -> list[Skill]:
    if opts.skills:
        wanted = {name.lower() for name in opts.skills}
        selected = [
            s for s in skills if s.name.lower() in wanted or get_skill_display_name(s, skills).lower() in wanted
        ]
        if not selected:
            click.echo("Available skills:", err=True)
            for s in skills:
                click.echo(f"  - {get_skill_display_name(s, skills)}", err=True)
            raise click.ClickException(f"No matching skills found for: {', '.join(opts.skills)}")
        names = ", ".join(click.style(get_skill_display_name(s, skills), fg="cyan") for s in selected)
        click.echo(f"Selected {_plural(len(selected), 'skill')}: {names}")
        return selected

    if len(skills) == 1:
        click.echo(f"Skill: {click.style(skills[0].name, fg='cyan')}")
        click.echo(click.style(skills[0].description, dim=True))
        return skills

    if opts.yes:
        click.echo(f"Installing all {len(skills)} skills")
        return skills

    choices = [(get_skill_display_name(s, skills), s, _truncate(s.description, 60)) for s in skills]
    return _multiselect("Select skills to install", choices)


def _select_agents(opts: InstallOptions) -> list[str]:
    if opts.agents:
        invalid = [a for a in opts.agents if a not in AGENTS]
        if invalid:
            click.echo(f"Valid agents: {', '.join(AGENTS)}", err=True)
            raise click.ClickException(f"Invalid agents: {', '.join(invalid)}")
        return list(opts.agents)

    installed = detect_installed_agents()
    click.echo(f"Detected {_plural(len(installed), 'agent')}")

    if not installed:
        if opts.yes:
            click.echo("Installing to all agents (none detected)")
            return list(AGENTS)
        click.secho("No coding agents detected. You can still install skills.", fg="yellow")
        choices = [(config.display_name, name, "") for name, config in AGENTS.items()]
        return _multiselect("Select agents to install skills to", choices)

    if len(installed) == 1 or opts.yes:
        names = ", ".join(click.style(AGENTS[a].display_name, fg="cyan") for a in installed)
        click.echo(f"Installing to: {names}")
        return installed

    choices = [
        (
            AGENTS[a].display_name,
            a,
            AGENTS[a].global_skills_dir if opts.global_ else AGENTS[a].skills_dir,
        )
        for a in installed
    ]
    return _multiselect("Select agents to install skills to", choices, default_all=True)


def _select_scope(opts: InstallOptions) -> bool:
    if opts.global_ is not None:
        return opts.global_
    if opts.yes:
        return False
    return _select(
        "Installation scope",
        [
            ("Project", False, "Install in current directory (committed with your project)"),
            ("Global", True, "Install in home directory (available across all projects)"),
        ],
    )


def _print_summary(selected: list[Skill], agents: list[str], global_: bool, catalog: list[Skill]) -> None:
    click.echo()
    click.secho("Installation Summary", bold=True)
    for skill in selected:
        click.echo(f"  {click.style(get_skill_display_name(skill, catalog), fg='cyan')}")
        for agent in agents:
            path = get_install_path(skill.name, agent, global_)
            status = ""
            if is_skill_installed(skill.name, agent, global_):
                status = click.style(" (will overwrite)", fg="yellow")
            click.echo(f"    -> {AGENTS[agent].display_name}: {path}{status}")
    click.echo()


def _print_results(results: list[tuple[str, str, InstallResult]]) -> None:
    successful = [r for r in results if r[2].success]
    failed = [r for r in results if not r[2].success]

    if successful:
        click.secho(f"Successfully installed {_plural(len(successful), 'skill')}", fg="green")
        for skill_label, agent, result in successful:
            click.echo(f"  {click.style('✓', fg='green')} {skill_label} -> {AGENTS[agent].display_name}")
            click.echo(f"    {result.path}")

    if failed:
        click.echo()
        click.secho(f"Failed to install {_plural(len(failed), 'skill')}", fg="red", err=True)
        for skill_label, agent, result in failed:
            click.echo(f"  {click.style('✗', fg='red')} {skill_label} -> {AGENTS[agent].display_name}", err=True)
            click.echo(f"    {result.error}", err=True)


def _install_discovered(base_path: Path, subpath: str | None, opts: InstallOptions) -> None:
    try:
        skills = discover_skills(base_path, subpath)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if not skills:
        raise click.ClickException("No valid skills found. Skills require a SKILL.md with name and description.")
    click.echo(f"Found {click.style(_plural(len(skills), 'skill'), fg='green')}")

    if opts.list_only:
        click.echo()
        click.secho("Available Skills", bold=True)
        for skill in skills:
            click.echo(f"  {click.style(get_skill_display_name(skill, skills), fg='cyan')}")
            click.echo(f"    {click.style(skill.description, dim=True)}")
        click.echo()
        click.echo("Use --skill <name> to install specific skills")
        return

    selected = _select_skills(skills, opts)
    agents = _select_agents(opts)
    global_ = _select_scope(opts)
    _print_summary(selected, agents, global_, skills)

    if not opts.yes and not click.confirm("Proceed with installation?", default=True):
        click.echo("Installation cancelled")
        return

    results: list[tuple[str, str, InstallResult]] = []
    for skill in selected:
        for agent in agents:
            result = install_skill_for_agent(skill, agent, global_)
            results.append((get_skill_display_name(skill, skills), agent, result))

    click.echo()
    _print_results(results)
    click.echo()
    click.secho("Done!", fg="green")


def _cleanup(temp_dir: Path) -> None:
    try:
        cleanup_temp_dir(temp_dir)
    except (OSError, ValueError) as e:
        logger.debug("Failed to clean up %s: %s", temp_dir, e)


def install_from_source(source: str, opts: InstallOptions) -> None:
    """Resolve, clone, discover and install skills from a single source string."""
    try:
        parsed = parse_source(source)
    except SourceResolutionError as e:
        raise click.ClickException(str(e)) from e

    suffix = f" ({parsed.subpath})" if parsed.subpath else ""
    click.echo(f"Source: {click.style(parsed.url, fg='cyan')}{suffix}")

    if parsed.is_local:
        _install_discovered(Path(parsed.url), parsed.subpath, opts)
        return

    click.echo("Cloning repository...")
    try:
        temp_dir = clone_repo(parsed.url, parsed.ref)
    except GitCloneError as e:
        raise click.ClickException(str(e)) from e

    try:
        _install_discovered(temp_dir, parsed.subpath, opts)
    finally:
        _cleanup(temp_dir)


# ── Favourites ──


def _favourite_choices(favourites: list[Favourite]) -> list[tuple[str, Any, str]]:
    return [(fav.repo, fav, _truncate(fav.description, 50)) for fav in favourites]


def _list_favourites() -> None:
    favourites = get_favourites()
    if not favourites:
        click.secho('No favourites saved yet. Add one with "Add favourite".', fg="yellow")
        return
    click.secho("Your Favourites", bold=True)
    for fav in favourites:
        click.echo(f"  {click.style(fav.repo, fg='cyan')}")
        click.echo(f"    {click.style(fav.description, dim=True)}")


def _prompt_add_favourite() -> None:
    repo = click.prompt("Repository (e.g., owner/repo or full URL)").strip()
    description = click.prompt("Description").strip()
    try:
        favourite = add_favourite(repo, description)
    except SourceResolutionError as e:
        raise click.ClickException(str(e)) from e
    click.secho(f"Added {favourite.repo} to favourites", fg="green")


def _prompt_remove_favourite() -> None:
    favourites = get_favourites()
    if not favourites:
        click.secho("No favourites to remove.", fg="yellow")
        return
    fav = _select("Select favourite to remove", _favourite_choices(favourites))
    if not click.confirm(f"Remove {fav.repo} from favourites?"):
        return
    remove_favourite(fav.id)
    click.secho(f"Removed {fav.repo} from favourites", fg="green")


def _prompt_install_from_favourite(opts: InstallOptions) -> None:
    favourites = get_favourites()
    if not favourites:
        click.secho("No favourites to install from. Add one first.", fg="yellow")
        return
    fav = _select("Select favourite to install from", _favourite_choices(favourites))
    click.echo()
    install_from_source(fav.repo, opts)


def manage_favourites(opts: InstallOptions) -> None:
    """Interactive favourites menu; loops until the user picks Exit."""
    actions = [
        ("List favourites", "list", "View all saved favourite repositories"),
        ("Add favourite", "add", "Save a new repository to favourites"),
        ("Remove favourite", "remove", "Delete a repository from favourites"),
        ("Install from favourite", "install", "Install skills from a favourite repository"),
        ("Exit", "exit", "Return to terminal"),
    ]
    handlers = {
        "list": _list_favourites,
        "add": _prompt_add_favourite,
        "remove": _prompt_remove_favourite,
        "install": lambda: _prompt_install_from_favourite(opts),
    }
    while True:
        action = _select("What would you like to do?", actions)
        if action == "exit":
            click.echo("Goodbye!")
            return
        try:
            handlers[action]()
        except click.ClickException as e:
            e.show()
        click.echo()


# ── Search ──


def search_and_install(opts: InstallOptions) -> None:
    """Interactive search loop. Errors are reported and the loop returns to the query prompt."""
    while True:
        query = click.prompt("Search skills (blank to exit)", default="", show_default=False).strip()
        if not query:
            return
        try:
            result = search_skills(query)
        except SearchError as e:
            click.secho(str(e), fg="red", err=True)
            continue

        if not result.skills:
            click.secho(f"No skills found for {query!r}", fg="yellow")
            continue

        click.echo(f"{_plural(result.pagination.total or len(result.skills), 'result')}")
        choices: list[tuple[str, Any, str]] = [
            (
                f"{s.name} ({s.author})",
                s,
                f"★ {format_stars(s.stars)}, {format_date(s.updated_at)}: {_truncate(s.description, 50)}",
            )
            for s in result.skills
        ]
        choices.append(("Search again", None, ""))
        picked = _select("Select a skill to install", choices)
        if picked is None:
            continue
        try:
            install_from_source(picked.github_url, opts)
        except click.ClickException as e:
            e.show()


def _split_values(values: Sequence[str]) -> list[str]:
    """Flatten repeated options that may also be comma separated."""
    return [v.strip() for value in values for v in value.split(",") if v.strip()]


@click.command()
@click.version_option(package_name="add-skill")
@click.argument("source", required=False)
@click.option("-g", "--global", "global_", is_flag=True, help="Install globally (user-level) instead of project-level")
@click.option("-p", "--project", is_flag=True, help="Install into the current project (skip the scope prompt)")
@click.option("-a", "--agent", "agents", multiple=True, help=f"Agents to install to ({', '.join(AGENTS)})")
@click.option("-s", "--skill", "skills", multiple=True, help="Skill names to install (skip selection prompt)")
@click.option("-l", "--list", "list_only", is_flag=True, help="List available skills without installing")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompts")
@click.option("-f", "--favourites", is_flag=True, help="Manage favourite repositories")
@click.option("-S", "--search", is_flag=True, help="Search the skills marketplace interactively")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(
    source: str | None,
    global_: bool,
    project: bool,
    agents: tuple[str, ...],
    skills: tuple[str, ...],
    list_only: bool,
    yes: bool,
    favourites: bool,
    search: bool,
    verbose: bool,
):
    """Install skills onto coding agents.

    SOURCE is a git repo URL, GitHub shorthand (owner/repo), or a path to a skill.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if global_ and project:
        raise click.UsageError("--global and --project cannot be used together")

    opts = InstallOptions(
        global_=True if global_ else (False if project else None),
        agents=_split_values(agents),
        skills=_split_values(skills),
        list_only=list_only,
        yes=yes,
    )

    if favourites:
        manage_favourites(opts)
    elif search:
        search_and_install(opts)
    elif source:
        install_from_source(source, opts)
    else:
        raise click.ClickException("No source provided. Use -f for favourites, -S to search, or provide a source.")


if __name__ == "__main__":
    main()
