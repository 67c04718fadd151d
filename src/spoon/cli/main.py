"""Main CLI for spoon."""

import functools
import json
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..cache.evictor import TtlEvictor
from ..cache.index import CacheIndex
from ..cache.metadata_store import MetadataStore
from ..cache.models import utc_now
from ..core.config import SpoonConfig, SpoonSettings, load_config, save_config
from ..exceptions import ConfigError, SpoonError
from ..integrations.github.search import GhSearch
from ..ui.chooser import Choice, PromptChooser, make_chooser
from ..ui.output import Output
from ..utils.durations import format_duration, parse_duration
from ..utils.rich_logging import setup_logging
from ..workspace.branch_selector import BranchSelector
from ..workspace.git_client import GitClient
from ..workspace.launcher import Launcher
from ..workspace.lifecycle import RepoLifecycleManager
from ..workspace.resolver import ReferenceResolver

logger = logging.getLogger(__name__)

console = Console(highlight=False)
output = Output(console)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
GROUP_FLAGS = {"-v", "--verbose", "-h", "--help", "--version"}
LAUNCH_OVERRIDE_KEY = "spoon.launch_override"


class SpoonGroup(click.Group):
    """Routes bare references to ``open`` and no arguments to ``pick``.

    Everything after ``--`` is kept aside as a launch command override.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        args = list(args)
        if "--" in args:
            split = args.index("--")
            override = " ".join(args[split + 1:]).strip()
            if override:
                ctx.meta[LAUNCH_OVERRIDE_KEY] = override
            args = args[:split]

        i = 0
        while i < len(args) and args[i] in GROUP_FLAGS:
            i += 1
        rest = args[i:]

        if not rest:
            if not {"-h", "--help", "--version"} & set(args):
                args.append("pick")
        elif rest[0] not in self.commands:
            args.insert(i, "open")

        return super().parse_args(ctx, args)


@dataclass
class AppContext:
    """Everything a command needs, built once per invocation."""
    settings: SpoonSettings
    config: SpoonConfig
    store: MetadataStore
    index: CacheIndex
    evictor: TtlEvictor

    @classmethod
    def create(cls, settings: SpoonSettings, config: SpoonConfig) -> "AppContext":
        store = MetadataStore(settings.history_path)
        return cls(
            settings=settings,
            config=config,
            store=store,
            index=CacheIndex(config.base_dir, store),
            evictor=TtlEvictor(config.base_dir),
        )

    def housekeeping(self) -> None:
        """History sync and automatic TTL purge, run on every invocation."""
        self.config.base_dir.mkdir(parents=True, exist_ok=True)
        self.store.sync_history(self.index.scan())
        purged = self.evictor.purge_on_invoke(
            self.index,
            self.config.ttl_ms,
            self.config.purge_threshold,
        )
        if purged:
            output.info("purged", f"{purged} expired repos")

    def resolver(self, chooser: PromptChooser) -> ReferenceResolver:
        return ReferenceResolver(
            self.index,
            self.store,
            chooser,
            search=GhSearch(),
            host=self.config.host,
            output=output,
        )

    def lifecycle(self, chooser: PromptChooser) -> RepoLifecycleManager:
        git = GitClient()
        return RepoLifecycleManager(
            config=self.config,
            store=self.store,
            git=git,
            branch_selector=BranchSelector(git, chooser),
            chooser=chooser,
            launcher=Launcher(),
            output=output,
        )


def report_errors(fn):
    """Print SpoonError as one line and exit 1."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SpoonError as e:
            logger.debug("Command failed", exc_info=True)
            output.error(str(e))
            sys.exit(1)
        except KeyboardInterrupt:
            output.error("canceled")
            sys.exit(1)
    return wrapper


@click.group(cls=SpoonGroup, context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", prog_name="spoon")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr")
@click.pass_context
def cli(ctx, verbose):
    """spoon - open any repo in a cached checkout with your agent.

    \b
      spoon                      pick a local or recent repo
      spoon <org/repo|url|query> resolve, clone or reuse, and launch
      spoon ls | remove | config manage the cache
    """
    settings = SpoonSettings()
    setup_logging("DEBUG" if verbose else settings.log_level)

    config = load_config(settings.config_path)
    app = AppContext.create(settings, config)
    ctx.obj = app

    try:
        app.housekeeping()
    except OSError as e:
        logger.warning(f"Cache housekeeping failed: {e}")


def _launch_command(ctx: click.Context, app: AppContext, alias: Optional[str]) -> str:
    override = ctx.meta.get(LAUNCH_OVERRIDE_KEY)
    return app.config.resolve_launch(alias, override=override)


@cli.command(name="open")
@click.argument("reference", nargs=-1, required=True)
@click.option("--branch", "-b", help="Clone or checkout this branch")
@click.option("--launch", "-l", "launch_alias", help="Launch alias from config")
@click.option("--provider", "-p", "provider", help="Alias of --launch", hidden=True)
@click.option("--update/--no-update", default=None, help="Pull new commits without asking (or skip them)")
@click.option("--reclone", is_flag=True, help="Delete the local copy and clone it fresh")
@click.pass_context
@report_errors
def open_repo(ctx, reference, branch, launch_alias, provider, update, reclone):
    """Resolve a repo, clone or reuse its checkout, and launch."""
    app: AppContext = ctx.obj
    command = _launch_command(ctx, app, launch_alias or provider)

    chooser = make_chooser(console)
    ref = app.resolver(chooser).resolve(" ".join(reference))
    app.lifecycle(chooser).open(
        ref,
        command,
        branch_override=branch,
        update=update,
        reclone=reclone,
    )


@cli.command()
@click.option("--branch", "-b", help="Checkout this branch")
@click.option("--launch", "-l", "launch_alias", help="Launch alias from config")
@click.option("--provider", "-p", "provider", help="Alias of --launch", hidden=True)
@click.option("--update/--no-update", default=None, help="Pull new commits without asking (or skip them)")
@click.option("--reclone", is_flag=True, help="Delete the local copy and clone it fresh")
@click.pass_context
@report_errors
def pick(ctx, branch, launch_alias, provider, update, reclone):
    """Pick a local or recent repo and launch."""
    app: AppContext = ctx.obj
    command = _launch_command(ctx, app, launch_alias or provider)

    chooser = make_chooser(console)
    ref = app.resolver(chooser).pick()
    app.lifecycle(chooser).open(
        ref,
        command,
        branch_override=branch,
        update=update,
        reclone=reclone,
    )


@cli.command(name="ls")
@click.pass_obj
@report_errors
def list_repos(app: AppContext):
    """List local repos and repos remembered in history."""
    entries = sorted(app.index.scan(), key=lambda e: e.meta.last_access, reverse=True)
    local_names = {e.full_name for e in entries}

    last_seen = {}
    for item in app.store.read_history():
        if item.repo_full_name not in local_names:
            last_seen[item.repo_full_name] = item.timestamp
    history = sorted(last_seen.items(), key=lambda kv: kv[1], reverse=True)

    if not entries and not history:
        output.info("ls", "No repos found.")
        return

    now = utc_now()
    if entries:
        console.print("[bold]Available[/]")
        for entry in entries:
            age_ms = (now - entry.meta.last_access).total_seconds() * 1000
            console.print(
                f"  {escape(entry.full_name)} [dim]({escape(entry.meta.branch)}) "
                f"{format_duration(max(age_ms, 0))} ago[/]"
            )

    if history:
        if entries:
            console.print()
        console.print("[bold]History[/]")
        for full_name, _ in history:
            console.print(f"  [dim]{escape(full_name)}[/]")


@cli.command()
@click.option("--expired", is_flag=True, help="Remove every expired repo without prompting")
@click.pass_obj
@report_errors
def remove(app: AppContext, expired):
    """Select local repos to remove (expired ones are pre-selected)."""
    entries = app.index.scan()
    if not entries:
        output.info("remove", "No repos to remove.")
        return

    split = app.evictor.partition(entries, app.config.ttl_ms)

    if expired:
        selected = [str(e.path) for e in split.expired]
    else:
        choices = [
            Choice(
                value=str(e.path),
                label=e.full_name,
                hint=f"last used {e.meta.last_access.astimezone():%Y-%m-%d %H:%M}",
            )
            for e in split.active
        ] + [
            Choice(
                value=str(e.path),
                label=e.full_name,
                hint=f"expired, last used {e.meta.last_access.astimezone():%Y-%m-%d %H:%M}",
            )
            for e in split.expired
        ]
        selected = make_chooser(console).choose_many(
            choices,
            "Select repos to remove",
            preselected=[str(e.path) for e in split.expired],
        )
        if selected is None:
            output.info("remove", "Canceled.")
            return

    if not selected:
        output.info("remove", "No repos removed.")
        return

    by_path = {str(e.path): e for e in entries}
    removed = []
    for path in selected:
        entry = by_path.get(path)
        if entry:
            app.evictor.remove(entry.path)
            removed.append(entry.full_name)

    output.info("removed", ", ".join(removed))


@cli.command()
@click.option("--ttl", help="Time to live for unused repos, e.g. 14d, 36h")
@click.option("--dir", "base_dir", type=click.Path(file_okay=False), help="Base directory for checkouts")
@click.option("--launch", "-l", "launch_alias", help="Default launch alias")
@click.option("--provider", "-p", "provider", help="Alias of --launch", hidden=True)
@click.option("--threshold", type=click.IntRange(min=0), help="Cached repo count before automatic purge runs")
@click.option("--edit", is_flag=True, help="Open the config file in your editor")
@click.pass_obj
@report_errors
def config(app: AppContext, ttl, base_dir, launch_alias, provider, threshold, edit):
    """Show or change the spoon config."""
    config_path = app.settings.config_path

    if edit:
        if not config_path.exists():
            save_config(app.config, config_path)
        click.edit(filename=str(config_path))
        return

    launch_alias = launch_alias or provider
    if not any(v is not None for v in (ttl, base_dir, launch_alias, threshold)):
        output.info("config", str(config_path))
        console.print_json(json.dumps(app.config.model_dump(mode="json", by_alias=True)))
        return

    updates = {}
    if ttl is not None:
        try:
            updates["ttl_ms"] = parse_duration(ttl)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--ttl")
    if base_dir is not None:
        updates["base_dir"] = base_dir
    if launch_alias is not None:
        if launch_alias not in app.config.launch:
            available = ", ".join(sorted(app.config.launch))
            raise ConfigError(f"Unknown launch alias '{launch_alias}'. Available: {available}.")
        updates["default_launch"] = launch_alias
    if threshold is not None:
        updates["purge_threshold"] = threshold

    merged = app.config.model_dump()
    merged.update(updates)
    new_config = SpoonConfig.model_validate(merged)
    save_config(new_config, config_path)
    output.info("config", "Config updated.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
