"""优问多 Agent 增强命令行：摘要 → 意图 → 搜索 → 综合。

Command line entry point for youwen-enhance.

Stage progress, usage and errors go to stderr; stdout only carries the
enhanced prompt (or the raw event log with ``--json``).
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from youwen_enhance.cli.render import (
    render_error_document,
    render_events,
    render_result,
    render_stage_summary,
    render_usage,
)
from youwen_enhance.client import EnhanceClient
from youwen_enhance.config import Settings, get_settings
from youwen_enhance.errors import YouwenError
from youwen_enhance.pipeline import RunOutcome
from youwen_enhance.skills import SKILL_FILE_NAME, SkillScanCache, scan_all_skills
from youwen_enhance.telemetry import configure_logging, get_logger
from youwen_enhance.transport import HttpTransport, resolve_token
from youwen_enhance.version import VersionChecker

logger = get_logger(__name__)

app = typer.Typer(
    name="youwen",
    help="Multi-agent prompt enhancement: summary -> intent -> search -> synthesis.",
    add_completion=False,
    no_args_is_help=True,
)


def _err(message: str) -> None:
    typer.echo(message, err=True)


@app.callback()
def main_callback(
    ctx: typer.Context,
    env_file: Optional[Path] = typer.Option(
        None, "--env-file", help="Read settings from this .env file."
    ),
) -> None:
    settings = get_settings(env_file)
    configure_logging(settings.log_level, settings.log_format)
    ctx.obj = settings


@app.command()
def enhance(
    ctx: typer.Context,
    prompt: Optional[list[str]] = typer.Argument(None, help="Prompt to enhance."),
    history: str = typer.Option("", "--history", help="Conversation history context."),
    no_search: bool = typer.Option(False, "--no-search", help="Disable the search stage."),
    auto_confirm: bool = typer.Option(
        True,
        "--auto-confirm/--no-auto-confirm",
        help="Let the server resolve ambiguous intents.",
    ),
    confirmed_intent: Optional[str] = typer.Option(
        None, "--confirmed-intent", help="Intent chosen after an ambiguity prompt."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print every raw event as JSON."),
    token: Optional[str] = typer.Option(None, "--token", help="Redeem code (bearer token)."),
    mgrep_key: Optional[str] = typer.Option(
        None, "--mgrep-key", help="Mixedbread API key for semantic retrieval."
    ),
    skills_dir: Optional[Path] = typer.Option(
        None, "--skills-dir", help="Scan this skill directory and send it as context."
    ),
    auto_skills: bool = typer.Option(
        False, "--auto-skills", help="Scan the default skill directories."
    ),
    force: bool = typer.Option(
        False, "--force", help="Run even when YOUWEN_ENHANCE_MODE=disabled."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Stream budget in seconds."
    ),
) -> None:
    """Enhance a prompt through the four-agent pipeline."""
    settings: Settings = ctx.obj or get_settings()
    text = " ".join(prompt or [])

    if not text.strip() and not history.strip():
        _err("Error: provide a prompt or a conversation history")
        _err("Usage: youwen enhance <prompt> [options]")
        raise typer.Exit(code=1)

    if settings.enhance_disabled and not force:
        typer.echo(text)
        return

    skills = []
    if skills_dir is not None or auto_skills:
        extra = [skills_dir] if skills_dir is not None else []
        skills = scan_all_skills(extra, cache=SkillScanCache())
        if skills and not json_output:
            _err(f"Found {len(skills)} installed skills, letting the pipeline pick")

    code = asyncio.run(
        _run_enhance(
            settings,
            text,
            history=history,
            enable_search=False if no_search else None,
            auto_confirm=auto_confirm,
            confirmed_intent=confirmed_intent,
            json_output=json_output,
            token=token,
            mgrep_key=mgrep_key,
            skills=skills,
            timeout=timeout,
        )
    )
    if code:
        raise typer.Exit(code=code)


async def _run_enhance(
    settings: Settings,
    text: str,
    *,
    history: str,
    enable_search: bool | None,
    auto_confirm: bool,
    confirmed_intent: str | None,
    json_output: bool,
    token: str | None,
    mgrep_key: str | None,
    skills: list,
    timeout: float | None,
) -> int:
    version_transport, version_task = _start_version_check(settings, token)
    try:
        async with EnhanceClient.create(
            settings=settings, token=token, timeout=timeout
        ) as client:
            request = client.build_request(
                text,
                history=history,
                enable_search=enable_search,
                auto_confirm_intent=auto_confirm,
                confirmed_intent=confirmed_intent,
                mgrep_api_key=mgrep_key,
                skills=skills,
            )

            if json_output:
                events = await client.collect_events(request)
                typer.echo(render_events(events))
                return 0

            _err("⚡ Multi-Agent processing…")
            run = await client.enhance(request)
    except YouwenError as e:
        _err(render_error_document(e))
        return 1
    finally:
        if version_task is not None and not version_task.done():
            version_task.cancel()
        if version_transport is not None:
            await version_transport.close()

    _err(render_stage_summary(run))

    match run.outcome:
        case RunOutcome.SUCCESS:
            _err("")
            typer.echo(render_result(run.result))
            if run.token_usage is not None:
                _err("\n" + render_usage(run.token_usage))
            return 0
        case RunOutcome.NEEDS_CONFIRMATION:
            _err(f"\nError: {run.message}")
            _err('\nResubmit with --confirmed-intent "<your choice>"')
            return 1
        case RunOutcome.FAILED:
            _err(f"\nError: {run.message}")
            return 1
        case _:
            _err("\n⚠ No enhanced result")
            return 1


def _start_version_check(
    settings: Settings, token: str | None
) -> tuple[HttpTransport | None, asyncio.Task | None]:
    if settings.skill_home is None or settings.version_cache_path is None:
        return None, None

    transport = HttpTransport(settings.api_url, token=resolve_token(token, settings))
    checker = VersionChecker(
        transport,
        settings.skill_home / SKILL_FILE_NAME,
        settings.version_cache_path,
        notify=lambda notice: _err(f"\n{notice}\n"),
    )
    task = checker.start()
    if task is None:
        logger.debug("No local version, skipping update check")
    return transport, task


def main() -> None:
    app()
