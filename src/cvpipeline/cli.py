# cli.py
from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import click

from cvpipeline.config import ConfigError, PipelineConfig, check_required_env_vars
from cvpipeline.gerrit import submit_verify_status, trigger_config
from cvpipeline.identity import MalformedJobName
from cvpipeline.runner import load_workflow, run_pipeline
from cvpipeline.ui.console import Console, get_console, set_console

# exit status for configuration problems (missing/malformed environment)
CONFIG_EXIT = 2


def find_workflow_files() -> list[Path]:
    """
    Find workflow files for the current job.

    Returns:
        Sorted list of *_workflow.py files in the current directory and in
        pipelines/.
    """
    workflow_files: list[Path] = []
    for base in (Path("."), Path("pipelines")):
        if base.is_dir():
            workflow_files.extend(base.glob("*_workflow.py"))
    return sorted(workflow_files)


def discover_workflow(workflow_arg: str | None, project: str) -> Path:
    """
    Discover workflow file from argument, or from the project name.

    `<project>_workflow.py` is preferred when several workflows exist.

    Raises:
        SystemExit: If no workflow can be picked
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Specify a different path:\n  cv-pipeline run --workflow pipelines/backup_workflow.py",
            )
            sys.exit(1)
        return workflow_path

    workflow_files = find_workflow_files()
    for path in workflow_files:
        if path.name == f"{project}_workflow.py":
            return path

    if len(workflow_files) == 1:
        return workflow_files[0]

    if not workflow_files:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=[
                "Looked for:",
                f"  {project}_workflow.py",
                "  *_workflow.py",
                "  pipelines/*_workflow.py",
            ],
            suggestion="Specify a workflow explicitly:\n  cv-pipeline run --workflow my_workflow.py",
        )
    else:
        file_list = "\n".join(f"  {f}" for f in workflow_files)
        console.print_error(
            "Multiple workflow files found",
            f"None is named {project}_workflow.py. Please specify which one to use:",
            details=[file_list],
            suggestion="Specify a workflow explicitly:\n  cv-pipeline run --workflow pipelines/backup_workflow.py",
        )
    sys.exit(1)


def _load_config(require_gerrit: bool = False) -> PipelineConfig:
    """Build the config from the environment, exiting on configuration errors."""
    console = get_console()
    try:
        return PipelineConfig.from_env(require_gerrit=require_gerrit)
    except ConfigError as e:
        console.print_error(
            "Configuration error",
            str(e),
            suggestion="This command expects to run inside a Gerrit-triggered CI job.",
        )
        sys.exit(CONFIG_EXIT)
    except MalformedJobName as e:
        console.print_error("Malformed job name", str(e))
        sys.exit(CONFIG_EXIT)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show commands, stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """cv-pipeline: commit-validation pipelines for Gerrit changes."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
def identity():
    """Print the project, job type and silent mode resolved from JOB_NAME."""
    config = _load_config()
    ident = config.identity
    get_console().print_identity(ident.base_name, ident.project, ident.job_type, ident.silent)


@cli.command("node-label")
def node_label():
    """Print the node selector for this job."""
    config = _load_config()
    try:
        click.echo(config.node_label)
    except ConfigError as e:
        get_console().print_error("Configuration error", str(e))
        sys.exit(CONFIG_EXIT)


@cli.command("go-url")
@click.argument("version")
def go_url(version):
    """Print the Go download URL for VERSION on this job's platform."""
    config = _load_config()
    click.echo(config.go_download_url(version))


@cli.command("trigger-config")
def trigger_config_cmd():
    """Print the Gerrit trigger configuration as JSON."""
    config = _load_config()
    click.echo(json.dumps(trigger_config(config), indent=2))


@cli.command("check-env")
def check_env():
    """Fail unless all required Gerrit environment variables are set."""
    console = get_console()
    try:
        check_required_env_vars()
    except ConfigError as e:
        console.print_error("Configuration error", str(e))
        sys.exit(CONFIG_EXIT)
    console.print_info("Gerrit environment OK")


@cli.command()
@click.argument("value", type=int)
def vote(value):
    """Report VALUE to the Gerrit verify-status plugin."""
    console = get_console()
    config = _load_config()
    try:
        if not submit_verify_status(config, value):
            console.print_info("No patchset revision, nothing to report")
    except subprocess.CalledProcessError as e:
        console.print_error("Vote failed", f"ssh exited with status {e.returncode}")
        sys.exit(1)


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help="Workflow file path (defaults to <project>_workflow.py)",
)
@click.option("--vote/--no-vote", default=True, show_default=True, help="Report the result to Gerrit")
@click.option(
    "--require-gerrit/--no-require-gerrit",
    default=True,
    show_default=True,
    help="Fail before any stage runs unless all GERRIT_* variables are set",
)
def run(workflow, vote, require_gerrit):
    """Run the pipeline for this job."""
    console = get_console()
    config = _load_config(require_gerrit=require_gerrit)
    ident = config.identity
    console.print_identity(ident.base_name, ident.project, ident.job_type, ident.silent)

    workflow_path = discover_workflow(workflow, config.project)

    try:
        stages = load_workflow(workflow_path, config)

        console.print_run_started(
            project=config.project,
            workflow=workflow_path.name,
            stage_count=len(stages),
        )

        results = run_pipeline(stages, config, vote=vote)

        console.print_results(results)

        if any(v == "failed" for v in results.values()):
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except ConfigError as e:
        console.print_error("Configuration error", str(e))
        sys.exit(CONFIG_EXIT)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
