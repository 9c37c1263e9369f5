"""
Command Line Interface for runlocal.
"""
import click
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from ..MANAGERS.local_runner import LocalRunner
from ..MODELS.run_config import RunIdentity, RunLocalConfig
from ..PARSERS.override_parser import OverrideParser
from ..PARSERS.workspace_parser import read_application_name
from ..errors import ConfigurationError, RunLocalError


def _parse_images(values):
    images = {}
    for value in values:
        if '=' not in value:
            raise ConfigurationError(f"image {value!r} must be in the form container=imageURI")
        name, uri = value.split('=', 1)
        images[name.strip()] = uri.strip()
    return images


def build_config(name, env, app, port_overrides, env_overrides, env_files, images,
                 task_definition, role_arn, region, profile) -> RunLocalConfig:
    """
    Validates the flag values into a RunLocalConfig.
    """
    app = app or read_application_name()
    if not app:
        raise ConfigurationError("couldn't find an application associated with this workspace; pass --app")
    if not name or not env:
        raise ConfigurationError("both --name and --env are required")

    overrides = {}
    for path in env_files:
        overrides.update(OverrideParser.parse_env_file(path))
    overrides.update(OverrideParser.parse_env_overrides(env_overrides))

    try:
        return RunLocalConfig(
            identity=RunIdentity(app=app, env=env, workload=name),
            port_overrides=OverrideParser.parse_port_overrides(port_overrides),
            env_overrides=overrides,
            images=_parse_images(images),
            task_definition_file=task_definition,
            role_arn=role_arn,
            region=region,
            profile=profile,
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


@click.group()
@click.pass_context
def cli(ctx):
    """
    runlocal - run a deployed ECS workload on your machine.

    Containers share the network of a pause container, exactly like tasks
    in awsvpc mode, and are cleaned up when the run ends.
    """
    ctx.ensure_object(dict)
    ctx.obj.setdefault('runner_factory', LocalRunner.from_config)


@cli.command()
@click.option('--name', '-n', help='Name of the workload.')
@click.option('--env', '-e', help='Name of the environment.')
@click.option('--app', '-a', help='Name of the application. Defaults to the workspace application.')
@click.option('--port-override', 'port_overrides', multiple=True,
              help='Override a port mapping, as containerPort:hostPort. Repeatable.')
@click.option('--env-var-override', 'env_overrides', multiple=True,
              help='Override an environment variable, as [container:]KEY=VALUE. Repeatable.')
@click.option('--env-file', 'env_files', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='Read environment variable overrides from a .env file. Repeatable.')
@click.option('--image', 'images', multiple=True,
              help='Run a locally built image for a container, as container=imageURI. Repeatable.')
@click.option('--task-definition', type=click.Path(exists=True, dir_okay=False),
              help='Read the task definition from a JSON/YAML file instead of ECS.')
@click.option('--role-arn', help='Role to assume for reading the task definition and SSM parameters.')
@click.option('--region', help='AWS region.')
@click.option('--profile', help='AWS named profile.')
@click.pass_context
def run(ctx, name, env, app, port_overrides, env_overrides, env_files, images,
        task_definition, role_arn, region, profile):
    """Run the workload locally."""
    try:
        config = build_config(name, env, app, port_overrides, env_overrides, env_files, images,
                              task_definition, role_arn, region, profile)
        runner = ctx.obj['runner_factory'](config)
        runner.execute()
    except (RunLocalError, BotoCoreError, ClientError) as e:
        raise click.ClickException(str(e)) from e
    click.echo("Run finished.")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={}, auto_envvar_prefix="RUNLOCAL")


if __name__ == '__main__':
    main()
