"""
Workflow DSL CLI
"""
import logging
import sys
from pathlib import Path

import click

from .config import Settings
from .exceptions import WorkflowParseError, WorkflowSerializationError
from .serialization import SerializationService
from .validation import create_default_validation_service


FORMATS = click.Choice(["dsl", "json", "yaml"], case_sensitive=False)


def _load(service: SerializationService, workflow_file: str, fmt: str = None):
    """按格式（缺省时按扩展名）读取工作流文件"""
    fmt = fmt or service.detect_format(workflow_file)
    content = Path(workflow_file).read_text(encoding="utf-8")
    try:
        return service.deserialize(content, fmt)
    except (WorkflowParseError, WorkflowSerializationError) as e:
        raise click.ClickException(f"{workflow_file}: {e}")


def _write(content: str, output: str = None):
    if output:
        Path(output).write_text(content, encoding="utf-8")
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(content, nl=not content.endswith("\n"))


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option('--strict', is_flag=True, help='Reject duplicate node/track names')
@click.pass_context
def cli(ctx, verbose, strict):
    """Workflow DSL CLI"""
    settings = Settings.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    ctx.obj = SerializationService(strict_names=strict or settings.strict_names)


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--format', '-f', 'fmt', type=FORMATS, default='json', help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file')
@click.pass_obj
def parse(service, workflow_file, fmt, output):
    """Parse a DSL file and print the workflow graph"""
    workflow = _load(service, workflow_file, 'dsl')
    _write(service.serialize(workflow, fmt), output)


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--from', 'from_fmt', type=FORMATS, help='Input format (default: by extension)')
@click.pass_obj
def validate(service, workflow_file, from_fmt):
    """Validate a workflow file"""
    workflow = _load(service, workflow_file, from_fmt)
    result = create_default_validation_service().validate_workflow(workflow)

    if result.valid:
        click.echo(f"{workflow_file}: valid ({len(workflow.nodes)} nodes, "
                   f"{len(workflow.dependencies)} dependencies)")
        return

    click.echo(f"{workflow_file}: {len(result.errors)} error(s)", err=True)
    for error in result.errors:
        click.echo(f"  [{error.code.value}] {error.message}", err=True)
    sys.exit(1)


@cli.command(name='format')
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file')
@click.pass_obj
def format_command(service, workflow_file, output):
    """Reformat a DSL file"""
    workflow = _load(service, workflow_file, 'dsl')
    _write(service.serialize(workflow, 'dsl'), output)


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--to', 'to_fmt', type=FORMATS, required=True, help='Output format')
@click.option('--from', 'from_fmt', type=FORMATS, help='Input format (default: by extension)')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file')
@click.pass_obj
def convert(service, workflow_file, to_fmt, from_fmt, output):
    """Convert a workflow between dsl, json and yaml"""
    workflow = _load(service, workflow_file, from_fmt)
    _write(service.serialize(workflow, to_fmt), output)


@cli.command()
@click.option('--host', default=None, help='Host to bind to')
@click.option('--port', default=None, type=int, help='Port to bind to')
@click.option('--reload', is_flag=True, help='Enable auto-reload')
def serve(host, port, reload):
    """Start the API server"""
    import uvicorn

    settings = Settings.from_env()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting API server on {host}:{port}")
    uvicorn.run(
        "workflow_dsl.api:app",
        host=host,
        port=port,
        reload=reload or settings.api_reload
    )


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
