"""CLI commands for the notebook documentation generator.

Provides the Click-based command group 'doxcer' with subcommands for
generating notebook documentation and for preparing the encrypted
credential that lives in the .env file.
"""

import logging
import os
from typing import NoReturn, Optional

import click

from src import __version__
from src.generators.notebook_doc_gen import NotebookDocGenerator
from src.output.markdown import MarkdownWriter
from src.security.cipher import encrypt_credential, generate_key, validate_key
from src.utils.config import AppConfig, load_config
from src.utils.errors import DoxcerError
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _fail(error: DoxcerError) -> NoReturn:
    """Report a classified error on stderr and exit with its code."""
    click.echo(f"Error [{error.stage}]: {error}", err=True)
    raise SystemExit(error.exit_code)


@click.group()
@click.version_option(version=__version__, prog_name="doxcer")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.yaml.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr.")
@click.pass_context
def doxcer(ctx: click.Context, config_path: Optional[str], verbose: bool) -> None:
    """Doxcer: generate Markdown documentation for Fabric notebooks."""
    config = load_config(config_path)
    setup_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )
    ctx.obj = config


@doxcer.command()
@click.argument("notebook", type=click.Path(dir_okay=False))
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the .env file holding the encrypted API key.",
)
@click.option("--model", default=None, help="Model to use for generation.")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show the prompt size without decrypting the key or calling the API.",
)
@click.pass_obj
def generate(
    config: AppConfig,
    notebook: str,
    env_file: Optional[str],
    model: Optional[str],
    dry_run: bool,
) -> None:
    """Generate documentation for a notebook and print it to stdout.

    Redirect stdout to save the document, e.g.
    ``doxcer generate notebook.py > notebook.md``.
    """
    logger.debug("Generating documentation for %s", notebook)
    generator = NotebookDocGenerator(config=config)

    if dry_run:
        try:
            report = generator.dry_run(notebook, model=model)
        except DoxcerError as e:
            _fail(e)
        click.echo(f"Notebook: {report.notebook}", err=True)
        click.echo(f"Prompt size: {report.prompt_chars:,} characters", err=True)
        click.echo(f"Estimated input tokens: {report.estimated_tokens:,}", err=True)
        click.echo(f"Model: {report.model}", err=True)
        click.echo("Dry run complete. No API calls made.", err=True)
        return

    try:
        result = generator.run(notebook, env_file=env_file, model=model)
    except DoxcerError as e:
        _fail(e)

    MarkdownWriter().write(result.content)


@doxcer.command()
@click.option(
    "--key",
    default=None,
    help=(
        "Fernet key. Defaults to the configured key entry in the environment "
        "(ENCRYPTION_PASSWORD), or a new key is generated."
    ),
)
@click.password_option(
    "--secret",
    prompt="API key",
    confirmation_prompt=True,
    help="The API key to encrypt.",
)
@click.pass_obj
def encrypt(config: AppConfig, key: Optional[str], secret: str) -> None:
    """Encrypt an API key and print the .env entries that hold it.

    Entry names follow the ``secrets`` section of the config, so the output
    can be pasted into the .env file that ``generate`` reads.
    """
    names = config.secrets
    key = key or os.environ.get(names.key_name)
    try:
        if key:
            validate_key(key)
        else:
            key = generate_key()
            click.echo(f"{names.key_name}={key}")
        click.echo(f"{names.credential_name}={encrypt_credential(key, secret)}")
    except DoxcerError as e:
        _fail(e)


@doxcer.command()
def keygen() -> None:
    """Generate a new Fernet key for the decryption key entry."""
    click.echo(generate_key())
