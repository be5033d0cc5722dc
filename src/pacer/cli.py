"""CLI interface for pacer"""

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
import requests

from pacer.domain.config import RetryPolicy
from pacer.domain.errors import ConfigurationError, RateLimitError
from pacer.domain.models.response import ResponseDescriptor
from pacer.infrastructure.config.config_manager import ConfigManager
from pacer.infrastructure.error_reporter import StreamErrorReporter
from pacer.infrastructure.http_client import RequestsExecutor, get_with_retries

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger().setLevel(level)
    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _die(
    message: str,
    response: Optional[ResponseDescriptor] = None,
    verbose: bool = False,
    exc: Optional[Exception] = None,
) -> NoReturn:
    """Exit with a user-friendly error message and status 1"""
    if exc is not None and verbose:
        logger.debug(message, exc_info=exc)
    StreamErrorReporter().die(message, response)


def _load_policy(ctx: click.Context) -> RetryPolicy:
    """Resolve the retry policy, exiting on misconfiguration"""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        return config_manager.get_retry_policy()
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)


def _describe_policy(policy: RetryPolicy) -> str:
    max_retry_time = f"{policy.max_retry_time:g}" if policy.bounded else "unbounded"
    return "\n".join(
        [
            f"http.maxRetries={policy.max_retries}",
            f"http.retryAfter={policy.retry_after:g}",
            f"http.maxRetryTime={max_retry_time}",
        ]
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to .pacer.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """pacer - rate-limit aware HTTP access to version-control remotes"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("url", type=str)
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Per-attempt timeout in seconds")
@click.pass_context
def get(ctx, url: str, timeout: float):
    """Fetch URL, retrying on HTTP 429 as configured.

    URL: Remote URL to fetch; the body is written to stdout
    """
    verbose = ctx.obj.get("verbose", False)
    retry_policy = _load_policy(ctx)
    executor = RequestsExecutor()

    try:
        response = get_with_retries(url, policy=retry_policy, timeout=timeout, executor=executor)
    except RateLimitError as e:
        _die(e.message, response=e.response, verbose=verbose, exc=e)
    except requests.RequestException as e:
        _die(f"unable to access '{url}': {e}", verbose=verbose, exc=e)
    finally:
        executor.close()

    if not response.ok:
        _die(
            f"unable to access '{url}': The requested URL returned error: {response.status_code}",
            response=response,
            verbose=verbose,
        )

    click.echo(response.body, nl=False)


@cli.command()
@click.pass_context
def policy(ctx):
    """Show the resolved retry policy."""
    click.echo(_describe_policy(_load_policy(ctx)))


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
