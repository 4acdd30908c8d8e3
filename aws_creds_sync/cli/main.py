"""CLI entrypoints for aws-creds-sync."""
import sys
import argparse
import asyncio
import logging
from typing import Mapping, Optional, Sequence

import httpx

from .validators import validate_name
from ..sync.domains.circleci_client import CircleCIClient
from ..sync.domains.config_loader import ConfigError, TargetSettings, get_target_settings
from ..sync.domains.errors import CredentialSyncError, RequestFailedError, ResourceNotFoundError
from ..sync.domains.models import SyncReport
from ..sync.domains.terraform_client import TerraformClient
from ..sync.workflows.credential_operations import sync_project_credentials, sync_workspace_credentials

VERSION = "0.1.0"

logger = logging.getLogger(__name__)

EPILOG = """
Exit codes:
  0 - Success
  1 - Runtime error (missing token, lookup failed, variable update failed, etc.)
  2 - Usage error (missing or empty {resource} / organization)

Environment variables:
  {token_env} - API token for {service}
  AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_SESSION_TOKEN - values to copy
  AWS_CREDS_SYNC_CONFIG - config file path (default ~/.config/aws-creds-sync/config.yml)

Unset credentials are skipped, never deleted.
"""


def setup_logging(debug: bool) -> None:
    """Configure process logging once, INFO by default and DEBUG with --debug."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
        stream=sys.stderr
    )
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def build_parser(target: str) -> argparse.ArgumentParser:
    """Build the option parser for the 'circleci' or 'terraform' program."""
    if target == "circleci":
        prog = "update-aws-creds-in-circle-ci"
        description = "Update AWS credentials using environment variables for the given CircleCI project"
        resource, short, service, token_env = "project", "-p", "CircleCI", "CIRCLE_CI_API_TOKEN"
    else:
        prog = "update-aws-creds-in-terraform"
        description = "Update AWS credentials using environment variables for the given Terraform workspace"
        resource, short, service, token_env = "workspace", "-w", "Terraform Cloud", "TF_API_TOKEN"

    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=EPILOG.format(resource=f"--{resource}", token_env=token_env, service=service),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-o", "--organization",
        help=f"The name of the {service} organization to use for {resource} lookup "
             "(defaults to the configured organization)"
    )
    parser.add_argument(
        short, f"--{resource}",
        dest="resource",
        help=f"The name of the {service} {resource} to add creds to"
    )
    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}"
    )
    return parser


async def _sync(
    settings: TargetSettings,
    resource: str,
    environ: Optional[Mapping[str, str]],
    transport: Optional[httpx.AsyncBaseTransport],
) -> SyncReport:
    if settings.name == "circleci":
        client = CircleCIClient.from_settings(settings, transport=transport)
        try:
            return await sync_project_credentials(client, settings.organization, resource, environ)
        finally:
            await client.close()

    client = TerraformClient.from_settings(settings, transport=transport)
    try:
        return await sync_workspace_credentials(client, settings.organization, resource, environ)
    finally:
        await client.close()


def run(
    target: str,
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Parse arguments and sync credentials to the target.

    Returns:
        Process exit code
    """
    parser = build_parser(target)
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    option = "--project" if target == "circleci" else "--workspace"
    validate_name(args.resource, option)
    if args.organization is not None:
        validate_name(args.organization, "--organization")

    try:
        settings = get_target_settings(target, args.organization, environ=environ)
        logger.debug(f"Using {settings!r}")
        report = asyncio.run(_sync(settings, args.resource, environ, transport))
    except (ConfigError, ResourceNotFoundError, RequestFailedError, CredentialSyncError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info(
        f"Updated {len(report.applied)} and skipped {len(report.skipped)} credentials in {report.resource}"
    )
    return 0


def _main(target: str) -> None:
    try:
        sys.exit(run(target))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def circleci_main() -> None:
    """Entrypoint for update-aws-creds-in-circle-ci."""
    _main("circleci")


def terraform_main() -> None:
    """Entrypoint for update-aws-creds-in-terraform."""
    _main("terraform")
