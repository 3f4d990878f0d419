import logging
import sys

import click
from rich.traceback import install as install_rich_tb

from .. import app, config as config_impl, exceptions
from .. import version as version_impl
from .clicktools import spec, using

cmd_name = __package__.split(".")[0]
log = logging.getLogger(cmd_name)


_log_levels = ["DEBUG", "INFO", "WARNING", "CRITICAL"]
_log_levels = _log_levels + [i.lower() for i in _log_levels]
common_args = [
    spec("-l", "--log-level", default="INFO", type=click.Choice(_log_levels)),
    spec("--log-file", type=click.Path(dir_okay=False, writable=True)),
]

path_args = [
    spec(
        "--registries-conf",
        default=config_impl.REGISTRIES_CONF_PATH,
        show_default=True,
        type=click.Path(dir_okay=False),
    ),
    spec(
        "--registries-conf-dir",
        default=config_impl.REGISTRIES_CONF_DIR,
        show_default=True,
        type=click.Path(file_okay=False),
        help="Directory of registries.conf drop-in files",
    ),
    spec(
        "--auth-dir",
        default=config_impl.AUTH_DIR,
        show_default=True,
        type=click.Path(file_okay=False),
    ),
    spec(
        "--global-auth-file",
        default=config_impl.KUBELET_AUTH_FILE_PATH,
        show_default=True,
        type=click.Path(dir_okay=False),
    ),
    spec(
        "--apiserver-env-dir",
        default=config_impl.APISERVER_ENV_DIR,
        show_default=True,
        type=click.Path(file_okay=False),
    ),
    spec(
        "--timeout",
        default=config_impl.SECRETS_TIMEOUT,
        show_default=True,
        type=click.IntRange(min=1),
        help="Seconds to wait for the secret listing",
    ),
]

version_args = [
    spec(
        "--version", "show_version", is_flag=True, help="Display version information"
    ),
    spec(
        "--version-json",
        "show_version_json",
        is_flag=True,
        help="Display version information as JSON",
    ),
]


_context = dict(auto_envvar_prefix="CRIO_CREDENTIAL_PROVIDER")


@click.command(context_settings=_context)
@using(common_args, path_args, version_args)
def main(config, show_version, show_version_json, **kwargs):
    """Kubelet image credential provider writing namespaced auth files for CRI-O."""
    install_rich_tb()
    if show_version or show_version_json:
        info = version_impl.get()
        click.echo(info.json_string() if show_version_json else str(info))
        return

    config.init()
    try:
        result = app.run(sys.stdin, config)
    except exceptions.CredentialProviderError as e:
        log.critical(f"Failed to run credential provider: {e}")
        sys.exit(1)
    log.debug(f"Credential provider finished: {result.outcome.value}")


if __name__ == "__main__":
    main(prog_name="crio-credential-provider")
