import logging

import click
import coloredlogs

cmd_name = __package__.split(".")[0]
log = logging.getLogger(cmd_name)

REGISTRIES_CONF_PATH = "/etc/containers/registries.conf"
REGISTRIES_CONF_DIR = "/etc/containers/registries.conf.d"
AUTH_DIR = "/etc/crio/auth"
KUBELET_AUTH_FILE_PATH = "/var/lib/kubelet/config.json"
APISERVER_ENV_DIR = "/etc/kubernetes"
SECRETS_TIMEOUT = 60

LOG_FORMAT = (
    "[%(name)s:%(levelname)s] [%(filename)s:%(lineno)s (%(funcName)s)] %(message)s"
)


class ProviderConfig:
    def __init__(
        self,
        registries_conf_path=REGISTRIES_CONF_PATH,
        registries_conf_dir=REGISTRIES_CONF_DIR,
        auth_dir=AUTH_DIR,
        kubelet_auth_file_path=KUBELET_AUTH_FILE_PATH,
        apiserver_env_dir=APISERVER_ENV_DIR,
        timeout=SECRETS_TIMEOUT,
    ):
        self.registries_conf_path = registries_conf_path
        self.registries_conf_dir = registries_conf_dir
        self.auth_dir = auth_dir
        self.kubelet_auth_file_path = kubelet_auth_file_path
        self.apiserver_env_dir = apiserver_env_dir
        self.timeout = timeout

    def find(self, name, default=None, ctx=None):
        if not ctx:
            ctx = click.get_current_context()
        while ctx:
            val = ctx.params.get(name)
            if val:
                return val
            ctx = ctx.parent
        return default

    def setup_logging(self, level=None, log_file=None):
        # stdout carries the kubelet response so every handler targets
        # stderr or a file
        level = (level or self.find("log_level", "INFO")).upper()
        log_file = log_file or self.find("log_file")

        field_styles = dict(
            asctime=dict(color=241),
            hostname=dict(color=241),
            levelname=dict(color=136, bold=True),
            programname=dict(color=234),
            name=dict(color=61),
            message=dict(),
        )

        level_styles = dict(
            spam=dict(color=240, faint=True),
            debug=dict(color=241),
            verbose=dict(color=254),
            info=dict(color=244),
            notice=dict(color=166),
            warning=dict(color=125),
            success=dict(color=64, bold=True),
            error=dict(color=160),
            critical=dict(color=160, bold=True),
        )
        coloredlogs.install(
            level=level,
            field_styles=field_styles,
            level_styles=level_styles,
            fmt=LOG_FORMAT,
        )
        if log_file:
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter("%(asctime)s " + LOG_FORMAT))
            logging.getLogger().addHandler(handler)
        logging.getLogger("jsonmerge").setLevel(logging.WARNING)
        logging.getLogger("kubernetes").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    def load_paths(self):
        self.registries_conf_path = self.find(
            "registries_conf", self.registries_conf_path
        )
        self.registries_conf_dir = self.find(
            "registries_conf_dir", self.registries_conf_dir
        )
        self.auth_dir = self.find("auth_dir", self.auth_dir)
        self.kubelet_auth_file_path = self.find(
            "global_auth_file", self.kubelet_auth_file_path
        )
        self.apiserver_env_dir = self.find("apiserver_env_dir", self.apiserver_env_dir)
        self.timeout = self.find("timeout", self.timeout)
        log.debug(
            f"Using registries conf {self.registries_conf_path}, auth dir {self.auth_dir}"
            f", global auth file {self.kubelet_auth_file_path}"
        )

    def init(self):
        self.setup_logging()
        self.load_paths()


_config = None


def get_provider_config():
    global _config
    if _config is None:
        _config = ProviderConfig()
    return _config
