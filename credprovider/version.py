import platform
import sys
from dataclasses import asdict, dataclass, field
from importlib import metadata
from typing import List

from . import utils

__version__ = "0.1.0"
DIST_NAME = "crio-credential-provider"


@dataclass
class Info:
    version: str
    python_version: str
    implementation: str
    platform: str
    dependencies: List[str] = field(default_factory=list)

    def serialized(self):
        return {k: v for k, v in asdict(self).items() if v}

    def json_string(self):
        return utils.dump(self)

    def __str__(self):
        lines = []
        width = max(len(k) for k in self.serialized()) + 2
        for k, v in self.serialized().items():
            if isinstance(v, list):
                lines.append(f"{k}:")
                lines.extend(f"  {d}" for d in v)
            else:
                lines.append(f"{k + ':':<{width}}{v}")
        return "\n".join(lines)


def _dependencies():
    try:
        requires = metadata.requires(DIST_NAME) or []
    except metadata.PackageNotFoundError:
        return []
    deps = []
    for req in requires:
        if "extra ==" in req:
            continue
        name = req.split(";")[0].strip()
        for sep in "<>=!~ [":
            name = name.split(sep)[0]
        try:
            deps.append(f"{name} {metadata.version(name)}")
        except metadata.PackageNotFoundError:
            deps.append(f"{name} unknown")
    return deps


def get():
    return Info(
        version=__version__,
        python_version=platform.python_version(),
        implementation=sys.implementation.name,
        platform=f"{sys.platform}/{platform.machine()}",
        dependencies=_dependencies(),
    )
