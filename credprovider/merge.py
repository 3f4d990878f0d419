import copy
import logging

import jsonmerge

from . import docker
from . import utils

log = logging.getLogger(__name__)

# Secret entries replace global entries wholesale, everything else in the
# global document is kept as-is.
_merger = jsonmerge.Merger(
    {
        "properties": {
            "auths": {
                "mergeStrategy": "objectMerge",
                "additionalProperties": {"mergeStrategy": "overwrite"},
            }
        }
    }
)


def mirror_qualifies(registry, mirrors):
    # The mirror has to start with the registry name, not the other way round
    return utils.first(mirrors, lambda m: m.startswith(registry)) is not None


def image_qualifies(registry, image):
    return image.startswith(registry)


def qualifying_auths(configs, image, mirrors, log=log):
    """Collect the secret entries which apply to image or one of its mirrors.

    Keys are normalized registry names. Configs are applied in order so a
    later secret targeting the same registry wins.
    """
    auths = {}
    for cfg in configs:
        for registry, entry in cfg.auths.items():
            name = docker.normalize_registry(registry)
            if mirror_qualifies(name, mirrors):
                log.info(f"Using mirror auth for registry {name!r} from {cfg.source!r}")
                auths[name] = entry
            elif image_qualifies(name, image):
                log.info(f"Using auth for registry {name!r} matching image {image!r}")
                auths[name] = entry
            else:
                log.debug(f"Registry {name!r} from {cfg.source!r} does not apply")
    if not auths:
        log.info("No docker auth found for any available secret")
    return auths


def merge(configs, global_config, image, mirrors, log=log):
    """Merge qualifying secret entries over the global docker config.

    Returns a new docker config document, global_config is not modified.
    """
    base = copy.deepcopy(global_config) if global_config else {}
    if base.get("auths") is None:
        base["auths"] = {}
    auths = qualifying_auths(configs, image, mirrors, log=log)
    head = {"auths": {k: e.serialized() for k, e in auths.items()}}
    return _merger.merge(base, head)
