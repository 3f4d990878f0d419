import itertools

import click

from ..config import get_provider_config


class spec(dict):
    """click.option arguments: positional declarations plus keyword settings."""

    def __init__(self, *args, **kwargs):
        self.args = args
        self.update(kwargs)


def using(*cmds):
    def decorator(f):
        for option in itertools.chain(*cmds):
            f = click.option(*option.args, expose_value=True, **option)(f)

        configObj = get_provider_config()
        return click.make_pass_decorator(configObj.__class__, True)(f)

    return decorator
