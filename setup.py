#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
import configparser
from pathlib import Path  # noqa

README = Path("README.md")
long_description = ""
if README.exists():
    long_description = README.read_text(encoding="utf-8")


def _pipfile(fn="Pipfile", section="packages"):
    p = Path(fn)
    cfg = configparser.ConfigParser()
    cfg.read_file(p.open())
    pkgs = list(cfg[section].keys())
    return pkgs


install_requires = _pipfile()

setup(
    name="crio-credential-provider",
    version="0.1.0",
    description="Kubelet image credential provider writing namespaced auth files for CRI-O",
    packages=find_packages(exclude=["ez_setup", "tests"]),
    package_data={"credprovider": ["py.typed"]},
    include_package_data=True,
    python_requires=">=3.11.0",
    keywords=["kubernetes", "cri-o", "kubelet", "credential-provider"],
    zip_safe=False,
    install_requires=install_requires,
    extras_require={"test": _pipfile(section="dev-packages")},
    long_description=long_description,
    long_description_content_type="text/markdown",
    entry_points={
        "console_scripts": [
            "crio-credential-provider = credprovider.cli.main:main",
        ]
    },
)
