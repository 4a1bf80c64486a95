# Copyright (C) 2012 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause

import os
import sys

from setuptools import find_packages, setup

if not sys.version_info[:2] >= (3, 9):
    sys.exit(
        f"mambashell is only meant for Python 3.9 and up. "
        f"current version: {sys.version_info.major}.{sys.version_info.minor}"
    )


# When executing setup.py, we need to be able to import ourselves, this
# means that we need to add the src directory to the sys.path.
src_dir = here = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, src_dir)
import mambashell  # noqa: E402

long_description = """
mambashell teaches an interactive shell to activate and deactivate environments
rooted at filesystem prefixes.  It installs a small hook into the startup file of
bash, zsh, dash, posix sh, fish, tcsh, xonsh, PowerShell or cmd.exe, renders the code
that activates, reactivates and deactivates environments (with stacking), and can
launch a subshell with an environment already active.

"""
install_requires = [
    "psutil >=5.6",
    "ruamel.yaml >=0.17",
]


def package_files(*root_directories):
    return [
        os.path.relpath(os.path.join(path, filename), "mambashell")
        for directory in root_directories
        for (path, directories, filenames) in os.walk(directory)
        for filename in filenames
    ]


setup(
    name=mambashell.__name__,
    version=mambashell.__version__,
    author=mambashell.__author__,
    license=mambashell.__license__,
    description=mambashell.__summary__,
    long_description=long_description,
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(exclude=("tests", "tests.*", "build")),
    package_data={
        "mambashell": package_files("mambashell/shell"),
    },
    entry_points={
        "console_scripts": [
            "mambashell=mambashell.cli.main:main",
        ],
    },
    install_requires=install_requires,
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    python_requires=">=3.9",
    zip_safe=False,
)
