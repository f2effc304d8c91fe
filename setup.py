# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

from setuptools import find_packages, setup


project_name = "leaselock"
this_directory = os.path.abspath(os.path.dirname(__file__))


def get_version():
    """Function to read the package version without importing it."""
    with open(os.path.join(this_directory, project_name, "__init__.py")) as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find version string.")


setup(
    name=project_name,
    version=get_version(),
    description="Leases on shared Redis keys with atomic refresh and release",
    license="MPL-2.0",
    python_requires=">=3.8",
    packages=find_packages(include=[project_name, f"{project_name}.*"]),
    install_requires=[
        "redis>=4.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
