#!/usr/bin/env python3
from setuptools import setup

import httpfan.const as httpfan_const

NAME = "HAP-python-http-fan"
DESCRIPTION = "HomeKit fan accessory controlled through HTTP requests"


MIN_PY_VERSION = ".".join(map(str, httpfan_const.REQUIRED_PYTHON_VER))

with open("README.md", "r", encoding="utf-8") as f:
    README = f.read()


REQUIRES = ["HAP-python>=4.0.0", "aiohttp>=3.8"]


setup(
    name=NAME,
    version=httpfan_const.__version__,
    description=DESCRIPTION,
    long_description=README,
    long_description_content_type="text/markdown",
    packages=["httpfan"],
    include_package_data=True,
    python_requires=">={}".format(MIN_PY_VERSION),
    install_requires=REQUIRES,
    license="Apache License 2.0",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: Apache Software License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Home Automation",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
)
