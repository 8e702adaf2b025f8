# -*- coding: utf-8 -*-
from setuptools import setup, find_packages
from os.path import abspath, dirname, join
from glob import glob

this_dir = abspath(dirname(__file__))

with open(join(this_dir, "README.md"), encoding="utf-8") as file:
    long_description = file.read()

with open(join(this_dir, "requirements.txt")) as f:
    requirements = [line for line in f.read().split("\n") if line.strip()]

scripts = glob("scripts/*.py")

setup(
    name="hivacsim",
    version="1.0",
    description="Stochastic simulation of sexually transmitted infections and vaccination strategies on evolving sexual networks.",
    long_description_content_type="text/markdown",
    long_description=long_description,
    scripts=scripts,
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    packages=find_packages(exclude=["docs", "test_hivacsim", "test_hivacsim.*"]),
    package_data={"hivacsim": ["configs/*.yaml", "configs/defaults/*.yaml"]},
    include_package_data=True,
)
