from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="clusterbench",
    version="0.1.0",
    description="Reproduce the HP35 dPCA + density-clustering benchmark with FastPCA and Clustering",
    long_description=Path(__file__).parent.joinpath("README.md").read_text(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "rich",
        "typer>=0.9",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "clusterbench=clusterbench.cli:main",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
)
