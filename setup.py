"""Package the coretemp client (sources live under python/)."""

from setuptools import setup, find_packages

setup(
    name="coretemp",
    version="0.1.0",
    description="Client for Core Temp remote telemetry streams",
    package_dir={"": "python"},
    packages=find_packages("python"),
    python_requires=">=3.9",
    install_requires=["numpy"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": ["coretemp=coretemp.cli:main"],
    },
)
