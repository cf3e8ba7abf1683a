from setuptools import setup, find_packages
import os

version = "1.0.0"
if os.path.exists("VERSION"):
    with open("VERSION", "r") as f:
        version = f.read().strip()

setup(
    name="flare_agent",
    version=version,
    packages=find_packages(include=["flare_agent", "flare_agent.*"]),
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "requests>=2.25.0",
        "urllib3>=1.26.0",
        "PyYAML>=6.0"
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0"
        ],
    },
    entry_points={
        "console_scripts": [
            "flare-agent=flare_agent.__main__:main",
        ],
    },
)
