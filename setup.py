# setup.py
from setuptools import setup, find_packages

setup(
    name="routecompass",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "python-dateutil",
        "reportlab",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "routecompass=routecompass.main:run_wizard",
            "routecompass-sync=routecompass.main:run_sync",
        ],
    },
)
