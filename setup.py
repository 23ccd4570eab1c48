"""Setup script for quick installation."""

from setuptools import find_packages, setup

setup(
    name="outcome-predictor",
    version="0.1.0",
    description="NFL game outcome forecasting from cached multi-source data and an ensemble of predictors",
    author="Outcome Predictor Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "pandas>=2.1.0",
        "numpy>=1.25.0",
        "aiohttp>=3.9.0",
        "click>=8.1.0",
        "rich>=13.5.0",
        "pydantic>=2.3.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "outcome-predict=outcome_predictor.cli.predict:main",
        ],
    },
)
