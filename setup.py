from setuptools import setup, find_packages

setup(
    name="macro-scenarios",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["models", "exceptions", "config", "run_scenarios"],
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "statsmodels",
        "duckdb",
        "requests",
        "urllib3",
        "matplotlib",
        "seaborn",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["run-scenarios=run_scenarios:main"],
    },
    python_requires=">=3.8",
)
