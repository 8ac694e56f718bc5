from setuptools import setup, find_packages

setup(
    name="rates_risk_engine",
    version="0.1.0",
    description="Per-currency yield curves, cash flow PV and DV01 risk engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
