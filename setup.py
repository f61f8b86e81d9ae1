"""
Setup script for swaption_calibration package.

Pure Python package; numerical work is done with NumPy and SciPy.
"""

from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).parent


def read_version() -> str:
    """Read __version__ without importing the package."""
    init = ROOT / "src" / "python" / "swaption_calibration" / "__init__.py"
    for line in init.read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__")


# Main setup
setup(
    name="swaption-calibration",
    version=read_version(),
    description="Hull-White one-factor calibration to swaption volatility surfaces",
    author="Quantitative Research Team",
    python_requires=">=3.8",
    package_dir={"": "src/python"},
    packages=find_packages(where="src/python"),
    install_requires=[
        "numpy>=1.21",
        "scipy>=1.7",
        "pandas>=1.3",
        "PyYAML>=5.4",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "swaption-calibration=swaption_calibration.cli:main",
        ],
    },
    zip_safe=False,
)
