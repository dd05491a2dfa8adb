from setuptools import setup, find_packages

setup(
    name="hullwhite-forecasting",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    py_modules=["calculate_forecast"],
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "matplotlib",
        "seaborn",
        "tqdm",
        "psutil",
        "yfinance",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
