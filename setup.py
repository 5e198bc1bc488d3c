from setuptools import setup


setup(
    name="sheet-metrics",
    version="0.1.0",
    description="Smoke and regression test-tracking sheets turned into dashboard metrics",
    packages=["sheet_metrics"],
    python_requires=">=3.10",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "streamlit",
        "requests",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "sheet-metrics=sheet_metrics.cli:main",
        ]
    },
)
