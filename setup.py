from setuptools import setup


setup(
    name="recruit-sheet",
    version="0.1.0",
    description="Normalize messy recruitment-pipeline spreadsheets into canonical records and summary metrics",
    packages=["recruit_sheet"],
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "streamlit",
        "requests",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "all": ["xlrd"],
    },
    entry_points={
        "console_scripts": [
            "recruit-sheet=recruit_sheet.cli:main",
        ]
    },
)
