# setup.py
from setuptools import setup, find_packages

setup(
    name="a11y-scout",
    version="0.1.0",
    description="Accessibility scanner that crawls a site and keeps tracker issues in sync",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"a11y_scout": ["templates/*.md", "templates/*.html"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "soupsieve>=2.5",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.2",
        "Jinja2>=3.1",
    ],
    extras_require={
        "browser": ["playwright>=1.40"],
        "test": ["pytest>=7.4", "pytest-asyncio>=0.23"],
    },
    entry_points={
        "console_scripts": ["a11y-scout=a11y_scout.cli:cli"],
    },
    python_requires=">=3.11",
)
