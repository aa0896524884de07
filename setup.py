# setup.py
from setuptools import setup, find_packages

setup(
    name="story_lint",
    version="0.1.0",
    description="Асинхронный линтер AMP-историй StoryLint",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"story_lint": ["data/*.yaml", "templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
        "Pillow>=10.0",
    ],
    extras_require={
        "test": ["pytest>=7.4", "pytest-asyncio>=0.23"],
    },
    entry_points={
        "console_scripts": ["story-lint=story_lint.cli:cli"],
    },
    python_requires=">=3.11",
)
