"""Setup configuration for Modmail Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="modmail",
    version="0.0.1",
    description="A Discord bot that relays member DMs to moderators anonymously",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.12",
    install_requires=[
        "py-cord>=2.6",
        "aiosqlite>=0.20",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "modmail=modmail.main:main",
        ],
    },
)
