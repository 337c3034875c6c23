from setuptools import setup, find_packages

setup(
    name="dibuild",
    version="1.0.0",
    packages=find_packages(include=["dibuild", "dibuild.*", "cli", "cli.*"]),
    install_requires=[
        "click>=8.1.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dibuild=cli.main:main",
        ],
    },
    author="dibuild",
    author_email="your.email@example.com",
    description="Dependency injection container builder: scans service files and writes a compiled container",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
)
