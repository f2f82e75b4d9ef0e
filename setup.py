from setuptools import setup, find_packages
import re

# Extract version from __init__.py
with open('doris_cli/__init__.py', 'r') as f:
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", f.read(), re.M)
    version = version_match.group(1) if version_match else '1.0.0'

setup(
    name="doris-cli",
    version=version,
    packages=find_packages(exclude=["test", "test.*"]),
    install_requires=[
        "pymysql>=1.0.2,<1.2",
        "requests>=2.27.1",
        "tabulate>=0.8.9",
        "prompt-toolkit>=3.0.24",
        "click>=8.0.3",
        "pygments>=2.10.0",
        "rich>=12.0.0",
        "python-dotenv>=0.19.0",
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'flake8>=4.0.0',
            'black>=22.0.0',
        ],
    },
    entry_points={
        "console_scripts": [
            "doris-cli=doris_cli.cli:main",
            "doris-query=doris_cli.tool:main",
        ],
    },
    author="morningman",
    author_email="morningman.cmy@gmail.com",
    description="A command line and programmatic client for operating Apache Doris clusters",
    keywords="doris, mysql, cli, cluster-management, load, export",
    python_requires=">=3.8",
)
