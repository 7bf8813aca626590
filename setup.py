from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="dbvs",
    version="1.0.0",
    author="DBVS Development Team",
    author_email="dev@dbvs-security.org",
    description="Database Vulnerability Scanner - match database versions against CVE, CNVD and Aliyun advisories",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/dbvs-security/dbvs",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Information Technology",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security",
        "Topic :: Database",
    ],
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0.0",
        "aiohttp>=3.8.0",
        "asyncpg>=0.28.0",
        "aiomysql>=0.2.0",
        "tenacity>=8.2.0",
        "python-dateutil>=2.8.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "mssql": ["pymssql>=2.2.8"],
        "oracle": ["oracledb>=2.0.0"],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.0.0",
            "ruff>=0.0.280",
            "mypy>=1.4.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dbvs=dbvs.cli.main:cli",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
