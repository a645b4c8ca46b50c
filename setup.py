from setuptools import setup, find_packages

setup(
    name="repository-toolkit",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic",
        "pydantic-settings",
        "python-dotenv",
        "fastapi",
        "psycopg2-binary",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
