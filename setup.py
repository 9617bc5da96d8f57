from setuptools import setup, find_packages

setup(
    name="inkwell",
    version="0.1.0",
    packages=find_packages(include=["inkwell", "inkwell.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "uvicorn[standard]",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
        "asyncpg",
        "pydantic>=2.0",
        "pydantic-settings>=2.7",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio>=0.23",
            "httpx",
        ],
    },
)
